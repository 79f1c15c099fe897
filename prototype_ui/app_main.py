# ==============================================================================
# 1. app_main.py (アプリケーションのエントリーポイント)
# ==============================================================================
import sys
import os
import streamlit as st
import logging

# プロジェクトのルートディレクトリをPythonの検索パスに追加
# (pip install せずに streamlit run prototype_ui/app_main.py で起動した場合用)
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from allocation_health.utils.logging_config import setup_logging
from app_data_utils import initialize_app_data
from app_callbacks import run_health_report
from app_ui_views import (
    display_sample_data_view,
    display_health_report_view,
    display_utilization_view,
)

def main():
    setup_logging()
    logger = logging.getLogger('app')
    st.set_page_config(page_title="実習教員割り当て 健全性レポート", layout="wide")
    initialize_app_data()

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "sample_data"
    if "report_executed" not in st.session_state:
        st.session_state.report_executed = False

    st.title("実習教員割り当て - 健全性・予算レポート")

    # --- ナビゲーションボタン ---
    views = [("sample_data", "入力データ"), ("health_report", "健全性レポート"), ("utilization", "教員稼働分析")]
    nav_cols = st.columns([2, 2, 2, 1])
    for col, (mode, label) in zip(nav_cols, views):
        with col:
            if st.button(label, use_container_width=True, type="primary" if st.session_state.view_mode == mode else "secondary"):
                st.session_state.view_mode = mode
                st.rerun()

    # --- サイドバー ---
    st.sidebar.markdown(
        "確定済みの割り当て2件で軽減時間1時間を消費します。"
        "小学校・中学校・全体のいずれかで配分時間を超過すると予算非準拠となります。"
    )
    plans = st.session_state.DATASET.get("plans", [])
    plan_options = [None] + [p["id"] for p in plans]
    plan_labels = {p["id"]: f"{p['id']}: {p['plan_name']} v{p.get('plan_version', '')} ({p.get('status', '')})" for p in plans}
    st.sidebar.selectbox(
        "対象の割り当て計画",
        plan_options,
        format_func=lambda pid: "最新の計画" if pid is None else plan_labels[pid],
        key="selected_plan_id",
    )
    st.sidebar.number_input("外部サービスのタイムアウト(秒)", min_value=1.0, max_value=300.0, value=30.0, step=1.0, key="fetch_timeout_seconds")
    st.sidebar.button("健全性レポートを生成", type="primary", on_click=run_health_report)

    # --- メインエリアの表示制御 ---
    logger.info(f"Starting main area display. Current view_mode: {st.session_state.view_mode}")
    if st.session_state.view_mode == "sample_data":
        display_sample_data_view()
    elif st.session_state.view_mode == "health_report":
        display_health_report_view()
    elif st.session_state.view_mode == "utilization":
        display_utilization_view()
    else:
        logger.warning(f"Unexpected view_mode: {st.session_state.view_mode}. Displaying fallback info.")
        st.info("上部のボタンから表示するビューを選択してください。")
    logger.info("Exiting main function.")

if __name__ == "__main__":
    main()
