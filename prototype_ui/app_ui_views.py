# ==============================================================================
# 4. app_ui_views.py (UI描画関数)
# ==============================================================================
import streamlit as st
import pandas as pd
import logging

from allocation_health import report_export
from app_callbacks import handle_regenerate_sample_data, handle_generate_over_budget_data

logger = logging.getLogger('app')

def display_sample_data_view():
    """「入力データ」ビューを描画する"""
    st.header("入力データ")

    if st.session_state.get("show_regenerate_success_message"):
        st.success("サンプルデータを再生成しました。")
        del st.session_state.show_regenerate_success_message

    if st.session_state.get("show_over_budget_message"):
        st.warning("テスト用に予算超過のサンプルデータを生成しました。")
        del st.session_state.show_over_budget_message

    col1, col2 = st.columns(2)
    with col1:
        st.button(
            "サンプルデータ再生成",
            key="regenerate_sample_data_button",
            on_click=handle_regenerate_sample_data,
            type="primary",
            help="現在の入力データを破棄し、新しいサンプルデータを生成します。"
        )
    with col2:
        st.button(
            "予算超過データ生成",
            key="generate_over_budget_data_button",
            on_click=handle_generate_over_budget_data,
            help="コンプライアンス警告の確認用に、配分時間を縮小したデータを生成します。"
        )

    dataset = st.session_state.DATASET
    st.markdown(f"**データソース:** {st.session_state.get('DATA_SOURCE', '不明')}")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("学年度 (文部省配分)")
        st.dataframe(pd.DataFrame(dataset["academic_years"]), height=200)
    with col2:
        st.subheader("割り当て計画")
        st.dataframe(pd.DataFrame(dataset["plans"]), height=200)

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("教員割り当て")
        st.dataframe(pd.DataFrame(dataset["assignments"]), height=300)
    with col2:
        st.subheader("実習需要")
        st.dataframe(pd.DataFrame(dataset["demands"]), height=300)

def _display_budget_metric(label: str, metric):
    st.metric(
        label=f"{label} 使用時間 / 配分時間",
        value=f"{metric.used} / {metric.allocated:g}",
        delta=f"残り {metric.remaining:g}",
        delta_color="normal" if metric.remaining >= 0 else "inverse",
    )

def display_health_report_view():
    """「健全性レポート」ビューを描画する"""
    st.header("健全性・予算レポート")

    if not st.session_state.get("report_executed", False):
        st.info("サイドバーの「健全性レポートを生成」ボタンを押してください。")
        return

    if st.session_state.get("report_error_message"):
        st.error("健全性レポートの生成でエラーが発生しました。詳細は以下をご確認ください。")
        with st.expander("エラー詳細", expanded=True):
            st.code(st.session_state.report_error_message, language=None)
        return

    report = st.session_state.get("health_report_cache")
    if report is None:
        st.warning("レポートのデータは現在ありません。再度実行してください。")
        return

    st.subheader(f"{report.plan_name} (v{report.plan_version}) - {report.academic_year} [{report.status}]")

    if report.is_budget_compliant:
        st.success("予算準拠: すべての区分で配分時間内に収まっています。")
    else:
        st.error("予算非準拠: 配分時間を超過している区分があります。")
    if report.compliance_warning:
        st.warning(report.compliance_warning)

    col1, col2, col3 = st.columns(3)
    with col1:
        _display_budget_metric("全体", report.total_budget)
    with col2:
        _display_budget_metric("小学校", report.elementary_budget)
    with col3:
        _display_budget_metric("中学校", report.middle_school_budget)

    col1, col2, col3 = st.columns(3)
    col1.metric("必要教員数", report.total_required_teachers)
    col2.metric("割当済み教員数", report.total_assigned_teachers)
    col3.metric("充足率", f"{report.fulfillment_percentage:.1f}%")
    st.caption(f"学生数: {report.total_student_count}")

    if "report_duration" in st.session_state:
        st.caption(f"処理時間: {st.session_state.report_duration:.3f} 秒")

    st.subheader("予算サマリー")
    st.dataframe(report_export.budget_dataframe(report), hide_index=True)

    rows = st.session_state.get("ledger_rows_cache", [])
    teachers = st.session_state.ALLOCATION_STORE.list_active_teachers()
    st.subheader(f"割り当て一覧 ({len(rows)}件)")
    st.dataframe(report_export.assignments_dataframe(rows, teachers), hide_index=True, height=300)

    workbook = report_export.export_report_to_excel(
        report, rows=rows, teachers=teachers, analysis=st.session_state.get("utilization_cache"),
    )
    st.download_button(
        "Excelでダウンロード",
        data=workbook,
        file_name=f"allocation_report_plan_{report.plan_id}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    with st.expander("ログ"):
        st.download_button("エンジンログ", data=st.session_state.get("engine_log_for_download", ""), file_name="allocation_health.log")
        st.download_button("アプリログ", data=st.session_state.get("app_log_for_download", ""), file_name="app.log")

def display_utilization_view():
    """「教員稼働分析」ビューを描画する"""
    st.header("教員稼働分析")
    analysis = st.session_state.get("utilization_cache")
    if analysis is None:
        st.info("先に健全性レポートを生成してください。")
        return

    labels = {
        "unassigned": "未割り当て",
        "under_utilized": "稼働不足 (1件)",
        "perfectly_utilized": "適正 (2件)",
        "over_utilized": "過負荷 (3件以上)",
    }
    frames = report_export.utilization_dataframes(analysis)
    cols = st.columns(len(labels))
    for col, (key, label) in zip(cols, labels.items()):
        col.metric(label, len(frames[key]))
    for key, label in labels.items():
        with st.expander(f"{label} ({len(frames[key])}人)", expanded=key == "over_utilized"):
            st.dataframe(frames[key], hide_index=True)
