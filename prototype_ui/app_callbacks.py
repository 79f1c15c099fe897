# ==============================================================================
# 3. app_callbacks.py (UIからのコールバック関数)
# ==============================================================================
import streamlit as st
import logging
import os
import time

from allocation_health import health_gateway
from allocation_health.assignment_ledger import AssignmentLedger
from allocation_health.utils.logging_config import ENGINE_LOG_FILE, APP_LOG_FILE
from allocation_health.utils.error_definitions import NotFoundError, UpstreamUnavailableError, InvalidInputError
from allocation_health.utils.types import ReportSettings
from app_data_utils import initialize_app_data

def handle_regenerate_sample_data():
    logger = logging.getLogger('app')
    logger.info("Regenerate sample data button clicked, callback triggered.")
    initialize_app_data(force_regenerate=True)
    st.session_state.show_regenerate_success_message = True

def handle_generate_over_budget_data():
    logger = logging.getLogger('app')
    logger.info("Generate over-budget data button clicked, callback triggered.")
    initialize_app_data(force_regenerate=True, over_budget=True)
    st.session_state.show_over_budget_message = True

def read_log_file(log_path: str) -> str:
    logger = logging.getLogger('app')
    try:
        if os.path.exists(log_path):
            with open(log_path, 'r', encoding='utf-8') as f:
                return f.read()
    except OSError as e:
        logger.error(f"Failed to read log file {log_path}: {e}")
    return ""

def run_health_report():
    logger = logging.getLogger('app')
    keys_to_clear_on_execute = [
        "health_report_cache", "utilization_cache", "ledger_rows_cache",
        "report_error_message", "engine_log_for_download", "app_log_for_download", "report_duration",
    ]
    for key in keys_to_clear_on_execute:
        if key in st.session_state:
            del st.session_state[key]
    logger.info("Cleared previous report results from session_state.")

    store = st.session_state.ALLOCATION_STORE
    services = health_gateway.ReportServices.from_store(store)
    settings = ReportSettings(fetch_timeout_seconds=st.session_state.get("fetch_timeout_seconds", 30.0))
    plan_id = st.session_state.get("selected_plan_id")

    try:
        with st.spinner("健全性レポートを生成中..."):
            start_time = time.time()
            if plan_id is None:
                report = health_gateway.build_latest_health_report(services, settings)
            else:
                report = health_gateway.build_health_report(plan_id, services, settings)
            st.session_state.health_report_cache = report
            st.session_state.ledger_rows_cache = AssignmentLedger(store, store).assignments_for_plan(report.plan_id)
            st.session_state.utilization_cache = health_gateway.build_utilization_analysis(report.plan_id, services, settings)
            st.session_state.report_duration = time.time() - start_time

    except (NotFoundError, UpstreamUnavailableError, InvalidInputError) as e:
        logger.error(f"健全性レポートの生成でエラーが発生しました: {e}", exc_info=True)
        st.session_state.report_error_message = f"健全性レポートの生成でエラーが発生しました:\n\n{e}"

    finally:
        st.session_state.report_executed = True
        st.session_state.view_mode = "health_report"
        st.session_state.engine_log_for_download = read_log_file(ENGINE_LOG_FILE)
        st.session_state.app_log_for_download = read_log_file(APP_LOG_FILE)
