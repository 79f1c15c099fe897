# ==============================================================================
# 2. app_data_utils.py (データ生成と初期化)
# ==============================================================================
import streamlit as st
import datetime
import logging
from pathlib import Path

from allocation_health.collaborators import InMemoryAllocationStore, load_dataset
from allocation_health.data_generator import build_sample_dataset

DATA_DIR = Path("data")

def initialize_app_data(force_regenerate: bool = False, over_budget: bool = False):
    """
    データセットを読み込み、インメモリストアをセッションに保持する。
    data/ にJSONがあればそれを使い、なければサンプルデータを生成する。
    """
    logger = logging.getLogger('app')
    logger.info(f"Entering initialize_app_data(force_regenerate={force_regenerate}, over_budget={over_budget})")

    if force_regenerate or not st.session_state.get("app_data_initialized"):
        st.session_state.TODAY = datetime.date.today()
        if not force_regenerate and (DATA_DIR / "plans.json").exists():
            logger.info(f"Loading dataset from {DATA_DIR.resolve()}")
            dataset = load_dataset(DATA_DIR)
            st.session_state.DATA_SOURCE = str(DATA_DIR)
        else:
            logger.info("Regenerating sample data...")
            dataset = build_sample_dataset(over_budget=over_budget, today_date=st.session_state.TODAY)
            st.session_state.DATA_SOURCE = "サンプルデータ (予算超過)" if over_budget else "サンプルデータ"

        st.session_state.DATASET = dataset
        st.session_state.ALLOCATION_STORE = InMemoryAllocationStore.from_dataset(dataset)
        st.session_state.app_data_initialized = True
        logger.info(
            f"Dataset ready: plans={len(dataset.get('plans', []))}, "
            f"assignments={len(dataset.get('assignments', []))}"
        )
