import logging
import math
from typing import Dict, Iterable

from allocation_health.assignment_ledger import confirmed_rows
from allocation_health.utils.error_definitions import InvalidInputError
from allocation_health.utils.types import (
    BudgetMetric, BudgetSummary, LedgerRow, MinistryBudget, ELEMENTARY, MIDDLE_SCHOOL, SCHOOL_LEVELS,
)

logger = logging.getLogger(__name__)

# --- 定数定義 ---
# 確定済み割り当て2件で軽減時間1時間を消費する。端数の1件は切り上げない。
ASSIGNMENTS_PER_REDUCTION_HOUR = 2


def used_hours_for(confirmed_count: int) -> int:
    """確定済み割り当て件数から使用軽減時間を求める (切り捨て)。"""
    if confirmed_count < 0:
        raise InvalidInputError(f"確定済み割り当て件数が負の値です: {confirmed_count}")
    return confirmed_count // ASSIGNMENTS_PER_REDUCTION_HOUR


def build_metric(allocated: float, used: int) -> BudgetMetric:
    return BudgetMetric(allocated=allocated, used=used)


def count_confirmed_by_level(rows: Iterable[LedgerRow]) -> Dict[str, int]:
    rows = list(rows)
    return {level: len(confirmed_rows(rows, level)) for level in SCHOOL_LEVELS}


def _validate_allocation(budget: MinistryBudget) -> None:
    for key in ("total_allocated", "elementary_allocated", "middle_school_allocated"):
        value = budget.get(key)
        if value is None:
            raise InvalidInputError(f"予算設定に必須項目 '{key}' がありません。")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidInputError(f"予算設定の '{key}' が有限の数値ではありません: {value!r}")
        if value < 0:
            raise InvalidInputError(f"予算設定の '{key}' が負の値です: {value}")


def calculate_budget(rows: Iterable[LedgerRow], budget: MinistryBudget) -> BudgetSummary:
    """
    台帳の行と文部省の配分時間から、全体・小学校・中学校の予算指標を算出する。

    各カテゴリの使用時間は独立に切り捨てるため、全体の使用時間は
    floor(確定総数 / 2) ではなく、カテゴリごとの使用時間の合計になる。
    残り時間は負になり得る (予算超過) が、丸めずにそのまま返す。
    """
    _validate_allocation(budget)
    counts = count_confirmed_by_level(rows)

    elementary_used = used_hours_for(counts[ELEMENTARY])
    middle_used = used_hours_for(counts[MIDDLE_SCHOOL])

    summary = BudgetSummary(
        total=build_metric(budget["total_allocated"], elementary_used + middle_used),
        elementary=build_metric(budget["elementary_allocated"], elementary_used),
        middle_school=build_metric(budget["middle_school_allocated"], middle_used),
    )
    logger.info(
        f"予算算出: 確定件数(小={counts[ELEMENTARY]}, 中={counts[MIDDLE_SCHOOL]}), "
        f"使用時間(全体={summary.total.used}, 小={elementary_used}, 中={middle_used})"
    )
    return summary
