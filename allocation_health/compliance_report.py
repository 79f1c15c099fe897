import logging
from typing import Iterable, List

from allocation_health.assignment_ledger import confirmed_rows
from allocation_health.utils.types import (
    AllocationHealthReport, BudgetMetric, BudgetSummary, LedgerRow, PlanMetadata, StaffingRequirements,
)

logger = logging.getLogger(__name__)

FULL_FULFILLMENT_PERCENTAGE = 100.0

_BUDGET_LABELS = {"total": "全体", "elementary": "小学校", "middle_school": "中学校"}


def count_assigned_teachers(rows: Iterable[LedgerRow]) -> int:
    """確定済み割り当てを1件以上持つ教員の人数 (重複なし)。"""
    return len({r["teacher_id"] for r in confirmed_rows(rows)})


def fulfillment_percentage(total_assigned: int, total_required: int) -> float:
    if total_required == 0:
        return 0.0
    return 100.0 * total_assigned / total_required


def _is_within_budget(metric: BudgetMetric) -> bool:
    return metric.remaining >= 0


def is_budget_compliant(budget: BudgetSummary) -> bool:
    return all(_is_within_budget(metric) for metric in budget.metrics().values())


def compose_warning(budget: BudgetSummary, percentage: float) -> str:
    """非準拠または充足率100%未満の場合に警告文を組み立てる。問題がなければ空文字列。"""
    messages: List[str] = []
    for key, metric in budget.metrics().items():
        if not _is_within_budget(metric):
            messages.append(
                f"{_BUDGET_LABELS[key]}予算を {-metric.remaining:g} 時間超過しています "
                f"(配分 {metric.allocated:g} / 使用 {metric.used})。"
            )
    if not messages and not is_budget_compliant(budget):
        messages.append("予算の配分時間を満たしていません。")
    if percentage < FULL_FULFILLMENT_PERCENTAGE:
        messages.append(f"必要教員数に対する充足率が {percentage:.1f}% です。")
    return " ".join(messages)


def build_compliance_report(
    plan: PlanMetadata,
    budget: BudgetSummary,
    staffing: StaffingRequirements,
    total_assigned_teachers: int,
) -> AllocationHealthReport:
    """予算指標と充足状況から健全性レポートを組み立てる。副作用のない純粋な計算。"""
    total_required = staffing["total_required_teachers"]
    percentage = fulfillment_percentage(total_assigned_teachers, total_required)
    compliant = is_budget_compliant(budget)
    warning = compose_warning(budget, percentage)

    report = AllocationHealthReport(
        plan_id=plan["id"],
        plan_name=plan["plan_name"],
        plan_version=plan.get("plan_version", ""),
        academic_year=plan.get("academic_year_name") or "Unknown",
        status=plan["status"],
        total_budget=budget.total,
        elementary_budget=budget.elementary,
        middle_school_budget=budget.middle_school,
        total_student_count=staffing["total_student_count"],
        total_required_teachers=total_required,
        total_assigned_teachers=total_assigned_teachers,
        fulfillment_percentage=percentage,
        is_budget_compliant=compliant,
        compliance_warning=warning,
    )
    if warning:
        logger.warning(f"計画(ID: {plan['id']}) に警告があります: {warning}")
    return report
