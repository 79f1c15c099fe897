import io
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from allocation_health.utilization import teacher_display_name
from allocation_health.utils.types import (
    AllocationHealthReport, BudgetMetric, LedgerRow, TeacherRecord, TeacherUtilization, UtilizationAnalysis,
)

logger = logging.getLogger(__name__)

UTILIZATION_SHEETS = {
    "unassigned": "Unassigned Teachers",
    "under_utilized": "Under-Utilized Teachers",
    "over_utilized": "Over-Utilized Teachers",
    "perfectly_utilized": "Perfectly Utilized Teachers",
}

ASSIGNMENT_COLUMNS = [
    "割当ID", "教員ID", "教員名", "実習種別ID", "教科ID", "学校区分", "学生グループ人数", "ステータス",
]
UTILIZATION_COLUMNS = ["教員ID", "教員名", "メール", "学校名", "割当件数", "備考"]


# --- 1件ごとの変換関数 ---

def budget_metric_row(label: str, metric: BudgetMetric) -> Dict[str, Any]:
    return {"区分": label, "配分時間": metric.allocated, "使用時間": metric.used, "残り時間": metric.remaining}


def assignment_detail_row(row: LedgerRow, teacher: Optional[TeacherRecord] = None) -> Dict[str, Any]:
    return {
        "割当ID": row["assignment_id"],
        "教員ID": row["teacher_id"],
        "教員名": teacher_display_name(teacher),
        "実習種別ID": row["internship_type_id"],
        "教科ID": row.get("subject_id"),
        "学校区分": row["school_level"],
        "学生グループ人数": row["student_group_size"],
        "ステータス": row["status"],
    }


def utilization_row(entry: TeacherUtilization) -> Dict[str, Any]:
    return {
        "教員ID": entry["teacher_id"],
        "教員名": entry["teacher_name"],
        "メール": entry.get("email") or "",
        "学校名": entry["school_name"],
        "割当件数": entry["assignment_count"],
        "備考": entry["notes"],
    }


# --- DataFrame 化 ---

def budget_dataframe(report: AllocationHealthReport) -> pd.DataFrame:
    return pd.DataFrame([
        budget_metric_row("全体", report.total_budget),
        budget_metric_row("小学校", report.elementary_budget),
        budget_metric_row("中学校", report.middle_school_budget),
    ])


def summary_dataframe(report: AllocationHealthReport) -> pd.DataFrame:
    items = [
        ("計画名", report.plan_name),
        ("バージョン", report.plan_version),
        ("学年度", report.academic_year),
        ("ステータス", report.status),
        ("学生数", report.total_student_count),
        ("必要教員数", report.total_required_teachers),
        ("割当済み教員数", report.total_assigned_teachers),
        ("充足率(%)", round(report.fulfillment_percentage, 1)),
        ("予算準拠", "YES" if report.is_budget_compliant else "NO"),
        ("警告", report.compliance_warning or "なし"),
        ("生成日時", report.generated_at.strftime("%Y-%m-%d %H:%M:%S")),
    ]
    return pd.DataFrame(items, columns=["項目", "値"])


def assignments_dataframe(
    rows: Iterable[LedgerRow],
    teachers: Optional[Iterable[TeacherRecord]] = None,
) -> pd.DataFrame:
    teachers_by_id = {t["id"]: t for t in teachers or [] if t.get("id") is not None}
    records = [assignment_detail_row(r, teachers_by_id.get(r["teacher_id"])) for r in rows]
    return pd.DataFrame(records, columns=ASSIGNMENT_COLUMNS)


def utilization_dataframes(analysis: UtilizationAnalysis) -> Dict[str, pd.DataFrame]:
    return {
        key: pd.DataFrame([utilization_row(e) for e in getattr(analysis, key)], columns=UTILIZATION_COLUMNS)
        for key in UTILIZATION_SHEETS
    }


def export_report_to_excel(
    report: AllocationHealthReport,
    output: Union[str, io.BytesIO, None] = None,
    rows: Optional[List[LedgerRow]] = None,
    teachers: Optional[List[TeacherRecord]] = None,
    analysis: Optional[UtilizationAnalysis] = None,
) -> Union[str, io.BytesIO]:
    """
    健全性レポートを複数シートのExcelブックに書き出す。
    output を省略した場合は BytesIO に書き込んで返す (Streamlitのダウンロードボタン用)。
    """
    target = output if output is not None else io.BytesIO()
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        summary_dataframe(report).to_excel(writer, sheet_name="Summary", index=False)
        budget_dataframe(report).to_excel(writer, sheet_name="Budget Summary", index=False)
        if rows is not None:
            assignments_dataframe(rows, teachers).to_excel(writer, sheet_name="Assignments", index=False)
        if analysis is not None:
            for key, df in utilization_dataframes(analysis).items():
                df.to_excel(writer, sheet_name=UTILIZATION_SHEETS[key], index=False)
    if isinstance(target, io.BytesIO):
        target.seek(0)
    logger.info(f"計画(ID: {report.plan_id}) のレポートをExcelに書き出しました。")
    return target
