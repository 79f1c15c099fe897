import logging
from collections import Counter
from typing import Iterable, Optional

from allocation_health.utils.types import (
    LedgerRow, TeacherRecord, TeacherUtilization, UtilizationAnalysis, CANCELLED_STATUS,
)

logger = logging.getLogger(__name__)


def teacher_display_name(teacher: Optional[TeacherRecord]) -> str:
    """「姓, 名」形式の表示名。教員が不明な場合は 'Unknown'。"""
    if not teacher:
        return "Unknown"
    return f"{teacher.get('last_name') or ''}, {teacher.get('first_name') or ''}"


def analyze_utilization(teachers: Iterable[TeacherRecord], rows: Iterable[LedgerRow]) -> UtilizationAnalysis:
    """
    在籍中の教員ごとに計画内の割り当て件数 (キャンセルを除く) を数え、4つのグループに分類する。

    0件: 未割り当て、1件: 稼働不足 (軽減時間1時間には2件必要)、2件: 適正、3件以上: 過負荷。
    """
    counts = Counter(r["teacher_id"] for r in rows if r["status"] != CANCELLED_STATUS)
    analysis = UtilizationAnalysis()

    for teacher in teachers:
        if teacher.get("id") is None:
            logger.warning(f"IDのない教員データをスキップしました: {teacher}")
            continue
        count = counts.get(teacher["id"], 0)
        entry: TeacherUtilization = {
            "teacher_id": teacher["id"],
            "teacher_name": teacher_display_name(teacher),
            "email": teacher.get("email"),
            "school_name": teacher.get("school_name") or "Unknown",
            "assignment_count": count,
            "notes": "",
        }
        if count == 0:
            entry["notes"] = "警告: 未使用のリソース"
            analysis.unassigned.append(entry)
        elif count == 1:
            entry["notes"] = "警告: 割り当てが1件のみ (軽減時間には2件必要)"
            analysis.under_utilized.append(entry)
        elif count == 2:
            analysis.perfectly_utilized.append(entry)
        else:
            entry["notes"] = f"注意: 過負荷 ({count}件)"
            analysis.over_utilized.append(entry)

    logger.info(
        f"稼働分析: 未割り当て={len(analysis.unassigned)}, 稼働不足={len(analysis.under_utilized)}, "
        f"適正={len(analysis.perfectly_utilized)}, 過負荷={len(analysis.over_utilized)}"
    )
    return analysis
