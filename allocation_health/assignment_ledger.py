import logging
from dataclasses import dataclass, fields
from typing import List, Dict, Any, Optional, Iterable

from allocation_health.utils.error_definitions import InvalidInputError
from allocation_health.utils.types import (
    AssignmentRecord, LedgerRow, ASSIGNMENT_STATUSES, SCHOOL_TYPE_TO_LEVEL, CONFIRMED_STATUS,
)

logger = logging.getLogger(__name__)


class _Unset:
    """パッチで「値が指定されていない」ことを表すセンチネル。None とは区別される。"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

UNSET: Any = _Unset()

_REQUIRED_FIELDS = ("teacher_id", "internship_type_id", "school_type", "status")


@dataclass(frozen=True)
class AssignmentPatch:
    """
    割り当ての部分更新リクエスト。
    UNSET のフィールドは更新対象外、None を含むそれ以外の値は明示的な更新として適用される。
    """
    teacher_id: Any = UNSET
    internship_type_id: Any = UNSET
    subject_id: Any = UNSET
    school_type: Any = UNSET
    student_group_size: Any = UNSET
    status: Any = UNSET

    def present_fields(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


def apply_patch(record: AssignmentRecord, patch: AssignmentPatch) -> AssignmentRecord:
    """指定されたフィールドだけを独立に適用した新しいレコードを返す。元のレコードは変更しない。"""
    updated = dict(record)
    for name, value in patch.present_fields().items():
        if value is None and name in _REQUIRED_FIELDS:
            raise InvalidInputError(f"割り当て(ID: {record.get('id')}) の必須項目 '{name}' を空にすることはできません。")
        if name == "status":
            value = normalize_status(value)
        elif name == "school_type":
            school_level_for(value)
            value = str(value).strip().upper()
        elif name == "student_group_size" and value is not None:
            value = _validate_group_size(value, record.get("id"))
        updated[name] = value
    return updated  # type: ignore


def normalize_status(status: Any) -> str:
    value = str(status).strip().upper() if status is not None else ""
    if value not in ASSIGNMENT_STATUSES:
        raise InvalidInputError(f"未知の割り当てステータスです: {status!r} (許可: {', '.join(ASSIGNMENT_STATUSES)})")
    return value


def school_level_for(school_type: Any) -> str:
    value = str(school_type).strip().upper() if school_type is not None else ""
    if value not in SCHOOL_TYPE_TO_LEVEL:
        raise InvalidInputError(f"未知の学校種別です: {school_type!r}")
    return SCHOOL_TYPE_TO_LEVEL[value]


def _validate_group_size(value: Any, assignment_id: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidInputError(f"割り当て(ID: {assignment_id}) の 'student_group_size' が整数ではありません: {value!r}")
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"割り当て(ID: {assignment_id}) の 'student_group_size' が整数ではありません: {value!r}")
    if size < 0:
        raise InvalidInputError(f"割り当て(ID: {assignment_id}) の 'student_group_size' が負の値です: {size}")
    return size


def to_ledger_row(record: AssignmentRecord) -> LedgerRow:
    """割り当てサービスの生レコードを、学校種別カテゴリでタグ付けされた台帳行に変換する。"""
    assignment_id = record.get("id")
    for key in ("id",) + _REQUIRED_FIELDS:
        if record.get(key) is None:
            raise InvalidInputError(f"割り当て(ID: {assignment_id}) に必須項目 '{key}' がありません。")
    return {
        "assignment_id": record["id"],
        "teacher_id": record["teacher_id"],
        "internship_type_id": record["internship_type_id"],
        "subject_id": record.get("subject_id"),
        "school_level": school_level_for(record["school_type"]),
        "student_group_size": _validate_group_size(record.get("student_group_size", 0), assignment_id),
        "status": normalize_status(record["status"]),
    }


class AssignmentLedger:
    """
    計画ごとの教員割り当てを保持する台帳。
    計画の存在確認と割り当ての取得は外部サービスに委譲し、ここでは正規化と並び替えのみを行う。
    """

    def __init__(self, plan_service, assignment_service):
        self._plan_service = plan_service
        self._assignment_service = assignment_service

    def assignments_for_plan(self, plan_id: int) -> List[LedgerRow]:
        """
        計画の全割り当てを割り当てID順で返す。
        計画が存在しない場合は NotFoundError (計画サービスが送出) がそのまま伝播する。
        """
        self._plan_service.get_plan(plan_id)
        records: Iterable[AssignmentRecord] = self._assignment_service.list_assignments(plan_id)
        rows = sorted((to_ledger_row(r) for r in records), key=lambda r: r["assignment_id"])
        logger.info(f"計画(ID: {plan_id}) の割り当てを {len(rows)} 件取得しました。")
        return rows


def confirmed_rows(rows: Iterable[LedgerRow], school_level: Optional[str] = None) -> List[LedgerRow]:
    """確定済みの行のみを返す。school_level を指定した場合はそのカテゴリに絞り込む。"""
    return [
        r for r in rows
        if r["status"] == CONFIRMED_STATUS and (school_level is None or r["school_level"] == school_level)
    ]
