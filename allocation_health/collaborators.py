"""External service interfaces consumed by the health report, and an in-memory store implementing them."""
import copy
import datetime
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from dateutil import parser as date_parser, tz

from allocation_health.assignment_ledger import AssignmentPatch, apply_patch
from allocation_health.utils.error_definitions import InvalidInputError, NotFoundError
from allocation_health.utils.types import (
    AssignmentRecord, MinistryBudget, PlanMetadata, StaffingRequirements, TeacherRecord, PLAN_STATUSES,
)

logger = logging.getLogger(__name__)

DATASET_FILES = ("academic_years", "plans", "assignments", "demands", "teachers")


class PlanLookupService(Protocol):
    def get_plan(self, plan_id: int) -> PlanMetadata:
        """Return plan metadata or raise ``NotFoundError``."""


class AssignmentLookupService(Protocol):
    def list_assignments(self, plan_id: int) -> List[AssignmentRecord]:
        """Return the raw assignment records of the plan."""


class MinistryBudgetService(Protocol):
    def get_budget(self, academic_year_id: int) -> MinistryBudget:
        """Return the allocated reduction hours or raise ``NotFoundError``."""


class StaffingRequirementsService(Protocol):
    def get_requirements(self, plan_id: int) -> StaffingRequirements:
        """Return required-teacher and student totals for the plan."""


class TeacherDirectoryService(Protocol):
    def list_active_teachers(self) -> List[TeacherRecord]:
        """Return all teachers currently employed."""


def _created_at_key(plan: Dict[str, Any]):
    """作成日時の並び替えキー。タイムゾーンなしの日時はUTCとみなして比較する。"""
    value = plan.get("created_at")
    if isinstance(value, str):
        try:
            value = date_parser.isoparse(value)
        except ValueError as e:
            raise InvalidInputError(f"計画(ID: {plan['id']}) の 'created_at' が不正な日時です: {value!r}") from e
    if value is None:
        value = datetime.datetime.min
    if not isinstance(value, datetime.datetime):
        raise InvalidInputError(f"計画(ID: {plan['id']}) の 'created_at' が日時ではありません: {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz.UTC)
    return (value.astimezone(tz.UTC), plan["id"])


class InMemoryAllocationStore:
    """
    全サービスインターフェースを実装するインメモリのストア。
    プロトタイプUI、サンプルデータ、テストで使用する。
    """

    def __init__(
        self,
        academic_years: Optional[List[Dict[str, Any]]] = None,
        plans: Optional[List[Dict[str, Any]]] = None,
        assignments: Optional[List[AssignmentRecord]] = None,
        demands: Optional[List[Dict[str, Any]]] = None,
        teachers: Optional[List[TeacherRecord]] = None,
    ):
        self._academic_years = {y["id"]: dict(y) for y in academic_years or []}
        self._plans: Dict[int, Dict[str, Any]] = {}
        self._assignments: Dict[int, AssignmentRecord] = {}
        self._demands = [dict(d) for d in demands or []]
        self._teachers = [dict(t) for t in teachers or []]
        for plan in plans or []:
            self.add_plan(plan)
        for assignment in assignments or []:
            self.add_assignment(assignment)

    @classmethod
    def from_dataset(cls, dataset: Dict[str, List[Dict[str, Any]]]) -> "InMemoryAllocationStore":
        return cls(**{key: dataset.get(key, []) for key in DATASET_FILES})

    # --- PlanLookupService ---
    def get_plan(self, plan_id: int) -> PlanMetadata:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise NotFoundError(f"割り当て計画が見つかりません: {plan_id}")
        year = self._academic_years.get(plan.get("academic_year_id"), {})
        return {**copy.deepcopy(plan), "academic_year_name": year.get("year_name", "Unknown")}  # type: ignore

    def latest_plan_id(self) -> int:
        """作成日時が最も新しい計画のID (同時刻ならIDの大きい方)。"""
        if not self._plans:
            raise NotFoundError("割り当て計画が1件も登録されていません。")
        return max(self._plans.values(), key=_created_at_key)["id"]

    # --- AssignmentLookupService ---
    def list_assignments(self, plan_id: int) -> List[AssignmentRecord]:
        return [copy.deepcopy(a) for a in self._assignments.values() if a["plan_id"] == plan_id]

    # --- MinistryBudgetService ---
    def get_budget(self, academic_year_id: int) -> MinistryBudget:
        year = self._academic_years.get(academic_year_id)
        if year is None:
            raise NotFoundError(f"学年度が見つかりません: {academic_year_id}")
        return {
            "total_allocated": year.get("total_credit_hours") or 0,
            "elementary_allocated": year.get("elementary_school_hours") or 0,
            "middle_school_allocated": year.get("middle_school_hours") or 0,
        }

    # --- StaffingRequirementsService ---
    def get_requirements(self, plan_id: int) -> StaffingRequirements:
        academic_year_id = self.get_plan(plan_id)["academic_year_id"]
        demands = [d for d in self._demands if d.get("academic_year_id") == academic_year_id]
        return {
            "total_required_teachers": sum(d.get("required_teachers") or 0 for d in demands),
            "total_student_count": sum(d.get("student_count") or 0 for d in demands),
        }

    # --- TeacherDirectoryService ---
    def list_active_teachers(self) -> List[TeacherRecord]:
        return [copy.deepcopy(t) for t in self._teachers if t.get("employment_status", "ACTIVE") == "ACTIVE"]

    # --- 計画管理 ---
    def add_plan(self, plan: Dict[str, Any]) -> None:
        status = str(plan.get("status", "DRAFT")).upper()
        if status not in PLAN_STATUSES:
            raise InvalidInputError(f"未知の計画ステータスです: {plan.get('status')!r}")
        if plan["id"] in self._plans:
            raise InvalidInputError(f"計画IDが重複しています: {plan['id']}")
        self._plans[plan["id"]] = {
            "plan_version": "1.0", "is_current": False, "notes": None, **plan, "status": status,
        }

    def delete_plan(self, plan_id: int) -> int:
        """計画を削除し、その計画に属する割り当ても削除する。削除した割り当て件数を返す。"""
        if self._plans.pop(plan_id, None) is None:
            raise NotFoundError(f"割り当て計画が見つかりません: {plan_id}")
        owned = [aid for aid, a in self._assignments.items() if a["plan_id"] == plan_id]
        for aid in owned:
            del self._assignments[aid]
        logger.info(f"計画(ID: {plan_id}) と割り当て {len(owned)} 件を削除しました。")
        return len(owned)

    def add_assignment(self, assignment: AssignmentRecord) -> None:
        if assignment.get("plan_id") not in self._plans:
            raise NotFoundError(f"割り当て(ID: {assignment.get('id')}) の計画が見つかりません: {assignment.get('plan_id')}")
        if assignment["id"] in self._assignments:
            raise InvalidInputError(f"割り当てIDが重複しています: {assignment['id']}")
        self._assignments[assignment["id"]] = dict(assignment)  # type: ignore

    def update_assignment(self, plan_id: int, assignment_id: int, patch: AssignmentPatch) -> AssignmentRecord:
        current = self._assignments.get(assignment_id)
        if current is None or current["plan_id"] != plan_id:
            raise NotFoundError(f"計画(ID: {plan_id}) に割り当て(ID: {assignment_id}) が見つかりません。")
        updated = apply_patch(current, patch)
        self._assignments[assignment_id] = updated
        return copy.deepcopy(updated)


def load_dataset(data_dir: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    """data_generator が出力したJSONファイル群を読み込む。存在しないファイルは空リストとして扱う。"""
    data_path = Path(data_dir)
    dataset: Dict[str, List[Dict[str, Any]]] = {}
    for name in DATASET_FILES:
        file_path = data_path / f"{name}.json"
        if not file_path.exists():
            logger.warning(f"データファイルが見つかりません: {file_path}")
            dataset[name] = []
            continue
        with open(file_path, "r", encoding="utf-8") as f:
            try:
                dataset[name] = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"データファイル '{file_path}' のJSON形式が不正です: {e}") from e
    return dataset
