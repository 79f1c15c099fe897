# allocation_health/utils/types.py

from dataclasses import dataclass, field
from typing import List, Dict, Any, TypedDict, Optional, Union
import datetime

# --- 0. 外部サービスから受け取るデータの型定義 ---
# 計画、割り当て、予算、人員要件の各サービス(DBやJSONファイルなど)が返すデータの型を定義します。
# 注: 日付は datetime.date / datetime.datetime、またはISO形式の文字列のどちらでも受け付けます。

ASSIGNMENT_STATUSES = ("PLANNED", "CONFIRMED", "CANCELLED", "ON_HOLD")
CONFIRMED_STATUS = "CONFIRMED"
CANCELLED_STATUS = "CANCELLED"

PLAN_STATUSES = ("DRAFT", "IN_REVIEW", "APPROVED", "ARCHIVED")

ELEMENTARY = "ELEMENTARY"
MIDDLE_SCHOOL = "MIDDLE"
SCHOOL_LEVELS = (ELEMENTARY, MIDDLE_SCHOOL)

# 学校種別 -> 予算カテゴリ。小学校以外はすべて中学校予算に集計する。
SCHOOL_TYPE_TO_LEVEL = {
    "PRIMARY": ELEMENTARY,
    "ELEMENTARY": ELEMENTARY,
    "MIDDLE": MIDDLE_SCHOOL,
    "SECONDARY": MIDDLE_SCHOOL,
    "VOCATIONAL": MIDDLE_SCHOOL,
    "SPECIAL_EDUCATION": MIDDLE_SCHOOL,
}

class PlanMetadata(TypedDict):
    """割り当て計画1件分のメタデータ"""
    id: int
    plan_name: str
    plan_version: str
    status: str
    is_current: bool
    notes: Optional[str]
    academic_year_id: int
    academic_year_name: str
    created_at: Union[datetime.datetime, str]

class AssignmentRecord(TypedDict, total=False):
    """割り当てサービスが返す生の割り当て1件分"""
    id: int
    plan_id: int
    teacher_id: int
    internship_type_id: int
    subject_id: Optional[int]
    school_type: str
    student_group_size: int
    status: str

class LedgerRow(TypedDict):
    """台帳が返す、学校種別カテゴリでタグ付けされた割り当て1件分"""
    assignment_id: int
    teacher_id: int
    internship_type_id: int
    subject_id: Optional[int]
    school_level: str
    student_group_size: int
    status: str

class MinistryBudget(TypedDict):
    """文部省から提示される学年度ごとの軽減時間の配分"""
    total_allocated: float
    elementary_allocated: float
    middle_school_allocated: float

class StaffingRequirements(TypedDict):
    """計画に対する必要教員数と学生数"""
    total_required_teachers: int
    total_student_count: int

class TeacherRecord(TypedDict, total=False):
    """教員ディレクトリの教員1人分"""
    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    school_name: Optional[str]
    employment_status: str

# --- 1. 設定オブジェクト関連の型定義 ---

@dataclass
class ReportSettings:
    """健全性レポート生成の振る舞いを制御するパラメータ"""
    fetch_timeout_seconds: float = 30.0

# --- 2. 出力関連の型定義 ---

@dataclass(frozen=True)
class BudgetMetric:
    """軽減時間の (配分, 使用, 残り)。残りは常に 配分 - 使用 から導出される。"""
    allocated: float
    used: int

    @property
    def remaining(self) -> float:
        return self.allocated - self.used

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0

    def to_dict(self) -> Dict[str, float]:
        return {"allocated": self.allocated, "used": self.used, "remaining": self.remaining}

@dataclass(frozen=True)
class BudgetSummary:
    """全体・小学校・中学校の3つの予算指標"""
    total: BudgetMetric
    elementary: BudgetMetric
    middle_school: BudgetMetric

    def metrics(self) -> Dict[str, BudgetMetric]:
        return {"total": self.total, "elementary": self.elementary, "middle_school": self.middle_school}

@dataclass(frozen=True)
class AllocationHealthReport:
    """割り当て計画の健全性レポート。永続化されず、要求ごとに再計算される。"""
    plan_id: int
    plan_name: str
    plan_version: str
    academic_year: str
    status: str
    total_budget: BudgetMetric
    elementary_budget: BudgetMetric
    middle_school_budget: BudgetMetric
    total_student_count: int
    total_required_teachers: int
    total_assigned_teachers: int
    fulfillment_percentage: float
    is_budget_compliant: bool
    compliance_warning: str = ""
    generated_at: datetime.datetime = field(default_factory=datetime.datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "plan_version": self.plan_version,
            "academic_year": self.academic_year,
            "status": self.status,
            "total_budget": self.total_budget.to_dict(),
            "elementary_budget": self.elementary_budget.to_dict(),
            "middle_school_budget": self.middle_school_budget.to_dict(),
            "total_student_count": self.total_student_count,
            "total_required_teachers": self.total_required_teachers,
            "total_assigned_teachers": self.total_assigned_teachers,
            "fulfillment_percentage": self.fulfillment_percentage,
            "is_budget_compliant": self.is_budget_compliant,
            "compliance_warning": self.compliance_warning,
            "generated_at": self.generated_at.isoformat(),
        }

class TeacherUtilization(TypedDict):
    """教員1人分の稼働状況"""
    teacher_id: int
    teacher_name: str
    email: Optional[str]
    school_name: str
    assignment_count: int
    notes: str

@dataclass
class UtilizationAnalysis:
    """教員の稼働状況を4つのグループに分類した結果"""
    unassigned: List[TeacherUtilization] = field(default_factory=list)
    under_utilized: List[TeacherUtilization] = field(default_factory=list)
    perfectly_utilized: List[TeacherUtilization] = field(default_factory=list)
    over_utilized: List[TeacherUtilization] = field(default_factory=list)
