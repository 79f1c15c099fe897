import datetime
import random
import json
import argparse
from pathlib import Path
from dateutil.relativedelta import relativedelta
from typing import List, Dict, Any, Optional

# --- Constants ---
SCHOOL_TYPES = ["PRIMARY", "MIDDLE", "SECONDARY", "VOCATIONAL", "SPECIAL_EDUCATION"]
SCHOOL_TYPE_WEIGHTS = [5, 3, 1, 1, 1]

INTERNSHIP_TYPES = [
    {"id": 1, "internship_code": "PDP I"},
    {"id": 2, "internship_code": "PDP II"},
    {"id": 3, "internship_code": "ZSP"},
    {"id": 4, "internship_code": "SFP"},
]

# 割り当てステータスの出現比率 (確定が多め)
ASSIGNMENT_STATUS_WEIGHTS = {"CONFIRMED": 6, "PLANNED": 2, "ON_HOLD": 1, "CANCELLED": 1}

FIRST_NAMES = ["Anna", "Lukas", "Marie", "Jonas", "Lea", "Felix", "Sophie", "Paul", "Laura", "Max"]
LAST_NAMES = ["Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer", "Wagner", "Becker", "Hoffmann", "Schulz"]

# --- Data Generation Functions ---

def academic_year_start(today_date: datetime.date) -> datetime.date:
    """today_date を含む学年度の開始日 (10月1日) を返す。"""
    start = today_date.replace(month=10, day=1)
    if today_date < start:
        start -= relativedelta(years=1)
    return start

def generate_academic_years_data(today_date: datetime.date, num_years: int = 2) -> List[Dict[str, Any]]:
    """
    学年度データ (文部省からの軽減時間配分を含む) を生成する。
    Args:
        today_date: 現在の日付。
        num_years: 現在の学年度から遡って生成する年度数。
    Returns:
        生成された学年度データのリスト。
    """
    current_start = academic_year_start(today_date)
    academic_years = []
    for i in range(num_years):
        start = current_start - relativedelta(years=num_years - 1 - i)
        elementary_hours = random.randint(40, 80)
        middle_hours = random.randint(30, 60)
        academic_years.append({
            "id": i + 1,
            "year_name": f"{start.year}/{(start.year + 1) % 100:02d}",
            "total_credit_hours": elementary_hours + middle_hours,
            "elementary_school_hours": elementary_hours,
            "middle_school_hours": middle_hours,
            "budget_announcement_date": start - relativedelta(months=2),
            "allocation_deadline": start + relativedelta(months=1),
        })
    return academic_years

def generate_teachers_data(num_teachers: int) -> List[Dict[str, Any]]:
    """教員データを生成する。約1割は休職中 (INACTIVE) とする。"""
    teachers_data = []
    for i in range(num_teachers):
        first_name = random.choice(FIRST_NAMES)
        last_name = random.choice(LAST_NAMES)
        school_type = random.choices(SCHOOL_TYPES, weights=SCHOOL_TYPE_WEIGHTS)[0]
        teachers_data.append({
            "id": i + 1,
            "first_name": first_name,
            "last_name": last_name,
            "email": f"{first_name.lower()}.{i + 1}@schule.example",
            "school_name": f"{school_type.title().replace('_', ' ')} School {i % 12 + 1}",
            "school_type": school_type,
            "employment_status": "INACTIVE" if random.random() < 0.1 else "ACTIVE",
        })
    return teachers_data

def generate_plans_data(academic_years: List[Dict[str, Any]], today_date: datetime.date) -> List[Dict[str, Any]]:
    """各学年度に計画を2件 (旧版はアーカイブ済み、新版がカレント) 生成する。"""
    plans_data = []
    plan_id = 1
    for year in academic_years:
        for version in (1, 2):
            created_at = datetime.datetime.combine(
                today_date - relativedelta(years=len(academic_years) - year["id"], weeks=4 - version * 2),
                datetime.time(9, 0),
            )
            is_latest_version = version == 2
            plans_data.append({
                "id": plan_id,
                "plan_name": f"Zuteilung {year['year_name']}",
                "plan_version": f"{version}.0",
                "status": "DRAFT" if is_latest_version else "ARCHIVED",
                "is_current": is_latest_version,
                "notes": None if is_latest_version else "旧版",
                "academic_year_id": year["id"],
                "created_at": created_at,
            })
            plan_id += 1
    return plans_data

def generate_assignments_data(
    plans: List[Dict[str, Any]],
    teachers: List[Dict[str, Any]],
    assignments_per_plan: int,
) -> List[Dict[str, Any]]:
    """計画ごとに教員割り当てを生成する。学校種別は担当教員の所属校に合わせる。"""
    statuses = list(ASSIGNMENT_STATUS_WEIGHTS.keys())
    weights = list(ASSIGNMENT_STATUS_WEIGHTS.values())
    assignments_data = []
    assignment_id = 1
    for plan in plans:
        for _ in range(assignments_per_plan):
            teacher = random.choice(teachers)
            internship_type = random.choice(INTERNSHIP_TYPES)
            assignments_data.append({
                "id": assignment_id,
                "plan_id": plan["id"],
                "teacher_id": teacher["id"],
                "internship_type_id": internship_type["id"],
                "subject_id": random.randint(1, 15),
                "school_type": teacher["school_type"],
                "student_group_size": random.randint(1, 6),
                "status": random.choices(statuses, weights=weights)[0],
            })
            assignment_id += 1
    return assignments_data

def generate_demands_data(academic_years: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """学年度ごと・実習種別ごとの必要教員数と学生数 (実習需要) を生成する。"""
    demands_data = []
    demand_id = 1
    for year in academic_years:
        for internship_type in INTERNSHIP_TYPES:
            for school_type in ("PRIMARY", "MIDDLE"):
                required = random.randint(3, 12)
                demands_data.append({
                    "id": demand_id,
                    "academic_year_id": year["id"],
                    "internship_type_id": internship_type["id"],
                    "school_type": school_type,
                    "required_teachers": required,
                    "student_count": required * random.randint(2, 5),
                    "is_forecasted": False,
                })
                demand_id += 1
    return demands_data

def _make_over_budget(academic_years: List[Dict[str, Any]]) -> str:
    """全学年度の配分時間を極端に小さくして、予算超過のデータにする。"""
    for year in academic_years:
        year["elementary_school_hours"] = 1
        year["middle_school_hours"] = 1
        year["total_credit_hours"] = 2
    return "全学年度の配分時間を 小学校=1, 中学校=1, 全体=2 に縮小しました。"

def convert_dates_to_iso_str(obj):
    """日付オブジェクトをISOフォーマット文字列に変換してJSONシリアライズ可能にする"""
    if isinstance(obj, (datetime.date, datetime.datetime)):
        return obj.isoformat()
    if isinstance(obj, list):
        return [convert_dates_to_iso_str(elem) for elem in obj]
    if isinstance(obj, dict):
        return {k: convert_dates_to_iso_str(v) for k, v in obj.items()}
    return obj

def build_sample_dataset(
    num_teachers: int = 60,
    assignments_per_plan: int = 80,
    num_years: int = 2,
    over_budget: bool = False,
    today_date: Optional[datetime.date] = None,
    seed: Optional[int] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    サンプルデータセットを生成してメモリ上で返す (ファイルには書き出さない)。
    日付はISO形式の文字列に変換済み。
    """
    if seed is not None:
        random.seed(seed)
    today_date = today_date or datetime.date.today()

    academic_years = generate_academic_years_data(today_date, num_years)
    teachers = generate_teachers_data(num_teachers)
    plans = generate_plans_data(academic_years, today_date)
    assignments = generate_assignments_data(plans, teachers, assignments_per_plan)
    demands = generate_demands_data(academic_years)
    if over_budget:
        _make_over_budget(academic_years)

    return convert_dates_to_iso_str({
        "academic_years": academic_years,
        "plans": plans,
        "assignments": assignments,
        "demands": demands,
        "teachers": teachers,
    })

def generate_sample_data(
    output_dir: str,
    num_teachers: int = 60,
    assignments_per_plan: int = 80,
    num_years: int = 2,
    over_budget: bool = False,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """
    指定された条件でサンプルデータを生成し、JSONファイルとして保存する。
    Args:
        output_dir: 生成されたデータを保存するディレクトリ。
        num_teachers: 生成する教員の数。
        assignments_per_plan: 計画ごとに生成する割り当ての数。
        num_years: 生成する学年度の数。
        over_budget: 予算超過となるよう配分時間を縮小するかどうかのフラグ。
        seed: 乱数シード。
    Returns:
        生成された全データを含む辞書。
    """
    print(f"--- データ生成開始: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')} ---")
    print(f"出力ディレクトリ: {output_dir}")
    print(f"教員数: {num_teachers}, 割り当て/計画: {assignments_per_plan}, 学年度数: {num_years}")
    print(f"予算超過データ: {over_budget}")

    generated_data = build_sample_dataset(
        num_teachers=num_teachers,
        assignments_per_plan=assignments_per_plan,
        num_years=num_years,
        over_budget=over_budget,
        seed=seed,
    )
    print(
        f"生成データ数: 学年度={len(generated_data['academic_years'])}, 計画={len(generated_data['plans'])}, "
        f"割り当て={len(generated_data['assignments'])}, 教員={len(generated_data['teachers'])}"
    )

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    for name, records in generated_data.items():
        with open(output_path / f"{name}.json", "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)

    print(f"データ生成完了。ファイルは '{output_dir}' に保存されました。")
    return generated_data

# --- Command Line Argument Parsing ---
if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="割り当て健全性レポート用のサンプルデータを生成します。",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--output_dir", type=str, default="data", help="生成されたJSONファイルを保存するディレクトリ。デフォルト: data")
    parser.add_argument("--num_teachers", type=int, default=60, help="生成する教員の数。デフォルト: 60")
    parser.add_argument("--assignments_per_plan", type=int, default=80, help="計画ごとの割り当て数。デフォルト: 80")
    parser.add_argument("--num_years", type=int, default=2, help="生成する学年度の数。デフォルト: 2")
    parser.add_argument("--over_budget", action="store_true", help="配分時間を縮小し、予算超過のデータを生成します。")
    parser.add_argument("--seed", type=int, default=None, help="乱数シード (再現性のあるデータ生成用)。")

    args = parser.parse_args()

    generate_sample_data(
        output_dir=args.output_dir,
        num_teachers=args.num_teachers,
        assignments_per_plan=args.assignments_per_plan,
        num_years=args.num_years,
        over_budget=args.over_budget,
        seed=args.seed,
    )
