from allocation_health.assignment_ledger import to_ledger_row
from allocation_health.utilization import analyze_utilization, teacher_display_name
from conftest import make_assignment


def test_over_utilized_and_cancelled_ignored():
    teachers = [{"id": 1, "first_name": "Anna", "last_name": "Müller"}, {"id": 2}]
    rows = [to_ledger_row(make_assignment(i, 1)) for i in range(3)]
    rows.append(to_ledger_row(make_assignment(10, 2, status="CANCELLED")))
    analysis = analyze_utilization(teachers, rows)
    assert analysis.over_utilized[0]["assignment_count"] == 3
    assert analysis.over_utilized[0]["teacher_name"] == "Müller, Anna"
    assert analysis.unassigned[0]["teacher_id"] == 2
    assert analysis.unassigned[0]["school_name"] == "Unknown"


def test_teacher_without_id_is_skipped():
    analysis = analyze_utilization([{"first_name": "X"}], [])
    assert analysis.unassigned == []


def test_display_name_for_missing_teacher():
    assert teacher_display_name(None) == "Unknown"
