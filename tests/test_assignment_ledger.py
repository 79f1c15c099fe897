import pytest

from allocation_health.assignment_ledger import (
    AssignmentLedger, AssignmentPatch, UNSET, apply_patch, confirmed_rows, to_ledger_row,
)
from allocation_health.utils.error_definitions import InvalidInputError, NotFoundError
from conftest import make_assignment


def test_assignments_for_plan_tags_school_level_and_orders(store):
    rows = AssignmentLedger(store, store).assignments_for_plan(1)
    assert [r["assignment_id"] for r in rows] == [1, 2, 3, 4, 5, 6, 7]
    assert rows[0]["school_level"] == "ELEMENTARY"
    assert rows[4]["school_level"] == "MIDDLE"  # SECONDARY は中学校予算に集計
    assert set(rows[0]) == {
        "assignment_id", "teacher_id", "internship_type_id", "subject_id",
        "school_level", "student_group_size", "status",
    }


def test_assignments_for_unknown_plan_raises_not_found(store):
    with pytest.raises(NotFoundError):
        AssignmentLedger(store, store).assignments_for_plan(999)


def test_plan_without_assignments_returns_empty(store):
    assert AssignmentLedger(store, store).assignments_for_plan(2) == []


def test_to_ledger_row_normalizes_status_case():
    row = to_ledger_row(make_assignment(1, 100, "primary", status="confirmed"))
    assert row["status"] == "CONFIRMED"
    assert row["school_level"] == "ELEMENTARY"


def test_to_ledger_row_rejects_unknown_status():
    with pytest.raises(InvalidInputError):
        to_ledger_row(make_assignment(1, 100, status="APPROVED"))


def test_to_ledger_row_rejects_negative_group_size():
    with pytest.raises(InvalidInputError):
        to_ledger_row(make_assignment(1, 100, student_group_size=-1))


@pytest.mark.parametrize("size", [2.7, float("nan"), True])
def test_to_ledger_row_rejects_fractional_group_size(size):
    with pytest.raises(InvalidInputError):
        to_ledger_row(make_assignment(1, 100, student_group_size=size))


def test_to_ledger_row_accepts_whole_float_group_size():
    assert to_ledger_row(make_assignment(1, 100, student_group_size=3.0))["student_group_size"] == 3


def test_to_ledger_row_rejects_missing_teacher():
    record = make_assignment(1, 100)
    del record["teacher_id"]
    with pytest.raises(InvalidInputError):
        to_ledger_row(record)


def test_confirmed_rows_filters_by_level():
    rows = [
        to_ledger_row(make_assignment(1, 100, "PRIMARY")),
        to_ledger_row(make_assignment(2, 100, "MIDDLE")),
        to_ledger_row(make_assignment(3, 100, "PRIMARY", status="PLANNED")),
    ]
    assert [r["assignment_id"] for r in confirmed_rows(rows)] == [1, 2]
    assert [r["assignment_id"] for r in confirmed_rows(rows, "ELEMENTARY")] == [1]


def test_patch_applies_only_present_fields():
    record = make_assignment(1, 100)
    updated = apply_patch(record, AssignmentPatch(status="planned", subject_id=None))
    assert updated["status"] == "PLANNED"
    assert updated["subject_id"] is None
    assert updated["teacher_id"] == 100
    assert updated["student_group_size"] == 3
    assert record["status"] == "CONFIRMED"


def test_empty_patch_is_noop():
    record = make_assignment(1, 100)
    assert AssignmentPatch().present_fields() == {}
    assert apply_patch(record, AssignmentPatch()) == record
    assert not UNSET


def test_patch_cannot_clear_required_field():
    with pytest.raises(InvalidInputError):
        apply_patch(make_assignment(1, 100), AssignmentPatch(teacher_id=None))


def test_patch_rejects_unknown_school_type():
    with pytest.raises(InvalidInputError):
        apply_patch(make_assignment(1, 100), AssignmentPatch(school_type="UNIVERSITY"))
