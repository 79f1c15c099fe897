import json

import pytest

from allocation_health.assignment_ledger import to_ledger_row
from allocation_health.budget_calculator import build_metric, calculate_budget, used_hours_for
from allocation_health.utils.error_definitions import InvalidInputError
from conftest import make_assignment

BUDGET = {"total_allocated": 10, "elementary_allocated": 6, "middle_school_allocated": 4}


def _rows(elementary, middle, status="CONFIRMED"):
    records = [make_assignment(i, i, "PRIMARY", status=status) for i in range(elementary)]
    records += [make_assignment(1000 + i, i, "MIDDLE", status=status) for i in range(middle)]
    return [to_ledger_row(r) for r in records]


def test_zero_confirmed_assignments_use_no_hours():
    summary = calculate_budget(_rows(3, 4, status="PLANNED"), BUDGET)
    assert summary.elementary.used == 0
    assert summary.middle_school.used == 0
    assert summary.elementary.remaining == 6
    assert summary.middle_school.remaining == 4
    assert summary.total.remaining == 10


def test_categories_round_down_independently():
    summary = calculate_budget(_rows(3, 5), BUDGET)
    assert summary.elementary.used == 1
    assert summary.middle_school.used == 2
    assert summary.total.used == 3


def test_used_hours_is_floor_and_monotonic():
    assert [used_hours_for(n) for n in range(6)] == [0, 0, 1, 1, 2, 2]
    values = [used_hours_for(n) for n in range(50)]
    assert values == sorted(values)


def test_used_hours_rejects_negative_count():
    with pytest.raises(InvalidInputError):
        used_hours_for(-1)


def test_remaining_can_be_negative():
    summary = calculate_budget(_rows(20, 0), BUDGET)
    assert summary.elementary.used == 10
    assert summary.elementary.remaining == -4
    assert summary.elementary.is_over_budget
    assert summary.total.remaining == 0


@pytest.mark.parametrize("allocated,used", [(0, 0), (5, 7), (2.5, 1), (10, 10)])
def test_remaining_equals_allocated_minus_used(allocated, used):
    metric = build_metric(allocated, used)
    assert metric.remaining == allocated - used
    assert metric.to_dict() == {"allocated": allocated, "used": used, "remaining": allocated - used}


def test_missing_allocation_is_invalid():
    with pytest.raises(InvalidInputError):
        calculate_budget([], {"total_allocated": 10, "elementary_allocated": 6})


def test_negative_allocation_is_invalid():
    with pytest.raises(InvalidInputError):
        calculate_budget([], {**BUDGET, "middle_school_allocated": -1})


@pytest.mark.parametrize("raw", ['NaN', 'Infinity', '"10"', 'true'])
def test_non_finite_or_non_numeric_allocation_is_invalid(raw):
    # JSON由来の値 (NaN/Infinity は json.loads が受け付ける)
    value = json.loads(raw)
    with pytest.raises(InvalidInputError):
        calculate_budget(_rows(2, 2), {**BUDGET, "elementary_allocated": value})


def test_float_allocation_is_accepted():
    summary = calculate_budget(_rows(2, 0), {**BUDGET, "elementary_allocated": 2.5})
    assert summary.elementary.remaining == 1.5
