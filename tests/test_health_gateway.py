from concurrent.futures import CancelledError
import time

import pytest

from allocation_health.health_gateway import (
    ReportServices, build_health_report, build_latest_health_report, build_utilization_analysis,
)
from allocation_health.utils.error_definitions import (
    FetchTimeoutError, NotFoundError, UpstreamUnavailableError,
)
from allocation_health.utils.types import ReportSettings


class SlowPlanService:
    def __init__(self, store, delay):
        self._store = store
        self._delay = delay

    def get_plan(self, plan_id):
        time.sleep(self._delay)
        return self._store.get_plan(plan_id)


class UnreachableBudgetService:
    def get_budget(self, academic_year_id):
        raise ConnectionError("connection refused")


class CancelledStaffingService:
    def get_requirements(self, plan_id):
        raise CancelledError()


def test_build_health_report(store):
    report = build_health_report(1, ReportServices.from_store(store))
    assert report.plan_id == 1
    assert report.plan_name == "Zuteilung 2025/26"
    assert report.academic_year == "2025/26"
    assert report.elementary_budget.used == 1
    assert report.middle_school_budget.used == 1
    assert report.total_budget.used == 2
    assert report.total_budget.remaining == 8
    assert report.total_required_teachers == 6
    assert report.total_student_count == 17
    assert report.total_assigned_teachers == 3
    assert report.fulfillment_percentage == 50.0
    assert report.is_budget_compliant
    assert report.compliance_warning


def test_unknown_plan_raises_not_found(store):
    with pytest.raises(NotFoundError):
        build_health_report(999, ReportServices.from_store(store))


def test_missing_academic_year_raises_not_found(store):
    store.add_plan({"id": 3, "plan_name": "Ohne Jahr", "status": "DRAFT", "academic_year_id": 42})
    with pytest.raises(NotFoundError):
        build_health_report(3, ReportServices.from_store(store))


def test_slow_plan_lookup_times_out_as_not_found(store):
    services = ReportServices(SlowPlanService(store, 0.5), store, store, store)
    with pytest.raises(NotFoundError) as excinfo:
        build_health_report(1, services, ReportSettings(fetch_timeout_seconds=0.05))
    assert isinstance(excinfo.value, FetchTimeoutError)


def test_connection_failure_raises_upstream_unavailable(store):
    services = ReportServices(store, store, UnreachableBudgetService(), store)
    with pytest.raises(UpstreamUnavailableError):
        build_health_report(1, services)


def test_cancelled_fetch_raises_timeout(store):
    services = ReportServices(store, store, store, CancelledStaffingService())
    with pytest.raises(FetchTimeoutError):
        build_health_report(1, services)


def test_latest_report_uses_most_recent_plan(store):
    report = build_latest_health_report(ReportServices.from_store(store))
    assert report.plan_id == 1


def test_over_budget_plan_is_not_compliant(dataset):
    from allocation_health.collaborators import InMemoryAllocationStore
    dataset["academic_years"][0]["middle_school_hours"] = 0
    store = InMemoryAllocationStore.from_dataset(dataset)
    report = build_health_report(1, ReportServices.from_store(store))
    assert report.middle_school_budget.remaining == -1
    assert report.total_budget.remaining >= 0
    assert not report.is_budget_compliant
    assert report.compliance_warning


def test_utilization_analysis(store):
    analysis = build_utilization_analysis(1, ReportServices.from_store(store))
    assert [t["teacher_id"] for t in analysis.unassigned] == [105]
    assert [t["teacher_id"] for t in analysis.under_utilized] == [101]
    assert [t["teacher_id"] for t in analysis.perfectly_utilized] == [100, 102]
    assert analysis.over_utilized == []


def test_utilization_requires_teacher_directory(store):
    services = ReportServices(store, store, store, store)
    with pytest.raises(UpstreamUnavailableError):
        build_utilization_analysis(1, services)
