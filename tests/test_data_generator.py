import datetime

from allocation_health.collaborators import InMemoryAllocationStore, load_dataset
from allocation_health.data_generator import academic_year_start, build_sample_dataset, generate_sample_data
from allocation_health.health_gateway import ReportServices, build_latest_health_report


def test_academic_year_starts_in_october():
    assert academic_year_start(datetime.date(2025, 11, 3)) == datetime.date(2025, 10, 1)
    assert academic_year_start(datetime.date(2026, 3, 1)) == datetime.date(2025, 10, 1)


def test_sample_dataset_is_reproducible():
    a = build_sample_dataset(seed=7, today_date=datetime.date(2026, 1, 15))
    b = build_sample_dataset(seed=7, today_date=datetime.date(2026, 1, 15))
    assert a == b
    assert len(a["plans"]) == 4
    assert len(a["assignments"]) == 4 * 80


def test_over_budget_dataset_is_not_compliant():
    dataset = build_sample_dataset(seed=3, over_budget=True, today_date=datetime.date(2026, 1, 15))
    store = InMemoryAllocationStore.from_dataset(dataset)
    report = build_latest_health_report(ReportServices.from_store(store))
    assert not report.is_budget_compliant
    assert report.compliance_warning


def test_generate_sample_data_writes_loadable_files(tmp_path):
    generate_sample_data(str(tmp_path), num_teachers=10, assignments_per_plan=5, num_years=1, seed=1)
    dataset = load_dataset(tmp_path)
    assert len(dataset["teachers"]) == 10
    assert len(dataset["assignments"]) == 2 * 5
    store = InMemoryAllocationStore.from_dataset(dataset)
    assert store.get_plan(store.latest_plan_id())["is_current"] is True
