import pytest

from allocation_health.collaborators import InMemoryAllocationStore


def make_assignment(assignment_id, teacher_id, school_type="PRIMARY", status="CONFIRMED", plan_id=1, **extra):
    record = {
        "id": assignment_id,
        "plan_id": plan_id,
        "teacher_id": teacher_id,
        "internship_type_id": 1,
        "subject_id": 7,
        "school_type": school_type,
        "student_group_size": 3,
        "status": status,
    }
    record.update(extra)
    return record


@pytest.fixture
def dataset():
    return {
        "academic_years": [
            {"id": 1, "year_name": "2025/26", "total_credit_hours": 10,
             "elementary_school_hours": 6, "middle_school_hours": 4},
        ],
        "plans": [
            {"id": 1, "plan_name": "Zuteilung 2025/26", "plan_version": "2.0", "status": "DRAFT",
             "is_current": True, "academic_year_id": 1, "created_at": "2025-09-15T09:00:00"},
            {"id": 2, "plan_name": "Zuteilung 2025/26", "plan_version": "1.0", "status": "ARCHIVED",
             "academic_year_id": 1, "created_at": "2025-09-01T09:00:00"},
        ],
        "assignments": [
            make_assignment(1, 100, "PRIMARY"),
            make_assignment(2, 100, "PRIMARY"),
            make_assignment(3, 101, "PRIMARY"),
            make_assignment(4, 102, "MIDDLE"),
            make_assignment(5, 102, "SECONDARY"),
            make_assignment(6, 103, "MIDDLE", status="PLANNED"),
            make_assignment(7, 104, "MIDDLE", status="CANCELLED"),
        ],
        "demands": [
            {"id": 1, "academic_year_id": 1, "required_teachers": 4, "student_count": 12},
            {"id": 2, "academic_year_id": 1, "required_teachers": 2, "student_count": 5},
        ],
        "teachers": [
            {"id": 100, "first_name": "Anna", "last_name": "Müller", "school_name": "GS Passau"},
            {"id": 101, "first_name": "Lukas", "last_name": "Weber", "school_name": "GS Passau"},
            {"id": 102, "first_name": "Marie", "last_name": "Fischer"},
            {"id": 105, "first_name": "Paul", "last_name": "Becker"},
            {"id": 106, "first_name": "Lea", "last_name": "Schulz", "employment_status": "INACTIVE"},
        ],
    }


@pytest.fixture
def store(dataset):
    return InMemoryAllocationStore.from_dataset(dataset)
