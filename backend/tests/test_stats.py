from __future__ import annotations

from datetime import date

import pytest

from leave_portal.core.errors import ForbiddenError, ValidationError
from leave_portal.models.enums import LeaveStatus, LeaveType, Role
from leave_portal.models.leave import LeaveRequest
from leave_portal.models.user import User
from leave_portal.services.leave_rules import academic_year_for
from leave_portal.services.stats import leave_stats, percentage, student_stats, summarize

from helpers import auth_headers


def _insert(db, student: User, status: LeaveStatus, *, days: int = 2, academic_year: str | None = None) -> LeaveRequest:
    leave = LeaveRequest(
        student_user_id=student.id,
        leave_type=LeaveType.LEAVE,
        reason="Family function out of town",
        from_date=date(2025, 3, 10),
        to_date=date(2025, 3, 9 + days),
        days_requested=days,
        semester="4",
        academic_year=academic_year or academic_year_for(),
        emergency_contact_name="Anita",
        emergency_contact_phone="9876543210",
        emergency_contact_relation="Parent",
        status=status,
    )
    db.add(leave)
    db.commit()
    return leave


@pytest.fixture()
def third_student(db) -> User:
    user = User(
        name="Meera Student",
        email="meera@example.com",
        hashed_password="not-used",
        role=Role.STUDENT,
        department="Mechanical",
        student_id="ME2021010",
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def seeded(db, student, other_student, third_student):
    # Computer Science: 2 requests; Mechanical: 3 requests.
    _insert(db, student, LeaveStatus.APPROVED, days=3)
    _insert(db, student, LeaveStatus.PENDING, days=1)
    _insert(db, other_student, LeaveStatus.REJECTED, days=2)
    _insert(db, other_student, LeaveStatus.APPROVED, days=4)
    _insert(db, third_student, LeaveStatus.PENDING, days=5)
    # Outside the current academic year.
    _insert(db, student, LeaveStatus.APPROVED, academic_year="2001-2002")


def test_percentage_rounds_half_up():
    assert percentage(1, 8) == 13  # 12.5
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(0, 0) == 0
    assert percentage(5, 5) == 100


def test_summarize_empty_is_all_zero():
    assert summarize([]) == {
        "total_requests": 0,
        "approval_rate": 0,
        "pending_rate": 0,
        "rejection_rate": 0,
    }


@pytest.mark.usefixtures("seeded")
def test_overall_counts_and_days(db, faculty):
    stats = leave_stats(db, faculty)

    assert stats["academic_year"] == academic_year_for()
    overall = {bucket["status"]: bucket for bucket in stats["overall"]}
    assert overall[LeaveStatus.APPROVED] == {"status": LeaveStatus.APPROVED, "count": 2, "total_days": 7}
    assert overall[LeaveStatus.PENDING]["count"] == 2
    assert overall[LeaveStatus.PENDING]["total_days"] == 6
    assert overall[LeaveStatus.REJECTED]["count"] == 1
    assert [bucket["status"] for bucket in stats["overall"]] == [
        LeaveStatus.PENDING,
        LeaveStatus.APPROVED,
        LeaveStatus.REJECTED,
    ]

    summary = stats["summary"]
    assert summary["total_requests"] == sum(bucket["count"] for bucket in stats["overall"]) == 5
    assert summary["approval_rate"] == 40
    assert summary["pending_rate"] == 40
    assert summary["rejection_rate"] == 20


@pytest.mark.usefixtures("seeded")
def test_department_breakdown_is_consistent_and_sorted(db, admin):
    rows = leave_stats(db, admin)["department_wise"]

    assert [row["department"] for row in rows] == ["Mechanical", "Computer Science"]
    for row in rows:
        assert row["total_requests"] == row["approved"] + row["rejected"] + row["pending"]
    mech = rows[0]
    assert (mech["approved"], mech["rejected"], mech["pending"]) == (1, 1, 1)


def test_department_ties_sort_by_name(db, faculty, student, other_student):
    _insert(db, other_student, LeaveStatus.PENDING)
    _insert(db, student, LeaveStatus.PENDING)
    rows = leave_stats(db, faculty)["department_wise"]
    assert [row["department"] for row in rows] == ["Computer Science", "Mechanical"]


@pytest.mark.usefixtures("seeded")
def test_department_filter_limits_overall_and_skips_breakdown(db, faculty):
    stats = leave_stats(db, faculty, department="Computer Science")

    assert stats["department"] == "Computer Science"
    assert stats["department_wise"] == []
    assert stats["summary"]["total_requests"] == 2
    assert stats["summary"]["approval_rate"] == 50


@pytest.mark.usefixtures("seeded")
def test_explicit_academic_year(db, faculty):
    stats = leave_stats(db, faculty, academic_year="2001-2002")
    assert stats["summary"]["total_requests"] == 1
    assert stats["summary"]["approval_rate"] == 100

    empty = leave_stats(db, faculty, academic_year="1990-1991")
    assert empty["overall"] == []
    assert empty["department_wise"] == []
    assert empty["summary"]["total_requests"] == 0

    with pytest.raises(ValidationError):
        leave_stats(db, faculty, academic_year="2001-2003")


def test_students_cannot_view_global_stats(db, student):
    with pytest.raises(ForbiddenError):
        leave_stats(db, student)


@pytest.mark.usefixtures("seeded")
def test_student_stats_cover_only_own_requests(db, student, faculty):
    stats = student_stats(db, student)
    assert stats["summary"]["total_requests"] == 2
    assert stats["department_wise"] == []
    assert {bucket["status"] for bucket in stats["overall"]} == {LeaveStatus.APPROVED, LeaveStatus.PENDING}

    with pytest.raises(ForbiddenError):
        student_stats(db, faculty)


@pytest.mark.usefixtures("seeded")
def test_stats_endpoints(client, student, faculty):
    response = client.get("/api/leaves/stats", headers=auth_headers(faculty))
    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["total_requests"] == 5
    assert body["overall"][0] == {"status": "pending", "count": 2, "total_days": 6}
    assert body["department_wise"][0]["department"] == "Mechanical"

    filtered = client.get("/api/leaves/stats?department=Mechanical", headers=auth_headers(faculty)).json()
    assert filtered["summary"]["total_requests"] == 3
    assert filtered["department_wise"] == []

    mine = client.get("/api/leaves/my-stats", headers=auth_headers(student))
    assert mine.status_code == 200
    assert mine.json()["summary"]["total_requests"] == 2

    assert client.get("/api/leaves/my-stats", headers=auth_headers(faculty)).status_code == 403
