"""Tests for derived leave values and request-body validation."""
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from leave_portal.core.errors import ValidationError
from leave_portal.models.enums import LeaveType
from leave_portal.schemas.leave import LeaveRequestCreate, LeaveStatusUpdate
from leave_portal.services import leave_rules
from leave_portal.services.leave_rules import (
    academic_year_for,
    days_requested,
    is_valid_academic_year,
    today,
    validate_schedule,
)

from helpers import leave_payload


def test_days_requested_is_inclusive():
    assert days_requested(date(2025, 3, 10), date(2025, 3, 12)) == 3
    assert days_requested(date(2025, 3, 10), date(2025, 3, 10)) == 1
    # Across a month boundary and a leap day.
    assert days_requested(date(2024, 2, 28), date(2024, 3, 1)) == 3


def test_days_requested_rejects_reversed_range():
    with pytest.raises(ValueError):
        days_requested(date(2025, 3, 12), date(2025, 3, 10))


def test_academic_year_uses_calendar_year_of_creation():
    assert academic_year_for(datetime(2025, 1, 5, tzinfo=timezone.utc)) == "2025-2026"
    assert academic_year_for(date(2025, 12, 31)) == "2025-2026"
    current = datetime.now(timezone.utc).year
    assert academic_year_for() == f"{current}-{current + 1}"


def test_today_and_academic_year_share_the_utc_clock(monkeypatch):
    class _NewYearsEve(datetime):
        @classmethod
        def now(cls, tz=None):
            return datetime(2025, 12, 31, 23, 30, tzinfo=timezone.utc).astimezone(tz)

    monkeypatch.setattr(leave_rules, "datetime", _NewYearsEve)
    assert today() == date(2025, 12, 31)
    assert academic_year_for() == f"{today().year}-{today().year + 1}" == "2025-2026"


def test_academic_year_format_check():
    assert is_valid_academic_year("2025-2026")
    assert not is_valid_academic_year("2025-2027")
    assert not is_valid_academic_year("25-26")
    assert not is_valid_academic_year("2025/2026")


def test_validate_schedule_reports_each_field():
    with pytest.raises(ValidationError) as excinfo:
        validate_schedule(date(2025, 3, 10), date(2025, 3, 9), on=date(2025, 3, 11))
    fields = {error["field"] for error in excinfo.value.errors}
    assert fields == {"from_date", "to_date"}


def test_validate_schedule_allows_today():
    validate_schedule(date(2025, 3, 10), date(2025, 3, 10), on=date(2025, 3, 10))


def test_create_body_accepts_camel_case_and_trims():
    body = LeaveRequestCreate.model_validate(
        leave_payload(type="on-duty", reason="   Representing college at hackathon   ")
    )
    assert body.leave_type == LeaveType.ON_DUTY
    assert body.reason == "Representing college at hackathon"
    assert body.emergency_contact.phone == "9876543210"
    assert body.to_date - body.from_date == timedelta(days=2)


def test_create_body_accepts_snake_case_and_integer_semester():
    start = today()
    body = LeaveRequestCreate.model_validate(
        {
            "leave_type": "leave",
            "reason": "Medical appointment in town",
            "from_date": start.isoformat(),
            "to_date": start.isoformat(),
            "semester": 8,
            "emergency_contact": {"name": "Jo", "phone": "0123456789", "relation": "Sibling"},
        }
    )
    assert body.semester == "8"
    assert body.from_date == start


def test_create_body_ignores_derived_fields():
    body = LeaveRequestCreate.model_validate(leave_payload(daysRequested=99, status="approved"))
    assert not hasattr(body, "days_requested")
    assert not hasattr(body, "status")


@pytest.mark.parametrize(
    "overrides, bad_field",
    [
        ({"type": "vacation"}, "type"),
        ({"reason": "short"}, "reason"),
        ({"reason": "x" * 501}, "reason"),
        ({"semester": "9"}, "semester"),
        ({"fromDate": "not-a-date"}, "date"),
    ],
)
def test_create_body_rejects_invalid_fields(overrides, bad_field):
    with pytest.raises(PydanticValidationError) as excinfo:
        LeaveRequestCreate.model_validate(leave_payload(**overrides))
    locations = [".".join(str(part) for part in error["loc"]) for error in excinfo.value.errors()]
    assert any(bad_field in location.lower() for location in locations)


def test_create_body_rejects_past_start_date():
    with pytest.raises(PydanticValidationError) as excinfo:
        LeaveRequestCreate.model_validate(leave_payload(start_in_days=-1))
    assert "today or in the future" in str(excinfo.value)


def test_create_body_rejects_end_before_start():
    payload = leave_payload(start_in_days=5)
    payload["toDate"] = (today() + timedelta(days=4)).isoformat()
    with pytest.raises(PydanticValidationError) as excinfo:
        LeaveRequestCreate.model_validate(payload)
    assert "after or equal to from date" in str(excinfo.value)


@pytest.mark.parametrize(
    "contact, fragment",
    [
        ({"name": "A", "phone": "9876543210", "relation": "Parent"}, "name"),
        ({"name": "Anita", "phone": "98765", "relation": "Parent"}, "phone"),
        ({"name": "Anita", "phone": "98765abcde", "relation": "Parent"}, "phone"),
        ({"name": "Anita", "phone": "9876543210", "relation": "P"}, "relation"),
        ({"name": "Anita", "phone": "9876543210"}, "relation"),
    ],
)
def test_emergency_contact_rules(contact, fragment):
    with pytest.raises(PydanticValidationError) as excinfo:
        LeaveRequestCreate.model_validate(leave_payload(emergencyContact=contact))
    locations = [".".join(str(part) for part in error["loc"]) for error in excinfo.value.errors()]
    assert any(location.endswith(fragment) for location in locations)


def test_status_update_rejects_pending_and_long_remarks():
    with pytest.raises(PydanticValidationError):
        LeaveStatusUpdate.model_validate({"status": "pending"})
    with pytest.raises(PydanticValidationError):
        LeaveStatusUpdate.model_validate({"status": "approved", "facultyRemarks": "x" * 301})
    update = LeaveStatusUpdate.model_validate({"status": "rejected", "facultyRemarks": "  Clashes with exams "})
    assert update.faculty_remarks == "Clashes with exams"
