"""
Pure rules for leave requests: derived values and date checks.

Nothing here touches the database; the same functions back request-body
validation and entity construction.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional

from leave_portal.core.errors import ValidationError

ACADEMIC_YEAR_PATTERN = re.compile(r"^\d{4}-\d{4}$")


def today() -> date:
    """Current UTC date; the same clock labels the academic year."""
    return datetime.now(timezone.utc).date()


def days_requested(from_date: date, to_date: date) -> int:
    """Inclusive day count: a single-day request is 1."""
    if to_date < from_date:
        raise ValueError("to_date must not be before from_date")
    return (to_date - from_date).days + 1


def academic_year_for(moment: Optional[datetime | date] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return f"{moment.year}-{moment.year + 1}"


def is_valid_academic_year(value: str) -> bool:
    if not ACADEMIC_YEAR_PATTERN.match(value):
        return False
    start, end = (int(part) for part in value.split("-"))
    return end == start + 1


def validate_schedule(from_date: date, to_date: date, *, on: Optional[date] = None) -> None:
    current = on or today()
    errors = []
    if from_date < current:
        errors.append({"field": "from_date", "message": "From date must be today or in the future"})
    if to_date < from_date:
        errors.append({"field": "to_date", "message": "To date must be after or equal to from date"})
    if errors:
        raise ValidationError(errors)
