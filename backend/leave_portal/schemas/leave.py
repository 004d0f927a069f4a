from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from leave_portal.models.enums import SEMESTERS, LeaveStatus, LeaveType
from leave_portal.schemas.base import ORMModel
from leave_portal.schemas.user import ReviewerSummary, StudentSummary
from leave_portal.services.leave_rules import today

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")


def _trimmed_length(value: str, *, label: str, minimum: int, maximum: int) -> str:
    value = value.strip()
    if not minimum <= len(value) <= maximum:
        raise ValueError(f"{label} must be between {minimum} and {maximum} characters")
    return value


class EmergencyContact(BaseModel):
    name: str
    phone: str
    relation: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _trimmed_length(value, label="Emergency contact name", minimum=2, maximum=50)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        value = value.strip()
        if not PHONE_PATTERN.match(value):
            raise ValueError("Emergency contact phone must be a valid 10-digit number")
        return value

    @field_validator("relation")
    @classmethod
    def validate_relation(cls, value: str) -> str:
        return _trimmed_length(value, label="Emergency contact relation", minimum=2, maximum=20)


class LeaveRequestCreate(BaseModel):
    """Body of a new leave request; derived fields are never accepted."""

    model_config = ConfigDict(extra="ignore")

    leave_type: LeaveType = Field(validation_alias=AliasChoices("type", "leave_type", "leaveType"))
    reason: str
    from_date: date = Field(validation_alias=AliasChoices("from_date", "fromDate"))
    to_date: date = Field(validation_alias=AliasChoices("to_date", "toDate"))
    semester: str
    emergency_contact: EmergencyContact = Field(
        validation_alias=AliasChoices("emergency_contact", "emergencyContact")
    )

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, value: str) -> str:
        return _trimmed_length(value, label="Reason", minimum=10, maximum=500)

    @field_validator("from_date")
    @classmethod
    def validate_from_date(cls, value: date) -> date:
        if value < today():
            raise ValueError("From date must be today or in the future")
        return value

    @field_validator("to_date")
    @classmethod
    def validate_to_date(cls, value: date, info: ValidationInfo) -> date:
        from_date = info.data.get("from_date")
        if from_date is not None and value < from_date:
            raise ValueError("To date must be after or equal to from date")
        return value

    @field_validator("semester", mode="before")
    @classmethod
    def validate_semester(cls, value) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or value.strip() not in SEMESTERS:
            raise ValueError("Semester must be between 1 and 8")
        return value.strip()


class LeaveStatusUpdate(BaseModel):
    status: LeaveStatus
    faculty_remarks: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("faculty_remarks", "facultyRemarks"),
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: LeaveStatus) -> LeaveStatus:
        if value == LeaveStatus.PENDING:
            raise ValueError("Status must be either approved or rejected")
        return value

    @field_validator("faculty_remarks")
    @classmethod
    def validate_remarks(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if len(value) > 300:
            raise ValueError("Faculty remarks cannot exceed 300 characters")
        return value


class EmergencyContactRead(ORMModel):
    name: str
    phone: str
    relation: str


class LeaveRequestRead(ORMModel):
    id: int
    student_user_id: int
    leave_type: LeaveType
    reason: str
    from_date: date
    to_date: date
    days_requested: int
    semester: str
    academic_year: str
    emergency_contact: EmergencyContactRead
    status: LeaveStatus
    faculty_remarks: Optional[str] = None
    reviewed_by_user_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    student: Optional[StudentSummary] = None
    reviewer: Optional[ReviewerSummary] = None


class Pagination(ORMModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next: bool
    has_prev: bool


class LeaveRequestPage(ORMModel):
    items: List[LeaveRequestRead]
    pagination: Pagination


class LeaveDeleted(ORMModel):
    id: int
    message: str = "Leave request deleted successfully"
