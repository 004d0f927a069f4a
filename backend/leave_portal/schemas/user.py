from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from leave_portal.models.enums import Role
from leave_portal.schemas.base import ORMModel


class UserCreate(ORMModel):
    name: str
    email: str
    password: str = Field(..., min_length=6)
    role: Role = Role.STUDENT
    department: Optional[str] = None
    student_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("student_id", "studentId"))

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not 2 <= len(value) <= 50:
            raise ValueError("Name must be between 2 and 50 characters")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip()
        if "@" not in value:
            raise ValueError("Invalid email address")
        local, _, domain = value.partition("@")
        if not local or not domain or "." not in domain:
            raise ValueError("Invalid email address")
        return value.lower()

    @field_validator("department", "student_id")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class UserRead(ORMModel):
    id: int
    name: str
    email: str
    role: Role
    department: Optional[str] = None
    student_id: Optional[str] = None
    is_active: bool
    created_at: datetime


class StudentSummary(ORMModel):
    id: int
    name: str
    email: str
    student_id: Optional[str] = None
    department: Optional[str] = None


class ReviewerSummary(ORMModel):
    id: int
    name: str
    email: str
    role: Role
