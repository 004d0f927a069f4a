from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"


class LeaveType(StrEnum):
    LEAVE = "leave"
    ON_DUTY = "on-duty"


class LeaveStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that block an overlapping request for the same student.
ACTIVE_LEAVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)
TERMINAL_LEAVE_STATUSES = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)

SEMESTERS = tuple(str(n) for n in range(1, 9))
