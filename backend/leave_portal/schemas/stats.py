from __future__ import annotations

from typing import List, Optional

from leave_portal.models.enums import LeaveStatus
from leave_portal.schemas.base import ORMModel


class StatusBucket(ORMModel):
    status: LeaveStatus
    count: int
    total_days: int


class DepartmentStats(ORMModel):
    department: Optional[str] = None
    total_requests: int
    approved: int
    rejected: int
    pending: int


class StatsSummary(ORMModel):
    total_requests: int
    approval_rate: int
    pending_rate: int
    rejection_rate: int


class LeaveStatsRead(ORMModel):
    academic_year: str
    department: Optional[str] = None
    overall: List[StatusBucket]
    department_wise: List[DepartmentStats]
    summary: StatsSummary
