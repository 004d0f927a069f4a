from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from leave_portal.core.errors import ValidationError
from leave_portal.core.policy import LeaveAction, authorize
from leave_portal.models.enums import LeaveStatus, Role
from leave_portal.models.leave import LeaveRequest
from leave_portal.models.user import User
from leave_portal.services.leave_rules import academic_year_for, is_valid_academic_year

_STATUS_ORDER = {status: index for index, status in enumerate(LeaveStatus)}


def percentage(count: int, total: int) -> int:
    """Whole-number share of ``total``, rounding halves up; 0 when total is 0."""
    if total == 0:
        return 0
    value = Decimal(count) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _resolve_year(academic_year: Optional[str]) -> str:
    if academic_year is None:
        return academic_year_for()
    if not is_valid_academic_year(academic_year):
        raise ValidationError.single("academic_year", "Academic year must be in format YYYY-YYYY")
    return academic_year


def _status_buckets(query) -> List[Dict]:
    rows = (
        query.with_entities(
            LeaveRequest.status,
            func.count(LeaveRequest.id),
            func.coalesce(func.sum(LeaveRequest.days_requested), 0),
        )
        .group_by(LeaveRequest.status)
        .all()
    )
    buckets = [
        {"status": LeaveStatus(status), "count": int(count), "total_days": int(total_days)}
        for status, count, total_days in rows
    ]
    buckets.sort(key=lambda bucket: _STATUS_ORDER[bucket["status"]])
    return buckets


def summarize(buckets: List[Dict]) -> Dict[str, int]:
    counts = {bucket["status"]: bucket["count"] for bucket in buckets}
    total = sum(counts.values())
    return {
        "total_requests": total,
        "approval_rate": percentage(counts.get(LeaveStatus.APPROVED, 0), total),
        "pending_rate": percentage(counts.get(LeaveStatus.PENDING, 0), total),
        "rejection_rate": percentage(counts.get(LeaveStatus.REJECTED, 0), total),
    }


def _department_breakdown(db: Session, academic_year: str) -> List[Dict]:
    def _count(status: LeaveStatus):
        return func.coalesce(func.sum(case((LeaveRequest.status == status, 1), else_=0)), 0)

    rows = (
        db.query(
            User.department,
            func.count(LeaveRequest.id),
            _count(LeaveStatus.APPROVED),
            _count(LeaveStatus.REJECTED),
            _count(LeaveStatus.PENDING),
        )
        .select_from(LeaveRequest)
        .join(User, User.id == LeaveRequest.student_user_id)
        .filter(LeaveRequest.academic_year == academic_year)
        .group_by(User.department)
        .all()
    )
    breakdown = [
        {
            "department": department,
            "total_requests": int(total),
            "approved": int(approved),
            "rejected": int(rejected),
            "pending": int(pending),
        }
        for department, total, approved, rejected, pending in rows
    ]
    breakdown.sort(key=lambda row: (-row["total_requests"], row["department"] or ""))
    return breakdown


def leave_stats(
    db: Session,
    actor: User,
    *,
    academic_year: Optional[str] = None,
    department: Optional[str] = None,
) -> Dict:
    """Status totals for an academic year, plus a per-department breakdown.

    The breakdown is only computed when no department filter is given.
    """
    authorize(actor, LeaveAction.VIEW_STATS)
    year = _resolve_year(academic_year)

    query = db.query(LeaveRequest).filter(LeaveRequest.academic_year == year)
    if department:
        query = query.join(User, User.id == LeaveRequest.student_user_id).filter(
            User.department == department,
            User.role == Role.STUDENT,
        )
    overall = _status_buckets(query)

    return {
        "academic_year": year,
        "department": department,
        "overall": overall,
        "department_wise": [] if department else _department_breakdown(db, year),
        "summary": summarize(overall),
    }


def student_stats(db: Session, actor: User, *, academic_year: Optional[str] = None) -> Dict:
    authorize(actor, LeaveAction.VIEW_OWN_STATS)
    year = _resolve_year(academic_year)
    query = db.query(LeaveRequest).filter(
        LeaveRequest.student_user_id == actor.id,
        LeaveRequest.academic_year == year,
    )
    overall = _status_buckets(query)
    return {
        "academic_year": year,
        "department": None,
        "overall": overall,
        "department_wise": [],
        "summary": summarize(overall),
    }
