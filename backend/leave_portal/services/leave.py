from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Query, Session, selectinload

from leave_portal.core.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from leave_portal.core.observability import leave_transitions_total
from leave_portal.core.policy import LeaveAction, authorize
from leave_portal.models.enums import ACTIVE_LEAVE_STATUSES, TERMINAL_LEAVE_STATUSES, LeaveStatus
from leave_portal.models.leave import LeaveRequest
from leave_portal.models.user import User
from leave_portal.schemas.leave import LeaveRequestCreate
from leave_portal.services.leave_rules import academic_year_for, days_requested, validate_schedule

logger = logging.getLogger("leave_portal.leave")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def find_conflict(
    db: Session,
    *,
    student_user_id: int,
    from_date: date,
    to_date: date,
    exclude_id: Optional[int] = None,
) -> Optional[LeaveRequest]:
    """First pending/approved request of the student overlapping the range (inclusive)."""
    query = db.query(LeaveRequest).filter(
        LeaveRequest.student_user_id == student_user_id,
        LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
        LeaveRequest.from_date <= to_date,
        LeaveRequest.to_date >= from_date,
    )
    if exclude_id is not None:
        query = query.filter(LeaveRequest.id != exclude_id)
    return query.order_by(LeaveRequest.from_date.asc(), LeaveRequest.id.asc()).first()


def build_leave_request(
    student: User,
    data: LeaveRequestCreate,
    *,
    now: Optional[datetime] = None,
    academic_year: Optional[str] = None,
) -> LeaveRequest:
    """Construct an unsaved pending request with its derived fields filled in."""
    validate_schedule(data.from_date, data.to_date)
    created_at = now or _now()
    contact = data.emergency_contact
    return LeaveRequest(
        student_user_id=student.id,
        leave_type=data.leave_type,
        reason=data.reason,
        from_date=data.from_date,
        to_date=data.to_date,
        days_requested=days_requested(data.from_date, data.to_date),
        semester=data.semester,
        academic_year=academic_year or academic_year_for(created_at),
        emergency_contact_name=contact.name,
        emergency_contact_phone=contact.phone,
        emergency_contact_relation=contact.relation,
        status=LeaveStatus.PENDING,
        created_at=created_at,
        updated_at=created_at,
    )


def create_leave_request(
    db: Session,
    actor: User,
    data: LeaveRequestCreate,
    *,
    academic_year: Optional[str] = None,
) -> LeaveRequest:
    authorize(actor, LeaveAction.CREATE)

    conflict = find_conflict(
        db,
        student_user_id=actor.id,
        from_date=data.from_date,
        to_date=data.to_date,
    )
    if conflict:
        raise ConflictError(
            "You already have a leave request for the overlapping dates",
            details={
                "conflict": {
                    "id": conflict.id,
                    "from_date": conflict.from_date.isoformat(),
                    "to_date": conflict.to_date.isoformat(),
                    "status": conflict.status.value,
                }
            },
        )

    leave = build_leave_request(actor, data, academic_year=academic_year)
    db.add(leave)
    db.commit()
    db.refresh(leave)

    logger.info(
        "leave_created",
        extra={"leave_request_id": leave.id, "student_user_id": actor.id, "user_id": actor.id},
    )
    return leave


def get_leave_or_404(db: Session, leave_id: int) -> LeaveRequest:
    leave = db.get(LeaveRequest, leave_id)
    if not leave:
        raise NotFoundError("Leave request not found")
    return leave


def get_leave_request(db: Session, actor: User, leave_id: int) -> LeaveRequest:
    leave = get_leave_or_404(db, leave_id)
    authorize(actor, LeaveAction.READ, leave)
    return leave


def transition_leave(
    db: Session,
    actor: User,
    leave_id: int,
    new_status: LeaveStatus,
    remarks: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> LeaveRequest:
    """Move a pending request to approved or rejected exactly once.

    The write is a conditional UPDATE on ``status = pending`` so that of two
    concurrent reviewers only the first succeeds; the other sees
    ``InvalidStateError``.
    """
    leave = get_leave_or_404(db, leave_id)
    authorize(actor, LeaveAction.TRANSITION, leave)
    if new_status not in TERMINAL_LEAVE_STATUSES:
        raise ValidationError.single("status", "Status must be either approved or rejected")
    if remarks is not None and len(remarks) > 300:
        raise ValidationError.single("faculty_remarks", "Faculty remarks cannot exceed 300 characters")

    reviewed_at = now or _now()
    result = db.execute(
        update(LeaveRequest)
        .where(LeaveRequest.id == leave_id, LeaveRequest.status == LeaveStatus.PENDING)
        .values(
            status=new_status,
            faculty_remarks=remarks or "",
            reviewed_by_user_id=actor.id,
            reviewed_at=reviewed_at,
            updated_at=reviewed_at,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidStateError("Leave request has already been processed")

    db.commit()
    db.refresh(leave)

    leave_transitions_total.labels(status=new_status.value).inc()
    logger.info(
        "leave_transitioned",
        extra={
            "leave_request_id": leave.id,
            "student_user_id": leave.student_user_id,
            "user_id": actor.id,
            "status": new_status.value,
        },
    )
    return leave


def delete_leave_request(db: Session, actor: User, leave_id: int) -> None:
    leave = get_leave_or_404(db, leave_id)
    authorize(actor, LeaveAction.DELETE, leave)

    result = db.execute(
        delete(LeaveRequest)
        .where(
            LeaveRequest.id == leave_id,
            LeaveRequest.student_user_id == actor.id,
            LeaveRequest.status == LeaveStatus.PENDING,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidStateError("Only pending leave requests can be deleted")

    db.expunge(leave)
    db.commit()
    logger.info(
        "leave_deleted",
        extra={"leave_request_id": leave_id, "student_user_id": actor.id, "user_id": actor.id},
    )


# ── Listing ─────────────────────────────────────────────────────────────


@dataclass
class LeaveFilters:
    status: Optional[LeaveStatus] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    department: Optional[str] = None
    student_user_id: Optional[int] = None


@dataclass
class Page:
    items: List[LeaveRequest]
    current_page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    def pagination(self) -> dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_count": self.total_count,
            "limit": self.limit,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


def _apply_filters(query: Query, filters: LeaveFilters) -> Query:
    if filters.status:
        query = query.filter(LeaveRequest.status == filters.status)
    if filters.academic_year:
        query = query.filter(LeaveRequest.academic_year == filters.academic_year)
    if filters.semester:
        query = query.filter(LeaveRequest.semester == filters.semester)
    if filters.student_user_id is not None:
        query = query.filter(LeaveRequest.student_user_id == filters.student_user_id)
    if filters.department:
        query = query.join(User, User.id == LeaveRequest.student_user_id).filter(
            User.department == filters.department
        )
    return query


def _paginate(query: Query, *, page: int, limit: int) -> Page:
    if page < 1:
        raise ValidationError.single("page", "Page must be a positive integer")
    if limit < 1:
        raise ValidationError.single("limit", "Limit must be a positive integer")
    total = query.count()
    items = (
        query.options(selectinload(LeaveRequest.student), selectinload(LeaveRequest.reviewer))
        .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items=items, current_page=page, limit=limit, total_count=total)


def list_own_leave_requests(
    db: Session,
    actor: User,
    *,
    page: int = 1,
    limit: int = 10,
    status: Optional[LeaveStatus] = None,
    academic_year: Optional[str] = None,
) -> Page:
    authorize(actor, LeaveAction.LIST_OWN)
    filters = LeaveFilters(status=status, academic_year=academic_year, student_user_id=actor.id)
    return _paginate(_apply_filters(db.query(LeaveRequest), filters), page=page, limit=limit)


def list_leave_requests(
    db: Session,
    actor: User,
    filters: Optional[LeaveFilters] = None,
    *,
    page: int = 1,
    limit: int = 10,
) -> Page:
    authorize(actor, LeaveAction.LIST_ALL)
    query = _apply_filters(db.query(LeaveRequest), filters or LeaveFilters())
    return _paginate(query, page=page, limit=limit)
