from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from leave_portal.core.deps import get_current_user, require_action
from leave_portal.core.policy import LeaveAction, authorize
from leave_portal.core.settings import settings
from leave_portal.db.session import get_db
from leave_portal.models.enums import LeaveStatus
from leave_portal.models.user import User
from leave_portal.schemas.leave import (
    LeaveDeleted,
    LeaveRequestCreate,
    LeaveRequestPage,
    LeaveRequestRead,
    LeaveStatusUpdate,
)
from leave_portal.schemas.stats import LeaveStatsRead
from leave_portal.services import leave as leave_service
from leave_portal.services import stats as stats_service
from leave_portal.services.leave import LeaveFilters, Page

router = APIRouter(prefix="/api/leaves", tags=["leaves"])

ACADEMIC_YEAR_PATTERN = r"^\d{4}-\d{4}$"


def _reviewer_for(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> User:
    # Runs before the status body is validated: unknown id is 404, wrong role 403.
    leave = leave_service.get_leave_or_404(db, leave_id)
    authorize(current_user, LeaveAction.TRANSITION, leave)
    return current_user


def _page_response(page: Page) -> LeaveRequestPage:
    return LeaveRequestPage(
        items=[LeaveRequestRead.model_validate(leave) for leave in page.items],
        pagination=page.pagination(),
    )


@router.post("", response_model=LeaveRequestRead, status_code=status.HTTP_201_CREATED)
def create_leave_request(
    leave_in: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(LeaveAction.CREATE)),
) -> LeaveRequestRead:
    leave = leave_service.create_leave_request(db, current_user, leave_in)
    return LeaveRequestRead.model_validate(leave)


@router.get("/my-requests", response_model=LeaveRequestPage)
def my_leave_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    academic_year: Optional[str] = Query(None, pattern=ACADEMIC_YEAR_PATTERN),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveRequestPage:
    result = leave_service.list_own_leave_requests(
        db,
        current_user,
        page=page,
        limit=limit,
        status=status_filter,
        academic_year=academic_year,
    )
    return _page_response(result)


@router.get("/my-stats", response_model=LeaveStatsRead)
def my_leave_stats(
    academic_year: Optional[str] = Query(None, pattern=ACADEMIC_YEAR_PATTERN),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveStatsRead:
    return LeaveStatsRead.model_validate(
        stats_service.student_stats(db, current_user, academic_year=academic_year)
    )


@router.get("", response_model=LeaveRequestPage)
def list_leave_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: Optional[LeaveStatus] = Query(None, alias="status"),
    department: Optional[str] = Query(None, min_length=2, max_length=50),
    academic_year: Optional[str] = Query(None, pattern=ACADEMIC_YEAR_PATTERN),
    semester: Optional[str] = Query(None, pattern=r"^[1-8]$"),
    student_id: Optional[int] = Query(None, description="User id of the student"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveRequestPage:
    filters = LeaveFilters(
        status=status_filter,
        academic_year=academic_year,
        semester=semester,
        department=department.strip() if department else None,
        student_user_id=student_id,
    )
    result = leave_service.list_leave_requests(db, current_user, filters, page=page, limit=limit)
    return _page_response(result)


@router.get("/stats", response_model=LeaveStatsRead)
def leave_stats(
    academic_year: Optional[str] = Query(None, pattern=ACADEMIC_YEAR_PATTERN),
    department: Optional[str] = Query(None, min_length=2, max_length=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveStatsRead:
    return LeaveStatsRead.model_validate(
        stats_service.leave_stats(
            db,
            current_user,
            academic_year=academic_year,
            department=department.strip() if department else None,
        )
    )


@router.get("/{leave_id}", response_model=LeaveRequestRead)
def get_leave_request(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveRequestRead:
    leave = leave_service.get_leave_request(db, current_user, leave_id)
    return LeaveRequestRead.model_validate(leave)


@router.put("/{leave_id}/status", response_model=LeaveRequestRead)
def update_leave_status(
    leave_id: int,
    update_in: LeaveStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_reviewer_for),
) -> LeaveRequestRead:
    leave = leave_service.transition_leave(
        db,
        current_user,
        leave_id,
        update_in.status,
        update_in.faculty_remarks,
    )
    return LeaveRequestRead.model_validate(leave)


@router.delete("/{leave_id}", response_model=LeaveDeleted)
def delete_leave_request(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LeaveDeleted:
    leave_service.delete_leave_request(db, current_user, leave_id)
    return LeaveDeleted(id=leave_id)
