from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_portal.db.base import Base, IDMixin, TimestampMixin
from leave_portal.models.enums import LeaveStatus, LeaveType


class LeaveRequest(IDMixin, TimestampMixin, Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        CheckConstraint("to_date >= from_date", name="date_order"),
        CheckConstraint("days_requested >= 1", name="days_positive"),
        Index("ix_leave_requests_dates", "from_date", "to_date"),
        Index("ix_leave_requests_year_semester", "academic_year", "semester"),
    )

    student_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[LeaveType] = mapped_column(Enum(LeaveType, name="leave_type"), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_requested: Mapped[int] = mapped_column(Integer, nullable=False)
    semester: Mapped[str] = mapped_column(String(1), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(9), nullable=False, index=True)

    emergency_contact_name: Mapped[str] = mapped_column(String(50), nullable=False)
    emergency_contact_phone: Mapped[str] = mapped_column(String(10), nullable=False)
    emergency_contact_relation: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[LeaveStatus] = mapped_column(
        Enum(LeaveStatus, name="leave_status"),
        default=LeaveStatus.PENDING,
        nullable=False,
        index=True,
    )
    faculty_remarks: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    reviewed_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped["User"] = relationship(back_populates="leave_requests", foreign_keys=[student_user_id])
    reviewer: Mapped[Optional["User"]] = relationship(back_populates="leave_reviews", foreign_keys=[reviewed_by_user_id])

    @property
    def emergency_contact(self) -> dict:
        return {
            "name": self.emergency_contact_name,
            "phone": self.emergency_contact_phone,
            "relation": self.emergency_contact_relation,
        }
