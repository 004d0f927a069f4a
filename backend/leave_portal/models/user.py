from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_portal.db.base import Base, IDMixin, TimestampMixin
from leave_portal.models.enums import Role


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.STUDENT, nullable=False, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    # College roll number; only students carry one.
    student_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    leave_requests: Mapped[List["LeaveRequest"]] = relationship(
        back_populates="student",
        foreign_keys="LeaveRequest.student_user_id",
        cascade="all, delete-orphan",
    )
    leave_reviews: Mapped[List["LeaveRequest"]] = relationship(
        back_populates="reviewer",
        foreign_keys="LeaveRequest.reviewed_by_user_id",
    )
