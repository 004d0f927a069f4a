"""Import all models so SQLAlchemy metadata is fully registered."""

from leave_portal.db.base import Base

from leave_portal.models.enums import LeaveStatus, LeaveType, Role
from leave_portal.models.leave import LeaveRequest
from leave_portal.models.user import User

__all__ = [
    "Base",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
    "Role",
    "User",
]
