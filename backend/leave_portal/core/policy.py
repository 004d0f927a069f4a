"""
Access policy for leave requests.

``LEAVE_POLICY`` is the one table that says which roles may perform which
leave action. Routers and services call :func:`authorize`; nothing else in
the package compares roles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import FrozenSet, Optional

from leave_portal.core.errors import ForbiddenError
from leave_portal.models.enums import Role

logger = logging.getLogger("security")


class LeaveAction(StrEnum):
    CREATE = "create"
    LIST_OWN = "list_own"
    LIST_ALL = "list_all"
    READ = "read"
    TRANSITION = "transition"
    DELETE = "delete"
    VIEW_STATS = "view_stats"
    VIEW_OWN_STATS = "view_own_stats"


@dataclass(frozen=True)
class Rule:
    roles: FrozenSet[Role]
    # Students must own the target request.
    owner_only_for_students: bool = False
    denied_message: str = "Not authorised to perform this action"


REVIEWER_ROLES = frozenset({Role.FACULTY, Role.ADMIN})
STUDENT_ONLY = frozenset({Role.STUDENT})
ANY_ROLE = frozenset(Role)


LEAVE_POLICY: dict[LeaveAction, Rule] = {
    LeaveAction.CREATE: Rule(STUDENT_ONLY, denied_message="Only students can create leave requests"),
    LeaveAction.LIST_OWN: Rule(STUDENT_ONLY, denied_message="Only students have their own leave requests"),
    LeaveAction.LIST_ALL: Rule(REVIEWER_ROLES, denied_message="Not authorised to view all leave requests"),
    LeaveAction.READ: Rule(
        ANY_ROLE,
        owner_only_for_students=True,
        denied_message="You can only view your own leave requests",
    ),
    LeaveAction.TRANSITION: Rule(REVIEWER_ROLES, denied_message="Not authorised to review leave requests"),
    LeaveAction.DELETE: Rule(
        STUDENT_ONLY,
        owner_only_for_students=True,
        denied_message="You can only delete your own leave requests",
    ),
    LeaveAction.VIEW_STATS: Rule(REVIEWER_ROLES, denied_message="Not authorised to view leave statistics"),
    LeaveAction.VIEW_OWN_STATS: Rule(STUDENT_ONLY, denied_message="Only students have personal leave statistics"),
}


def _coerce_role(value: Role | str | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value))
    except ValueError:
        return None


def role_of(user) -> Optional[Role]:
    return _coerce_role(getattr(user, "role", None))


def is_allowed(user, action: LeaveAction, leave=None) -> bool:
    rule = LEAVE_POLICY[action]
    role = role_of(user)
    if role is None or role not in rule.roles:
        return False
    if rule.owner_only_for_students and role == Role.STUDENT:
        if leave is None:
            return False
        return leave.student_user_id == user.id
    return True


def authorize(user, action: LeaveAction, leave=None) -> None:
    """Raise ``ForbiddenError`` unless ``user`` may perform ``action``.

    ``leave`` is the target request for actions scoped to one record; callers
    load it (and raise ``NotFoundError``) before calling this.
    """
    if is_allowed(user, action, leave):
        return
    logger.info(
        "leave_action_denied",
        extra={
            "user_id": getattr(user, "id", None),
            "action": action.value,
            "leave_request_id": getattr(leave, "id", None),
        },
    )
    raise ForbiddenError(LEAVE_POLICY[action].denied_message)
