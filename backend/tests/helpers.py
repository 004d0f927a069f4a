from __future__ import annotations

from datetime import timedelta

from leave_portal.core.security import create_access_token
from leave_portal.models.user import User
from leave_portal.services.leave_rules import today


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def leave_payload(start_in_days: int = 10, length_days: int = 3, **overrides) -> dict:
    """Body for POST /api/leaves in the camelCase shape the web client sends."""
    from_date = today() + timedelta(days=start_in_days)
    to_date = from_date + timedelta(days=length_days - 1)
    payload = {
        "type": "leave",
        "reason": "Family emergency travel",
        "fromDate": from_date.isoformat(),
        "toDate": to_date.isoformat(),
        "semester": "4",
        "emergencyContact": {"name": "Anita", "phone": "9876543210", "relation": "Parent"},
    }
    payload.update(overrides)
    return payload
