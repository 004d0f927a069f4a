from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, Request, Security
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from leave_portal.core.errors import AuthenticationError
from leave_portal.core.policy import LeaveAction, authorize
from leave_portal.core.security import decode_token
from leave_portal.db.session import get_db
from leave_portal.models.user import User

# auto_error=False so a missing header surfaces as our AuthenticationError.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)
logger = logging.getLogger("security")


def log_auth_event(event: str, *, request: Request, extra: Optional[dict] = None) -> None:
    payload = {
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else None,
    }
    if extra:
        payload.update(extra)
    logger.info(event, extra=payload)


def get_current_user(
    request: Request,
    token: Optional[str] = Security(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token into the calling user for this request."""
    if not token:
        log_auth_event("token_missing", request=request)
        raise AuthenticationError("No token, access denied")

    try:
        payload = decode_token(token)
        raw_user_id: Optional[int | str] = payload.get("sub")
        if raw_user_id is None:
            log_auth_event("token_missing_sub", request=request)
            raise AuthenticationError()
        user_id = int(raw_user_id)
    except (JWTError, ValueError, TypeError):
        log_auth_event("token_invalid", request=request)
        raise AuthenticationError("Invalid or expired token")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        log_auth_event("user_inactive_or_missing", request=request, extra={"user_id": user_id})
        raise AuthenticationError()
    return user


def require_action(action: LeaveAction) -> Callable[..., User]:
    """Dependency that authorizes a record-less leave action.

    FastAPI solves dependencies before it validates the request body, so a
    caller without the role gets 403 whatever the body holds.
    """

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        authorize(current_user, action)
        return current_user

    return _dependency
