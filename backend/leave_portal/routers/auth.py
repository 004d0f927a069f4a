from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from leave_portal.core.deps import get_current_user, log_auth_event
from leave_portal.core.errors import AuthenticationError
from leave_portal.core.security import create_access_token
from leave_portal.db.session import get_db
from leave_portal.models.user import User
from leave_portal.schemas.auth import TokenResponse
from leave_portal.schemas.user import UserCreate, UserRead
from leave_portal.services.users import authenticate_user, register_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return TokenResponse(access_token=token, user=UserRead.model_validate(user))


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(get_db)) -> TokenResponse:
    user = register_user(db, user_in)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    try:
        user = authenticate_user(db, form_data.username, form_data.password)
    except AuthenticationError:
        log_auth_event("login_failed", request=request, extra={"email": form_data.username.lower()})
        raise
    log_auth_event("login_succeeded", request=request, extra={"user_id": user.id})
    return _token_response(user)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)
