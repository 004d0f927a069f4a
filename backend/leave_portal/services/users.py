from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from leave_portal.core.errors import AuthenticationError, ConflictError
from leave_portal.core.security import get_password_hash, verify_password
from leave_portal.models.user import User
from leave_portal.schemas.user import UserCreate

logger = logging.getLogger("security")


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, data: UserCreate) -> User:
    if get_user_by_email(db, data.email):
        raise ConflictError("User already exists with this email")
    if data.student_id and db.query(User).filter(User.student_id == data.student_id).first():
        raise ConflictError("User already exists with this student ID")

    user = User(
        name=data.name,
        email=data.email,
        hashed_password=get_password_hash(data.password),
        role=data.role,
        department=data.department,
        student_id=data.student_id,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_registered", extra={"user_id": user.id})
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise AuthenticationError("User is inactive")
    return user
