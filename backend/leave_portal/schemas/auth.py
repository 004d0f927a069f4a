from __future__ import annotations

from leave_portal.schemas.base import ORMModel
from leave_portal.schemas.user import UserRead


class TokenResponse(ORMModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
