"""
Domain error taxonomy.

Services raise these; ``register_exception_handlers`` renders each one as a
JSON body ``{"detail": ..., "code": ..., **details}`` with a fixed HTTP status.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LeavePortalError(Exception):
    """Base class for every error surfaced to API callers."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class ValidationError(LeavePortalError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message, details={"errors": errors})

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class ConflictError(LeavePortalError):
    code = "conflict"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request conflicts with existing data"


class InvalidStateError(LeavePortalError):
    code = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Leave request has already been processed"


class AuthenticationError(LeavePortalError):
    code = "authentication_failed"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class ForbiddenError(LeavePortalError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorised to perform this action"


class NotFoundError(LeavePortalError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


def _field_name(loc: tuple) -> str:
    # Drop the leading "body"/"query"/"path" segment FastAPI prepends.
    parts = [str(part) for part in loc]
    if parts and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts) or "request"


def _message(error: Dict[str, Any]) -> str:
    msg = str(error.get("msg", "Invalid value"))
    # pydantic prefixes messages raised from validators with "Value error, ".
    return msg.removeprefix("Value error, ")


def request_validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors: List[Dict[str, str]] = []
    seen: set[str] = set()
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        if field in seen:
            continue
        seen.add(field)
        errors.append({"field": field, "message": _message(error)})
    return errors


async def _domain_error_handler(request: Request, exc: LeavePortalError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(request_validation_errors(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", exc_info=exc, extra={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "server_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LeavePortalError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
