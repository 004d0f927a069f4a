"""
Structured JSON logging for the leave portal.

Loggers in use:
- ``request``: one line per HTTP request (``RequestLoggingMiddleware``)
- ``security``: auth failures, denied leave actions, registrations
- ``leave_portal.*``: workflow events (``leave_created``, ``leave_transitioned``, ...)
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request, Response
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from leave_portal.core.security import decode_token

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # uvicorn's access log duplicates the request logger.
    logging.getLogger("uvicorn.access").disabled = True


def _token_user_id(request: Request) -> Optional[int]:
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    try:
        return int(decode_token(token.strip())["sub"])
    except (JWTError, KeyError, ValueError, TypeError):
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ``X-Request-Id`` and logs its outcome.

    401 and 403 responses are repeated on the ``security`` logger so that
    rejected leave actions can be audited separately from traffic.
    """

    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.security_logger = logging.getLogger("security")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        fields = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "user_id": _token_user_id(request),
        }
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            fields["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
            self.logger.exception("unhandled_exception", extra=fields)
            raise

        fields["status_code"] = response.status_code
        fields["latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        self.logger.info("request", extra=fields)
        if response.status_code == 401:
            self.security_logger.info("unauthenticated", extra=fields)
        elif response.status_code == 403:
            self.security_logger.info("forbidden", extra=fields)

        response.headers["X-Request-Id"] = request_id
        return response
