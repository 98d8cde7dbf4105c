from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, Response
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from lor_tracker.core.security import bearer_or_cookie_token, subject_from_token

# Structured fields copied from ``extra=`` onto the JSON line when present.
_EXTRA_KEYS = (
    "request_id",
    "user_id",
    "path",
    "method",
    "status_code",
    "latency_ms",
    "submission_id",
    "event_type",
)

_DENIED_STATUSES = frozenset({401, 403})


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update({key: getattr(record, key) for key in _EXTRA_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # The request middleware already emits one line per request.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _caller_id(request: Request) -> Optional[int]:
    token = bearer_or_cookie_token(request)
    if not token:
        return None
    try:
        return subject_from_token(token)
    except JWTError:
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON line per request, tagged with a request id echoed back as ``X-Request-Id``."""

    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.security_logger = logging.getLogger("security")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        fields = {"request_id": request_id, "path": request.url.path, "method": request.method}
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                "unhandled_exception",
                extra={**fields, "latency_ms": _elapsed_ms(start), "user_id": _caller_id(request)},
            )
            raise

        fields.update(status_code=response.status_code, user_id=_caller_id(request))
        self.logger.info("request", extra={**fields, "latency_ms": _elapsed_ms(start)})
        if response.status_code in _DENIED_STATUSES:
            self.security_logger.info("access_denied", extra=fields)

        response.headers["X-Request-Id"] = request_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
