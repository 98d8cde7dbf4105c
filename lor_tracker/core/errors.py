from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """HTTPException with a stable machine-readable code alongside the message."""

    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "INTERNAL_ERROR"
    default_message = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(status_code=self.default_status, detail=self.message, headers=headers)


class BadRequestError(AppError):
    default_status = status.HTTP_400_BAD_REQUEST
    default_code = "BAD_REQUEST"
    default_message = "Bad request"


class DuplicateError(BadRequestError):
    default_code = "DUPLICATE"
    default_message = "Resource already exists"


class UnauthorizedError(AppError):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None) -> None:
        super().__init__(message, code=code, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    default_status = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(AppError):
    default_status = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    default_message = "Not found"


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=exc.headers,
    )


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "integrity_error",
        extra={"request_id": _request_id(request), "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": DuplicateError.default_message, "code": DuplicateError.default_code},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "internal_error",
        exc_info=exc,
        extra={"request_id": _request_id(request), "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": AppError.default_message, "code": AppError.default_code},
    )


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
