from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.orm import Session

from lor_tracker.core.errors import ForbiddenError, UnauthorizedError
from lor_tracker.core.security import bearer_or_cookie_token, subject_from_token
from lor_tracker.db.session import get_db
from lor_tracker.models.enums import Role
from lor_tracker.models.user import User

if TYPE_CHECKING:
    from lor_tracker.services.notifications import Notifier
    from lor_tracker.services.storage import LocalBlobStore

logger = logging.getLogger("security")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller as seen by the domain services."""

    user_id: int
    role: Role
    email: str


def log_auth_event(event: str, *, request: Request, **fields) -> None:
    payload = {
        "event": event,
        "request_id": getattr(request.state, "request_id", None),
        "path": request.url.path,
        "client": request.client.host if request.client else None,
        **fields,
    }
    logger.info(json.dumps(payload, default=str))


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    token = bearer_or_cookie_token(request)
    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        user_id = subject_from_token(token)
    except JWTError:
        log_auth_event("token_invalid", request=request)
        raise UnauthorizedError("Could not validate credentials")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        log_auth_event("user_inactive_or_missing", request=request, user_id=user_id)
        raise UnauthorizedError("Could not validate credentials")
    return user


def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return Principal(user_id=user.id, role=user.role, email=user.email)


def require_roles(*roles: Role) -> Callable[..., Principal]:
    allowed = frozenset(roles)

    def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise ForbiddenError("Not authorised for this action")
        return principal

    return _dependency


def get_blob_store(request: Request) -> "LocalBlobStore":
    return request.app.state.blob_store


def get_notifier(request: Request) -> "Notifier":
    return request.app.state.notifier
