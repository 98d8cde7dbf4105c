from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from lor_tracker.core.settings import settings
from lor_tracker.models.enums import Role


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def token_lifetime(expires_delta: Optional[timedelta] = None) -> timedelta:
    if expires_delta is not None:
        return expires_delta
    return timedelta(minutes=max(settings.access_token_expire_minutes, 1))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    issued_at = datetime.now(timezone.utc)
    claims.setdefault("iat", issued_at)
    claims["exp"] = issued_at + token_lifetime(expires_delta)
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.algorithm)


def issue_access_token(*, user_id: int, role: Role) -> str:
    """Token for a logged-in user. The role claim is informational only."""
    return create_access_token({"sub": str(user_id), "role": role.value})


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])


def subject_from_token(token: str) -> int:
    """Return the user id a token was issued for.

    Raises ``JWTError`` for a bad signature, an expired token or a missing or
    non-numeric subject.
    """
    subject = decode_token(token).get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise JWTError("Token subject is not a user id") from exc


def bearer_or_cookie_token(request: Request) -> Optional[str]:
    """The caller's token: an ``Authorization: Bearer`` header wins over the auth cookie."""
    scheme, _, credentials = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.auth_cookie_name) or None
