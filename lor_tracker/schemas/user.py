from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from lor_tracker.models.enums import Role, UserStatus
from lor_tracker.schemas.base import ORMModel


def normalize_email(value: str) -> str:
    value = (value or "").strip().lower()
    local, _, domain = value.partition("@")
    if not local or not domain or "." not in domain:
        raise ValueError("Invalid email address")
    return value


class UserRead(ORMModel):
    id: int
    email: str
    role: Role
    status: UserStatus
    last_login_at: Optional[datetime] = None
    created_at: datetime


class UserCreate(ORMModel):
    email: str
    password: str = Field(..., min_length=8)
    role: Role
    status: UserStatus = UserStatus.ACTIVE

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class UserStatusUpdate(ORMModel):
    status: UserStatus
