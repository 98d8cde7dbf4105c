from __future__ import annotations

from pydantic import Field, field_validator

from lor_tracker.models.enums import Role
from lor_tracker.schemas.base import ORMModel
from lor_tracker.schemas.user import normalize_email


class LoginRequest(ORMModel):
    email: str
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)


class LoginResponse(ORMModel):
    user_id: int
    role: Role
    access_token: str
    token_type: str = "bearer"


class MeResponse(ORMModel):
    user_id: int
    email: str
    role: Role
