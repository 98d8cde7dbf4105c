from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, DotEnvSettingsSource, EnvSettingsSource, SettingsConfigDict


_LIST_FIELDS = {"allow_origins", "allowed_upload_mime_types"}


class _CsvListMixin:
    """Let list settings be comma-separated instead of strict JSON."""

    def decode_complex_value(self, field_name, field, value):  # type: ignore[override]
        try:
            return super().decode_complex_value(field_name, field, value)
        except json.JSONDecodeError:
            if field_name in _LIST_FIELDS:
                return value
            raise


class _CsvEnvSettingsSource(_CsvListMixin, EnvSettingsSource):
    pass


class _CsvDotEnvSettingsSource(_CsvListMixin, DotEnvSettingsSource):
    pass


def _split_csv(value: str | List[str] | None, default: List[str]) -> List[str]:
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value.strip():
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(default)


_DEFAULT_ORIGINS = [
    "http://localhost",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

_DEFAULT_UPLOAD_MIME_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    project_name: str = "LoR Tracker API"
    project_version: str = "1.0.0"
    environment: str = Field(
        default="development",
        description="Deployment environment name",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", description="Logging level")

    # Database
    database_url: str = Field(
        default="postgresql+psycopg2://postgres@localhost:5432/lor_tracker",
        description="SQLAlchemy database URL",
    )
    db_pool_size: int = Field(default=5, description="Base DB connection pool size")
    db_max_overflow: int = Field(default=10, description="Additional DB connections beyond pool size")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a DB connection")
    db_pool_recycle: int = Field(default=1800, description="Recycle DB connections after N seconds")

    # Auth / JWT
    jwt_secret: str = Field(default="change_me", description="JWT signing secret")
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=15, description="Access token expiry in minutes")
    auth_cookie_name: str = Field(default="accessToken", description="Cookie carrying the access token")
    cookie_secure: bool = Field(default=False, description="Mark the auth cookie Secure outside production")

    # CORS
    allow_origins: List[str] = Field(default_factory=lambda: list(_DEFAULT_ORIGINS))

    # Storage
    uploads_dir: str = Field(
        default="./uploads",
        description="Directory for uploaded drafts, finals and certificates",
        validation_alias=AliasChoices("UPLOAD_DIR", "UPLOADS_DIR"),
    )
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, description="Largest accepted upload in bytes")
    allowed_upload_mime_types: List[str] = Field(default_factory=lambda: list(_DEFAULT_UPLOAD_MIME_TYPES))

    # Submissions
    submission_list_limit: int = Field(default=100, description="Page size cap for submission listings")

    # Email delivery
    app_base_url: str = Field(
        default="http://localhost:5173",
        description="Base URL for portal links in emails",
        validation_alias=AliasChoices("APP_BASE_URL", "FRONTEND_URL"),
    )
    email_provider: str = Field(
        default="disabled",
        description="Email provider: resend, postmark, smtp, disabled",
        validation_alias=AliasChoices("EMAIL_PROVIDER"),
    )
    email_api_key: str | None = Field(
        default=None,
        description="API key for Resend/Postmark",
        validation_alias=AliasChoices("EMAIL_API_KEY"),
    )
    email_from: str | None = Field(
        default=None,
        description="From address for outbound email",
        validation_alias=AliasChoices("EMAIL_FROM"),
    )
    smtp_host: str | None = Field(default=None, description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_username: str | None = Field(
        default=None,
        description="SMTP username",
        validation_alias=AliasChoices("SMTP_USERNAME", "SMTP_USER"),
    )
    smtp_password: str | None = Field(
        default=None,
        description="SMTP password",
        validation_alias=AliasChoices("SMTP_PASSWORD", "SMTP_PASS"),
    )
    smtp_use_tls: bool = Field(default=True, description="Use STARTTLS for SMTP")
    email_timeout_seconds: float = Field(default=15.0, description="Timeout for provider HTTP calls")

    @field_validator("allow_origins", mode="before")
    @classmethod
    def parse_allow_origins(cls, value: str | List[str]) -> List[str]:
        return _split_csv(value, _DEFAULT_ORIGINS)

    @field_validator("allowed_upload_mime_types", mode="before")
    @classmethod
    def parse_mime_types(cls, value: str | List[str]) -> List[str]:
        return _split_csv(value, _DEFAULT_UPLOAD_MIME_TYPES)

    def ensure_uploads_dir(self) -> Path:
        uploads_path = Path(self.uploads_dir).expanduser().resolve()
        uploads_path.mkdir(parents=True, exist_ok=True)
        return uploads_path

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            _CsvEnvSettingsSource(settings_cls),
            _CsvDotEnvSettingsSource(settings_cls),
            file_secret_settings,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_uploads_dir()
    return settings


settings = get_settings()
