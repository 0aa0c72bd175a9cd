"""Configuration management for RAMS.

Settings come from environment variables (case-insensitive) and an
optional ``.env`` file. ``RAMS_ENV_FILE`` names the file explicitly;
otherwise the working directory and its parents are searched, then the
repository root.
"""

import os
from datetime import timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-me-in-production"

# backend/src/rams/config.py -> repository root
_REPO_ROOT = Path(__file__).resolve().parents[3]


def _find_env_file() -> Path | None:
    explicit = os.environ.get("RAMS_ENV_FILE")
    if explicit:
        return Path(explicit)

    cwd = Path.cwd()
    for directory in [cwd, *cwd.parents][:5]:
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate

    candidate = _REPO_ROOT / ".env"
    return candidate if candidate.is_file() else None


_env_file = _find_env_file()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = "development"

    # =========================
    # HTTP API
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # =========================
    # Database
    # =========================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./rams.db",
        description="SQLAlchemy async URL (sqlite+aiosqlite or postgresql+asyncpg)",
    )
    database_echo: bool = False

    # =========================
    # Authentication
    # =========================
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, repr=False)
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = Field(default=24, ge=1)

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # =========================
    # Workflow
    # =========================
    business_timezone: str = Field(
        default="Asia/Tokyo",
        description="Timezone that defines report-number months and statistics days",
    )
    sequence_max_retries: int = Field(default=5, ge=1, le=50)
    allow_self_approval: bool = Field(
        default=False,
        description="Let an approver approve or reject a report they handle",
    )
    allow_rejected_reset: bool = Field(
        default=True,
        description="Let the handler move a rejected report back to draft",
    )

    # =========================
    # PDF archive
    # =========================
    pdf_storage_path: Path = Path("pdf-storage")

    @field_validator("business_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value.upper() != "UTC":
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @model_validator(mode="after")
    def _require_secret_in_production(self) -> "Settings":
        if self.environment == "production" and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in production")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def business_tz(self) -> tzinfo:
        """Timezone that defines business days and months."""
        if self.business_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.business_timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
