from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Designer settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=(str(Path(__file__).resolve().parents[1] / ".env"), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    app_name: str = Field(default="Workflow Designer", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        alias="APP_ENV",
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    api_base_url: AnyHttpUrl = Field(
        default="http://localhost:5000",
        alias="DESIGNER_API_BASE_URL",
    )
    api_prefix: str = Field(default="/api", alias="DESIGNER_API_PREFIX")
    auth_login_path: str = Field(default="/auth/login", alias="DESIGNER_AUTH_LOGIN_PATH")
    designer_capability: str = Field(default="workflow-designer", alias="DESIGNER_CAPABILITY")
    # None keeps the transport default.
    request_timeout: float | None = Field(default=None, gt=0, alias="DESIGNER_REQUEST_TIMEOUT")

    sandbox_host: str = Field(default="127.0.0.1", alias="SANDBOX_HOST")
    sandbox_port: int = Field(default=5000, ge=1, le=65535, alias="SANDBOX_PORT")

    @field_validator("api_prefix", "auth_login_path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        """Ensure route prefixes start with a slash and have no trailing slash."""
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("Route prefixes must start with '/'.")
        if len(normalized) > 1 and normalized.endswith("/"):
            normalized = normalized.rstrip("/")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name.")
        return normalized

    @property
    def base_url(self) -> str:
        return str(self.api_base_url).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings: Settings = get_settings()
