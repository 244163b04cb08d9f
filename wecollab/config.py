# wecollab/config.py
"""
Centralized application configuration using pydantic-settings.

All settings are read from environment variables or .env file.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Priority: environment variables > .env file > defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Database ---
    DB_URL: str = Field(
        default="postgresql://localhost:5432/wecollab",
        description="PostgreSQL connection URL"
    )

    # --- Redis (cache, realtime feed, jobs) ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )

    # --- Server ---
    HOST: str = Field(default="127.0.0.1", description="Server bind host")
    PORT: int = Field(default=8888, description="Server bind port")
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma separated list of allowed browser origins"
    )

    # --- Auth (tokens are issued by the external identity provider) ---
    JWT_SECRET: str = Field(
        default="change-me",
        description="Shared secret used to verify access tokens"
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_AUDIENCE: Optional[str] = Field(
        default="authenticated",
        description="Expected 'aud' claim; empty disables the check"
    )

    # --- Domain ---
    INVITE_TTL_DAYS: int = Field(default=7, ge=1)
    LEADERBOARD_CACHE_TTL: int = Field(default=30, ge=1)

    # --- Rate limits (requests per minute per client) ---
    RATE_LIMIT_API: int = Field(default=120)
    RATE_LIMIT_GENERAL: int = Field(default=300)

    # --- Debug / Logging / Tracing ---
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    TRACING_ENABLED: bool = Field(default=True)
    SERVICE_NAME: str = Field(default="wecollab-api")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("JWT_AUDIENCE")
    @classmethod
    def empty_audience_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance (singleton pattern)."""
    return Settings()


settings = get_settings()


# --- Module-level exports ---

DATABASE_URL: str = settings.DB_URL
REDIS_URL: str = settings.REDIS_URL

HOST: str = settings.HOST
PORT: int = settings.PORT
DEBUG: bool = settings.DEBUG
LOG_LEVEL: str = settings.LOG_LEVEL
SERVICE_NAME: str = settings.SERVICE_NAME
CORS_ORIGINS: list[str] = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

# --- Paths (computed, not from env) ---
PROJECT_ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
LOGS_PATH: str = os.path.join(PROJECT_ROOT, "logs")
