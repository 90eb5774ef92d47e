# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.DB_HOST)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Every value has a default so the gateway can always boot; a wrong database
# target shows up in the startup diagnostic, not as an import error.
# =============================================================================

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance, or passed
    explicitly to `create_app()` (tests build their own instances).
    """

    # -------------------------------------------------------------------------
    # MySQL Configuration
    # -------------------------------------------------------------------------

    DB_HOST: str = Field(
        default="localhost",
        description="MySQL server host"
    )

    DB_PORT: int = Field(
        default=3306,
        ge=1,
        le=65535,
        description="MySQL server port"
    )

    DB_USER: str | None = Field(
        default=None,
        description="MySQL user name"
    )

    DB_PASSWORD: str = Field(
        default="",
        description="MySQL password"
    )

    DB_NAME: str = Field(
        default="codevimarsh",
        description="Database (schema) to connect to"
    )

    DB_CONNECTION_LIMIT: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximum number of concurrently open connections"
    )

    DB_CONNECT_TIMEOUT: int = Field(
        default=10,
        ge=1,
        description="Seconds the driver waits for a new connection"
    )

    DB_ACQUIRE_TIMEOUT: float | None = Field(
        default=None,
        gt=0,
        description="Seconds a request waits for a free pooled connection (unset = no limit)"
    )

    DB_POOL_RECYCLE: int = Field(
        default=3600,
        ge=-1,
        description="Idle seconds after which a pooled connection is replaced (-1 = never)"
    )

    # -------------------------------------------------------------------------
    # CORS Configuration
    # -------------------------------------------------------------------------
    # The allow-list is assembled from these values once at startup.

    FRONTEND_URL: str | None = Field(
        default=None,
        description="Frontend origin (e.g., https://codevimarsh.example)"
    )

    FRONTEND_DOMAIN: str | None = Field(
        default=None,
        description="Additional frontend origin"
    )

    VERCEL_URL: str | None = Field(
        default=None,
        description="Deployment host set by Vercel (allowed as https://<value>)"
    )

    VERCEL: str | None = Field(
        default=None,
        description="Deployment identifier set by Vercel (allowed as https://<value>)"
    )

    CORS_ALLOW_ANY_ORIGIN: bool | None = Field(
        default=None,
        description="Accept every origin; defaults to true only when NODE_ENV=development"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    NODE_ENV: str = Field(
        default="production",
        description="Deployment mode (development, production, ...)"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    HANDLERS_PACKAGE: str = Field(
        default="routes",
        description="Package holding one module per handler group, each exposing `router`"
    )

    # -------------------------------------------------------------------------
    # Request / File Settings
    # -------------------------------------------------------------------------

    MAX_BODY_SIZE_MB: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum request body size in MB"
    )

    UPLOADS_DIR: Path = Field(
        default=PROJECT_ROOT / "backend" / "uploads",
        description="Directory served read-only under /uploads"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Empty variables count as unset, so blank CORS entries are dropped
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.NODE_ENV == "development"

    @property
    def cors_allow_any_origin(self) -> bool:
        """
        Resolve the development bypass for CORS.

        An explicit CORS_ALLOW_ANY_ORIGIN wins; otherwise the bypass follows
        NODE_ENV=development.
        """
        if self.CORS_ALLOW_ANY_ORIGIN is not None:
            return self.CORS_ALLOW_ANY_ORIGIN
        return self.is_development

    @property
    def max_body_size_bytes(self) -> int:
        """Convert MB to bytes for the body limit middleware."""
        return self.MAX_BODY_SIZE_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
