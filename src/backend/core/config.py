"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parent.parent


class LiveAdminPolicy(str, Enum):
    """How the live channel treats clients that declare the admin role."""

    TRUST = "trust"  # self-declared admin is accepted (trusted LAN events)
    PASSWORD = "password"  # identify must carry ADMIN_PASSWORD
    DENY = "deny"  # admin actions are only available over HTTP


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "LiveVote"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # Database - PostgreSQL
    # DATABASE_URL wins when set; otherwise the URL is built from the parts below.
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "livevote"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "livevote"

    # Connection pool: fixed ceiling, no overflow
    DB_POOL_SIZE: int = 20
    DB_CONNECT_TIMEOUT: float = 2.0
    DB_ECHO: bool = False

    # Migrations
    MIGRATIONS_DIR: Path = BACKEND_ROOT / "migrations"
    RUN_MIGRATIONS_ON_STARTUP: bool = True

    # Admin credential (HTTP Basic on /api/admin/*)
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"

    # Live channel admin role policy
    LIVE_ADMIN_POLICY: LiveAdminPolicy = LiveAdminPolicy.TRUST

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """The pool must hold at least one connection."""
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        return v

    @field_validator("ADMIN_PASSWORD")
    @classmethod
    def validate_admin_password(cls, v: str) -> str:
        """An empty admin password would let any credential through."""
        if not v:
            raise ValueError("ADMIN_PASSWORD must not be empty")
        return v

    @property
    def database_url(self) -> str:
        """Construct the asyncpg connection URL."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            # Accept plain postgres:// URLs as handed out by most hosting providers
            for prefix in ("postgres://", "postgresql://"):
                if url.startswith(prefix):
                    return "postgresql+asyncpg://" + url[len(prefix):]
            return url
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
