"""Application configuration using Pydantic Settings.

Values resolve in layers: init kwargs, process environment, the ``.env``
file, then the secrets directory (one file per field, e.g.
``/run/secrets/sendgrid_api_key``). A field left empty at every layer keeps
its default, which for e-mail credentials selects the no-op provider.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _secrets_dir() -> str | None:
    path = os.getenv("SECRETS_DIR", "/run/secrets")
    return path if Path(path).is_dir() else None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        secrets_dir=_secrets_dir(),
    )

    # Application
    app_name: str = Field(default="Practice Notifications API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/practice",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # JWT Authentication
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="Secret key for JWT signing (used for HS256 fallback and tests)",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)
    auth_jwks_url: str = Field(
        default="",
        description="JWKS endpoint of the identity provider for ES256 tokens",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    # E-mail provider
    sendgrid_api_key: str = Field(default="", description="SendGrid API key (secret)")
    sendgrid_from_email: str = Field(
        default="Practice Notifications <noreply@example.com>",
        description='Sender address, optionally "Name <address>"',
    )
    sendgrid_api_url: str = Field(default="https://api.sendgrid.com/v3/mail/send")
    email_timeout_seconds: float = Field(default=10.0)
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Client base URL used to absolutize deep links in e-mail",
    )

    # Outbox processor
    outbox_enabled: bool = Field(default=True)
    outbox_poll_interval_seconds: float = Field(default=60.0)
    outbox_batch_size: int = Field(default=50, ge=1)
    outbox_max_attempts: int = Field(default=5, ge=1)
    outbox_backoff_base_seconds: int = Field(default=60, ge=1)
    outbox_backoff_max_seconds: int = Field(default=3600, ge=1)
    outbox_lock_timeout_seconds: int | None = Field(
        default=None,
        description="Reclaim processing jobs locked longer than this; unset disables",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @computed_field  # type: ignore[prop-decorator]
    @property
    def email_configured(self) -> bool:
        """True when e-mail provider credentials resolved from any layer."""
        return bool(self.sendgrid_api_key.strip())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
