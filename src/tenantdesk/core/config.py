"""Application configuration using pydantic-settings."""
import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Signing secrets that ship in examples and must never reach production
PLACEHOLDER_SECRETS = frozenset({
    "changeme",
    "secret",
    "default-secret-change-in-production",
})

MIN_PRODUCTION_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "test", "production"] = Field(
        default="development", validation_alias="ENVIRONMENT",
    )

    # HTTP server
    host: str = Field(default="0.0.0.0", validation_alias="HOST")  # noqa: S104
    port: int = Field(default=8000, ge=1, le=65535, validation_alias="PORT")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tenantdesk.db", validation_alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    db_create_all: bool | None = Field(default=None, validation_alias="DB_CREATE_ALL")

    # Redis / cache
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")
    cache_backend: Literal["redis", "memory"] = Field(
        default="redis", validation_alias="CACHE_BACKEND",
    )
    cache_ttl: int = Field(default=3600, ge=1, validation_alias="CACHE_TTL")

    # Bearer tokens
    jwt_secret: str = Field(..., min_length=1, validation_alias="JWT_SECRET")
    jwt_access_token_ttl: int = Field(
        default=7 * 24 * 3600, ge=1, validation_alias="JWT_ACCESS_TOKEN_TTL",
    )

    # Static API key - empty disables the static-key path
    api_key: str = Field(default="", validation_alias="API_KEY")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    # Rate limiting (process-local)
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_max_requests: int = Field(
        default=100, ge=1, validation_alias="RATE_LIMIT_MAX_REQUESTS",
    )
    rate_limit_window_seconds: int = Field(
        default=60, ge=1, validation_alias="RATE_LIMIT_WINDOW_SECONDS",
    )

    bcrypt_rounds: int = Field(default=12, ge=4, le=31, validation_alias="BCRYPT_ROUNDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """
        Refuse to boot a production deployment with a weak signing secret.

        Anyone holding the secret can mint bearer tokens for any principal, so a
        placeholder or short secret in production is treated as fatal.
        """
        if self.environment != "production":
            return self

        if self.jwt_secret.lower() in PLACEHOLDER_SECRETS:
            raise ValueError("JWT_SECRET is a placeholder value and cannot be used in production.")
        if len(self.jwt_secret) < MIN_PRODUCTION_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters "
                f"in production.",
            )
        return self

    @property
    def is_production(self) -> bool:
        """True when running as a production deployment."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        """True when the database URL points at SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def create_tables_on_startup(self) -> bool:
        """Create tables at startup unless configured otherwise (never by default in production)."""
        if self.db_create_all is not None:
            return self.db_create_all
        return not self.is_production

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # SQLAlchemy and aiosqlite are noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
