"""API session model - persisted API keys for the X-API-Key scheme."""
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from tenantdesk.models.base import Base, TimestampMixin, UUIDv7Mixin


class ApiSession(Base, UUIDv7Mixin, TimestampMixin):
    """
    API key issued to a user or admin for programmatic access.

    Keys are stored hashed - plaintext is only shown once at creation.
    The key_prefix allows identification without exposing the full key.
    """

    __tablename__ = "api_sessions"

    # id provided by UUIDv7Mixin
    owner_id: Mapped[str] = mapped_column(
        String(64),
        index=True,
        comment="ID of the owning user or admin",
    )
    owner_type: Mapped[str] = mapped_column(
        String(10),
        comment="'user' or 'admin' - becomes the principal type",
    )
    name: Mapped[str] = mapped_column(
        String(100),
        comment="Caller-provided label, e.g., 'Reporting job'",
    )
    key_hash: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        index=True,
        comment="SHA-256 hash of the key",
    )
    key_prefix: Mapped[str] = mapped_column(
        String(12),
        comment="First 12 chars for identification, e.g., 'td_abc123456'",
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
