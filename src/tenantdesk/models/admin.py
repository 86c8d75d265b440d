"""Admin model for back-office accounts."""
from enum import StrEnum

from sqlalchemy import Boolean, String, true
from sqlalchemy.orm import Mapped, mapped_column

from tenantdesk.models.base import Base, TimestampMixin, UUIDv7Mixin
from tenantdesk.models.types import PermissionSet


class AdminRole(StrEnum):
    """Fixed admin roles, carried as the role claim in admin tokens."""

    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"
    MODERATOR = "MODERATOR"


class Admin(Base, UUIDv7Mixin, TimestampMixin):
    """Admin model - admins do not reference a Role entity."""

    __tablename__ = "admins"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=AdminRole.ADMIN.value)
    permissions: Mapped[tuple[str, ...]] = mapped_column(
        PermissionSet, nullable=True, default=(),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())
