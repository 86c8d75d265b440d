"""User model for end-user accounts."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantdesk.models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from tenantdesk.models.role import Role


class User(Base, UUIDv7Mixin, TimestampMixin):
    """User model - every user references exactly one role."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="RESTRICT"),
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    role: Mapped["Role"] = relationship(back_populates="users", lazy="selectin")
