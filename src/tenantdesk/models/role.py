"""Role model - named permission sets that users reference."""
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Text, false, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantdesk.models.base import Base, TimestampMixin, UUIDv7Mixin
from tenantdesk.models.types import PermissionSet

if TYPE_CHECKING:
    from tenantdesk.models.user import User


class Role(Base, UUIDv7Mixin, TimestampMixin):
    """
    Role model.

    At most one role has is_default=True; role_service.set_default clears every
    other default before setting a new one.
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), unique=True)
    slug: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        comment="URL-safe identifier, also used as the role claim in user tokens",
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    permissions: Mapped[tuple[str, ...]] = mapped_column(
        PermissionSet, nullable=True, default=(),
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default=true())

    # Deletion is refused while users reference the role, so the collection is never loaded
    users: Mapped[list["User"]] = relationship(back_populates="role", passive_deletes=True)
