"""Pydantic schemas for admin endpoints."""
from uuid import UUID

from pydantic import Field, field_validator

from tenantdesk.models.admin import AdminRole
from tenantdesk.schemas.common import CamelModel, UTCDateTime
from tenantdesk.schemas.user import check_password_bytes, normalize_email


class AdminCreate(CamelModel):
    """Schema for creating an admin (SUPER_ADMIN only)."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    role: AdminRole = AdminRole.ADMIN
    permissions: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize email."""
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Password must fit bcrypt's input limit."""
        return check_password_bytes(v)


class AdminUpdate(CamelModel):
    """Profile fields an admin may change."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    avatar: str | None = Field(default=None, max_length=500)
    permissions: list[str] | None = None


class AdminResponse(CamelModel):
    """Admin payload."""

    id: UUID
    email: str
    name: str
    phone: str | None
    avatar: str | None
    role: AdminRole
    permissions: list[str]
    is_active: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime


class AdminLoginResponse(CamelModel):
    """Successful admin login payload."""

    admin: AdminResponse
    token: str
    refresh_token: str
