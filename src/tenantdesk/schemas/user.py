"""Pydantic schemas for user endpoints."""
from uuid import UUID

from pydantic import Field, field_validator

from tenantdesk.core.passwords import MAX_PASSWORD_BYTES
from tenantdesk.schemas.common import CamelModel, UTCDateTime
from tenantdesk.schemas.role import RoleSummary, RoleWithPermissions


def normalize_email(value: str) -> str:
    """Lower-case and trim an email address, rejecting obviously malformed ones."""
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or domain.startswith(".") or " " in value:
        raise ValueError("Please provide a valid email")
    return value


def check_password_bytes(value: str) -> str:
    """Reject passwords bcrypt cannot hash."""
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class UserRegister(CamelModel):
    """Schema for self-registration."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    role_id: UUID | None = None

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


class LoginRequest(CamelModel):
    """Credentials for user or admin login."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

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


class UserUpdate(CamelModel):
    """Profile fields a user may change."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    avatar: str | None = Field(default=None, max_length=500)


class ChangeRoleRequest(CamelModel):
    """Body of PATCH /users/{id}/role."""

    role_id: UUID


class UserResponse(CamelModel):
    """User payload for listings and mutations."""

    id: UUID
    email: str
    name: str
    phone: str | None
    avatar: str | None
    is_active: bool
    role: RoleSummary
    created_at: UTCDateTime
    updated_at: UTCDateTime


class UserProfileResponse(UserResponse):
    """User payload including role permissions, cached under user:<id>."""

    role_id: UUID
    role: RoleWithPermissions


class UserStatusResponse(CamelModel):
    """Result of toggling a user's active flag."""

    id: UUID
    email: str
    name: str
    is_active: bool


class UserLoginResponse(CamelModel):
    """Successful login payload."""

    user: UserResponse
    token: str
    refresh_token: str
