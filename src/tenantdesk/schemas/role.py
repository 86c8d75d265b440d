"""Pydantic schemas for role endpoints."""
from uuid import UUID

from pydantic import Field, field_validator

from tenantdesk.schemas.common import CamelModel, UTCDateTime

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


def _clean_permissions(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    cleaned = [v.strip() for v in values if v and v.strip()]
    return list(dict.fromkeys(cleaned))


class RoleCreate(CamelModel):
    """Schema for creating a role."""

    name: str = Field(..., min_length=2, max_length=100)
    slug: str = Field(..., min_length=2, max_length=100, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] = Field(default_factory=list)
    is_default: bool = False

    @field_validator("permissions")
    @classmethod
    def dedupe_permissions(cls, v: list[str]) -> list[str]:
        """Strip blanks and duplicates, keep order."""
        return _clean_permissions(v) or []


class RoleUpdate(CamelModel):
    """Schema for updating a role. Slug is immutable."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] | None = None
    is_active: bool | None = None

    @field_validator("permissions")
    @classmethod
    def dedupe_permissions(cls, v: list[str] | None) -> list[str] | None:
        """Strip blanks and duplicates, keep order."""
        return _clean_permissions(v)


class RoleSummary(CamelModel):
    """Role reference embedded in user payloads."""

    id: UUID
    name: str
    slug: str


class RoleWithPermissions(RoleSummary):
    """Role reference including its permission set."""

    permissions: list[str]


class RoleResponse(CamelModel):
    """Full role payload."""

    id: UUID
    name: str
    slug: str
    description: str | None
    permissions: list[str]
    is_default: bool
    is_active: bool
    created_at: UTCDateTime
    updated_at: UTCDateTime
    user_count: int | None = None
