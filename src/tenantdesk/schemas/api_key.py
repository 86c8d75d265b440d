"""Pydantic schemas for API key endpoints."""
from uuid import UUID

from pydantic import Field

from tenantdesk.schemas.common import CamelModel, UTCDateTime

DEFAULT_KEY_EXPIRY_DAYS = 30


class ApiKeyCreate(CamelModel):
    """Schema for creating a new API key."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Caller-provided name for the key, e.g., 'Reporting job'",
    )
    expires_in_days: int = Field(
        default=DEFAULT_KEY_EXPIRY_DAYS,
        ge=1,
        le=365,
        description="Expiration in days (1-365).",
    )


class ApiKeyCreateResponse(CamelModel):
    """
    Response when creating a new key.

    IMPORTANT: The `key` field contains the plaintext key and is only shown
    once at creation time. It cannot be retrieved again.
    """

    id: UUID
    name: str
    key: str = Field(
        ...,
        description="The plaintext key. Store this securely - it won't be shown again.",
    )
    key_prefix: str
    expires_at: UTCDateTime
    created_at: UTCDateTime


class ApiKeyResponse(CamelModel):
    """
    Schema for key list responses.

    Does NOT include the plaintext key - only metadata for identification.
    """

    id: UUID
    name: str
    key_prefix: str
    last_used_at: UTCDateTime | None
    expires_at: UTCDateTime
    created_at: UTCDateTime
