"""Pydantic schemas for token refresh and identity endpoints."""
from pydantic import Field

from tenantdesk.core.request_context import AuthScheme, PrincipalType
from tenantdesk.schemas.common import CamelModel


class RefreshRequest(CamelModel):
    """Body of POST /auth/refresh."""

    refresh_token: str = Field(..., min_length=1)


class RefreshResponse(CamelModel):
    """A newly issued access token."""

    token: str


class PrincipalResponse(CamelModel):
    """The identity resolved for the current request."""

    id: str
    email: str
    role: str
    role_id: str | None = None
    type: PrincipalType
    scheme: AuthScheme
