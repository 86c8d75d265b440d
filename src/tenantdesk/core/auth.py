"""
Authentication dependencies.

Each variant resolves the request to a RequestContext (or fails with 401):

- require_bearer: `Authorization: Bearer <token>` only.
- require_api_key: `X-API-Key: <key>` only, static key first, then stored keys.
- require_any: bearer first, then API key.
- optional_auth: bearer if present and valid, otherwise None; never fails.
"""
import logging
import secrets

from fastapi import Depends
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.app_state import get_app_settings, get_token_codec
from tenantdesk.core.config import Settings
from tenantdesk.core.request_context import (
    API_KEY_PRINCIPAL_EMAIL,
    API_ROLE,
    SYSTEM_PRINCIPAL_EMAIL,
    SYSTEM_PRINCIPAL_ID,
    AuthScheme,
    Principal,
    PrincipalType,
    RequestContext,
)
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.db.session import get_async_session
from tenantdesk.services import api_key_service
from tenantdesk.services.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

# auto_error=False: absence is reported through our own envelope, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)
api_key_scheme = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)

STATIC_KEY_PRINCIPAL = Principal(
    id=SYSTEM_PRINCIPAL_ID,
    email=SYSTEM_PRINCIPAL_EMAIL,
    role=API_ROLE,
    type=PrincipalType.ADMIN,
)


def resolve_bearer(
    credentials: HTTPAuthorizationCredentials | None,
    codec: TokenCodec,
) -> RequestContext | None:
    """Verify a bearer token. None if absent, invalid, expired or mis-shaped."""
    if credentials is None:
        return None
    claims = codec.verify(credentials.credentials)
    if claims is None:
        return None
    principal = Principal.from_claims(claims)
    if principal is None:
        logger.info("bearer_rejected reason=claim_shape")
        return None
    return RequestContext(principal=principal, scheme=AuthScheme.BEARER)


async def resolve_api_key(
    key: str | None,
    db: AsyncSession,
    settings: Settings,
) -> RequestContext | None:
    """Match a key against the static key, then the stored keys. None if neither matches."""
    if not key:
        return None

    if settings.api_key and secrets.compare_digest(key.encode(), settings.api_key.encode()):
        return RequestContext(principal=STATIC_KEY_PRINCIPAL, scheme=AuthScheme.STATIC_KEY)

    session = await api_key_service.validate_api_key(db, key)
    if session is None:
        return None
    try:
        owner_type = PrincipalType(session.owner_type)
    except ValueError:
        logger.warning("api_key_rejected reason=owner_type key_prefix=%s", session.key_prefix)
        return None

    principal = Principal(
        id=session.owner_id,
        email=API_KEY_PRINCIPAL_EMAIL,
        role=API_ROLE,
        type=owner_type,
    )
    return RequestContext(
        principal=principal,
        scheme=AuthScheme.SESSION_KEY,
        key_prefix=session.key_prefix,
    )


async def require_bearer(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    codec: TokenCodec = Depends(get_token_codec),
) -> RequestContext:
    """Dependency: bearer token required."""
    if credentials is None:
        raise AuthenticationError("Access token is required")
    context = resolve_bearer(credentials, codec)
    if context is None:
        raise AuthenticationError("Invalid or expired token")
    return context


async def require_api_key(
    key: str | None = Depends(api_key_scheme),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
) -> RequestContext:
    """Dependency: API key required."""
    if not key:
        raise AuthenticationError("API key is required")
    context = await resolve_api_key(key, db, settings)
    if context is None:
        raise AuthenticationError("Invalid API key")
    return context


async def require_any(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    key: str | None = Depends(api_key_scheme),
    codec: TokenCodec = Depends(get_token_codec),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
) -> RequestContext:
    """
    Dependency: bearer token or API key.

    The bearer token is tried first. An absent or invalid token falls through to
    the API key, so a request carrying a stale token and a valid key succeeds.
    """
    context = resolve_bearer(credentials, codec)
    if context is None:
        context = await resolve_api_key(key, db, settings)
    if context is None:
        raise AuthenticationError("Authentication required. Provide JWT token or API key")
    return context


async def optional_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    codec: TokenCodec = Depends(get_token_codec),
) -> RequestContext | None:
    """Dependency: bearer token if present and valid, else None. Never fails."""
    return resolve_bearer(credentials, codec)
