"""
Authorization dependency factories.

Each factory wraps an authentication dependency and returns the same
RequestContext when the check passes, so checks chain:

    admin_only = require_type(PrincipalType.ADMIN)
    super_admin = require_role("SUPER_ADMIN", authenticate=admin_only)
"""
import logging
from collections.abc import Awaitable, Callable
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.app_state import get_cache
from tenantdesk.core.auth import require_bearer
from tenantdesk.core.cache import CacheService
from tenantdesk.core.request_context import Principal, PrincipalType, RequestContext
from tenantdesk.db.session import get_async_session
from tenantdesk.services import role_service, user_service
from tenantdesk.services.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

AuthDependency = Callable[..., Awaitable[RequestContext | None]]


def _authenticated(context: RequestContext | None) -> Principal:
    if context is None:
        raise AuthenticationError("Authentication required")
    return context.principal


def require_type(
    *allowed: PrincipalType,
    authenticate: AuthDependency = require_bearer,
) -> Callable[..., Awaitable[RequestContext]]:
    """Principal type must be one of `allowed`."""
    async def dependency(
        context: RequestContext | None = Depends(authenticate),
    ) -> RequestContext:
        principal = _authenticated(context)
        if principal.type not in allowed:
            raise AuthorizationError()
        return context

    return dependency


def require_role(
    *allowed: str,
    authenticate: AuthDependency = require_bearer,
) -> Callable[..., Awaitable[RequestContext]]:
    """Principal role must be one of `allowed`. Independent of the type check."""
    async def dependency(
        context: RequestContext | None = Depends(authenticate),
    ) -> RequestContext:
        principal = _authenticated(context)
        if principal.role not in allowed:
            raise AuthorizationError()
        return context

    return dependency


async def _role_id_for(
    db: AsyncSession,
    cache: CacheService,
    principal: Principal,
) -> UUID | None:
    # The role is re-read from the user record rather than trusted from the token,
    # so a role change takes effect before the token expires
    if principal.type is not PrincipalType.USER:
        return None
    try:
        user_id = UUID(principal.id)
    except ValueError:
        return None
    return await user_service.get_user_role_id(db, cache, user_id)


def require_permission(
    *required: str,
    authenticate: AuthDependency = require_bearer,
) -> Callable[..., Awaitable[RequestContext]]:
    """
    Principal's role must grant every permission in `required` (all-or-nothing).

    API-key principals (role "api") are admitted without a lookup. A principal with
    no resolvable role is refused.
    """
    async def dependency(
        context: RequestContext | None = Depends(authenticate),
        db: AsyncSession = Depends(get_async_session),
        cache: CacheService = Depends(get_cache),
    ) -> RequestContext:
        principal = _authenticated(context)
        if principal.is_api:
            return context

        role_id = await _role_id_for(db, cache, principal)
        if role_id is None:
            raise AuthorizationError("Permission check failed")

        granted = await role_service.get_role_permissions(db, cache, role_id)
        if granted is None:
            raise AuthorizationError("Permission check failed")

        missing = set(required).difference(granted)
        if missing:
            logger.info(
                "permission_denied",
                extra={"principal_id": principal.id, "missing": sorted(missing)},
            )
            raise AuthorizationError("Insufficient permissions")
        return context

    return dependency
