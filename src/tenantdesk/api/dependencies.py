"""FastAPI dependencies shared by the routers."""
from typing import Literal
from uuid import UUID

from fastapi import Depends, Query, Request

from tenantdesk.core.app_state import get_app_settings, get_cache, get_rate_limiter, get_token_codec
from tenantdesk.core.auth import optional_auth, require_any, require_api_key, require_bearer
from tenantdesk.core.config import Settings
from tenantdesk.core.permissions import require_permission, require_role, require_type
from tenantdesk.core.rate_limit_config import EXEMPT_PATHS, RateLimitExceededError
from tenantdesk.core.rate_limiter import RateLimiter
from tenantdesk.core.request_context import Principal, PrincipalType
from tenantdesk.db.session import get_async_session
from tenantdesk.models.admin import AdminRole
from tenantdesk.schemas.common import PaginationParams
from tenantdesk.services.exceptions import AuthenticationError

# Reusable guards
user_only = require_type(PrincipalType.USER)
admin_only = require_type(PrincipalType.ADMIN)
super_admin_only = require_role(AdminRole.SUPER_ADMIN.value, authenticate=admin_only)


async def pagination_params(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
) -> PaginationParams:
    """Parse page, limit, sortBy and sortOrder query parameters."""
    return PaginationParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


def client_address(request: Request) -> str:
    """Address used as the rate-limit key."""
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    """
    Count the request against its client's window.

    Stores the result on request.state for RateLimitHeadersMiddleware.

    Raises:
        RateLimitExceededError: If the window is exhausted.
    """
    if not settings.rate_limit_enabled or request.url.path in EXEMPT_PATHS:
        return
    result = limiter.check(client_address(request))
    if not result.allowed:
        raise RateLimitExceededError(result)
    request.state.rate_limit_info = {
        "limit": result.limit,
        "remaining": result.remaining,
        "reset": result.reset,
    }


def principal_uuid(principal: Principal) -> UUID:
    """Account id of a principal, rejecting the non-UUID system principal."""
    try:
        return UUID(principal.id)
    except ValueError:
        raise AuthenticationError("This endpoint requires an account credential") from None


__all__ = [
    "admin_only",
    "enforce_rate_limit",
    "get_app_settings",
    "get_async_session",
    "get_cache",
    "get_token_codec",
    "optional_auth",
    "pagination_params",
    "principal_uuid",
    "require_any",
    "require_api_key",
    "require_bearer",
    "require_permission",
    "super_admin_only",
    "user_only",
]
