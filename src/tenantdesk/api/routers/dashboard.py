"""Dashboard endpoints. Admin principals only, by bearer token or API key."""
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.dependencies import get_async_session, get_cache, require_any
from tenantdesk.api.helpers.response_cache import (
    DASHBOARD_DISTRIBUTION_TTL,
    DASHBOARD_GROWTH_TTL,
    DASHBOARD_OVERVIEW_TTL,
    DASHBOARD_RECENT_USERS_TTL,
    DASHBOARD_STATS_TTL,
    cached_response,
)
from tenantdesk.core.cache import CacheService
from tenantdesk.core.permissions import require_role, require_type
from tenantdesk.core.request_context import PrincipalType
from tenantdesk.models.admin import AdminRole
from tenantdesk.schemas.envelope import success
from tenantdesk.services import dashboard_service

dashboard_access = require_type(PrincipalType.ADMIN, authenticate=require_any)

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(dashboard_access)],
)


@router.get("/stats")
async def get_stats(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """Headline counts."""
    async def render() -> dict[str, Any]:
        stats = await dashboard_service.get_stats(db, cache)
        return success(stats, "Dashboard stats retrieved successfully")

    return await cached_response(request, cache, DASHBOARD_STATS_TTL, render)


@router.get("/user-growth")
async def get_user_growth(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """New users per day for the last seven days."""
    async def render() -> dict[str, Any]:
        growth = await dashboard_service.get_user_growth(db, cache)
        return success(growth, "User growth data retrieved successfully")

    return await cached_response(request, cache, DASHBOARD_GROWTH_TTL, render)


@router.get("/role-distribution")
async def get_role_distribution(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """User count per role."""
    async def render() -> dict[str, Any]:
        distribution = await dashboard_service.get_role_distribution(db, cache)
        return success(distribution, "Role distribution retrieved successfully")

    return await cached_response(request, cache, DASHBOARD_DISTRIBUTION_TTL, render)


@router.get("/recent-users")
async def get_recent_users(
    request: Request,
    limit: int = Query(default=dashboard_service.DEFAULT_RECENT_USERS, ge=1, le=50),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """Newest users."""
    async def render() -> dict[str, Any]:
        users = await dashboard_service.get_recent_users(db, cache, limit)
        return success(users, "Recent users retrieved successfully")

    return await cached_response(request, cache, DASHBOARD_RECENT_USERS_TTL, render)


@router.get("/overview")
async def get_overview(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """Stats, growth, distribution and recent users together."""
    async def render() -> dict[str, Any]:
        overview = await dashboard_service.get_overview(db, cache)
        return success(overview, "System overview retrieved successfully")

    return await cached_response(request, cache, DASHBOARD_OVERVIEW_TTL, render)


@router.delete(
    "/cache",
    dependencies=[
        Depends(require_role(AdminRole.SUPER_ADMIN.value, authenticate=dashboard_access)),
    ],
)
async def clear_cache(cache: CacheService = Depends(get_cache)) -> dict[str, Any]:
    """Drop every cached entry (SUPER_ADMIN)."""
    cleared = await dashboard_service.clear_cache(cache)
    return success({"cleared": cleared}, "Cache cleared successfully")
