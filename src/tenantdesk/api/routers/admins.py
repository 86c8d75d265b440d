"""Admin account endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.dependencies import (
    admin_only,
    get_app_settings,
    get_async_session,
    get_cache,
    get_token_codec,
    pagination_params,
    principal_uuid,
    super_admin_only,
)
from tenantdesk.api.helpers.response_cache import (
    ADMIN_DETAIL_TTL,
    ADMIN_LIST_TTL,
    ADMIN_USERS_TTL,
    cached_response,
    clear_response_cache,
)
from tenantdesk.core.cache import CacheService
from tenantdesk.core.config import Settings
from tenantdesk.core.request_context import RequestContext
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.schemas.admin import AdminCreate, AdminUpdate
from tenantdesk.schemas.common import PaginationParams
from tenantdesk.schemas.envelope import paginated, success
from tenantdesk.schemas.user import LoginRequest
from tenantdesk.services import admin_service, user_service

router = APIRouter(prefix="/api/admins", tags=["admins"])

ADMINS_PATH = "/api/admins"
ADMIN_USERS_PATH = "/api/admins/users"


@router.post("/login")
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> dict[str, Any]:
    """Admin login."""
    result = await admin_service.login_admin(db, codec, data)
    return success(result, "Login successful")


@router.post("/create", status_code=201)
async def create_admin(
    data: AdminCreate,
    _context: RequestContext = Depends(super_admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Create an admin (SUPER_ADMIN)."""
    admin = await admin_service.create_admin(db, cache, data, settings.bcrypt_rounds)
    await clear_response_cache(cache, ADMINS_PATH)
    return success(admin, "Admin created successfully")


@router.get("/profile")
async def get_profile(
    context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Profile of the calling admin."""
    admin = await admin_service.get_admin(db, cache, principal_uuid(context.principal))
    return success(admin, "Profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    data: AdminUpdate,
    context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Update the calling admin's profile."""
    admin = await admin_service.update_admin(db, cache, principal_uuid(context.principal), data)
    await clear_response_cache(cache, ADMINS_PATH)
    return success(admin, "Profile updated successfully")


@router.get("")
async def list_admins(
    request: Request,
    params: PaginationParams = Depends(pagination_params),
    _context: RequestContext = Depends(super_admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """List admins (SUPER_ADMIN)."""
    async def render() -> dict[str, Any]:
        page = await admin_service.list_admins(db, cache, params)
        return paginated(page, "Admins retrieved successfully")

    return await cached_response(request, cache, ADMIN_LIST_TTL, render)


@router.get("/users")
async def list_users(
    request: Request,
    params: PaginationParams = Depends(pagination_params),
    _context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """List users for account management (admin)."""
    async def render() -> dict[str, Any]:
        page = await user_service.list_users(db, cache, params)
        return paginated(page, "Users retrieved successfully")

    return await cached_response(request, cache, ADMIN_USERS_TTL, render)


@router.patch("/users/{user_id}/toggle-status")
async def toggle_user_status(
    user_id: UUID,
    _context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Activate or deactivate a user (admin)."""
    user = await user_service.toggle_user_status(db, cache, user_id)
    await clear_response_cache(cache, ADMIN_USERS_PATH)
    return success(user, "User status updated successfully")


@router.get("/{admin_id}")
async def get_admin(
    request: Request,
    admin_id: UUID,
    _context: RequestContext = Depends(super_admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """Get an admin by id (SUPER_ADMIN)."""
    async def render() -> dict[str, Any]:
        admin = await admin_service.get_admin(db, cache, admin_id)
        return success(admin, "Admin retrieved successfully")

    return await cached_response(request, cache, ADMIN_DETAIL_TTL, render)


@router.delete("/{admin_id}")
async def delete_admin(
    admin_id: UUID,
    _context: RequestContext = Depends(super_admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Delete an admin (SUPER_ADMIN)."""
    await admin_service.delete_admin(db, cache, admin_id)
    await clear_response_cache(cache, ADMINS_PATH)
    return success(message="Admin deleted successfully")
