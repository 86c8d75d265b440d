"""User account endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.dependencies import (
    admin_only,
    get_app_settings,
    get_async_session,
    get_cache,
    get_token_codec,
    pagination_params,
    principal_uuid,
    require_any,
    require_permission,
    super_admin_only,
    user_only,
)
from tenantdesk.api.helpers.response_cache import clear_response_cache
from tenantdesk.core.cache import CacheService
from tenantdesk.core.config import Settings
from tenantdesk.core.request_context import RequestContext
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.schemas.common import PaginationParams
from tenantdesk.schemas.envelope import paginated, success
from tenantdesk.schemas.user import ChangeRoleRequest, LoginRequest, UserRegister, UserUpdate
from tenantdesk.services import user_service

router = APIRouter(prefix="/api/users", tags=["users"])

# Cached admin views that list users
ADMIN_USERS_PATH = "/api/admins/users"


@router.post("/register", status_code=201)
async def register(
    data: UserRegister,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """
    Register a new user.

    Without `roleId` the current default role is assigned.
    """
    user = await user_service.register_user(db, cache, data, settings.bcrypt_rounds)
    await clear_response_cache(cache, ADMIN_USERS_PATH)
    return success(user, "User registered successfully")


@router.post("/login")
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    codec: TokenCodec = Depends(get_token_codec),
) -> dict[str, Any]:
    """Log in and receive an access token and a refresh token."""
    result = await user_service.login_user(db, codec, data)
    return success(result, "Login successful")


@router.get("/profile")
async def get_profile(
    context: RequestContext = Depends(user_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Profile of the calling user."""
    user = await user_service.get_user(db, cache, principal_uuid(context.principal))
    return success(user, "Profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    data: UserUpdate,
    context: RequestContext = Depends(user_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Update the calling user's profile."""
    user = await user_service.update_user(db, cache, principal_uuid(context.principal), data)
    await clear_response_cache(cache, ADMIN_USERS_PATH)
    return success(user, "Profile updated successfully")


@router.get("/directory")
async def user_directory(
    params: PaginationParams = Depends(pagination_params),
    _context: RequestContext = Depends(
        require_permission("users:read", authenticate=require_any),
    ),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """
    List users for callers whose role grants `users:read`.

    API-key callers are admitted without a permission lookup.
    """
    page = await user_service.list_users(db, cache, params)
    return paginated(page, "Users retrieved successfully")


@router.get("")
async def list_users(
    params: PaginationParams = Depends(pagination_params),
    _context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """List users (admin)."""
    page = await user_service.list_users(db, cache, params)
    return paginated(page, "Users retrieved successfully")


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    _context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Get a user by id (admin)."""
    user = await user_service.get_user(db, cache, user_id)
    return success(user, "User retrieved successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    _context: RequestContext = Depends(super_admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Delete a user (SUPER_ADMIN)."""
    await user_service.delete_user(db, cache, user_id)
    await clear_response_cache(cache, ADMIN_USERS_PATH)
    return success(message="User deleted successfully")


@router.patch("/{user_id}/role")
async def change_role(
    user_id: UUID,
    data: ChangeRoleRequest,
    _context: RequestContext = Depends(admin_only),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Assign a user to another role (admin)."""
    user = await user_service.change_user_role(db, cache, user_id, data.role_id)
    await clear_response_cache(cache, ADMIN_USERS_PATH)
    return success(user, "User role updated successfully")
