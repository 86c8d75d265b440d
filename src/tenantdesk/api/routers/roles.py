"""Role management endpoints. Every route requires an admin principal."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.dependencies import (
    admin_only,
    get_async_session,
    get_cache,
    pagination_params,
    super_admin_only,
)
from tenantdesk.api.helpers.response_cache import ROLES_TTL, cached_response, clear_response_cache
from tenantdesk.core.cache import CacheService
from tenantdesk.schemas.common import PaginationParams
from tenantdesk.schemas.envelope import paginated, success
from tenantdesk.schemas.role import RoleCreate, RoleUpdate
from tenantdesk.services import role_service

router = APIRouter(
    prefix="/api/roles",
    tags=["roles"],
    dependencies=[Depends(admin_only)],
)

ROLES_PATH = "/api/roles"


@router.get("")
async def list_roles(
    request: Request,
    params: PaginationParams = Depends(pagination_params),
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """List roles with user counts."""
    async def render() -> dict[str, Any]:
        page = await role_service.list_roles(db, cache, params)
        return paginated(page, "Roles retrieved successfully")

    return await cached_response(request, cache, ROLES_TTL, render)


@router.post("", status_code=201, dependencies=[Depends(super_admin_only)])
async def create_role(
    data: RoleCreate,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Create a role (SUPER_ADMIN)."""
    role = await role_service.create_role(db, cache, data)
    await clear_response_cache(cache, ROLES_PATH)
    return success(role, "Role created successfully")


@router.get("/{role_id}")
async def get_role(
    request: Request,
    role_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> JSONResponse:
    """Get a role with its user count."""
    async def render() -> dict[str, Any]:
        role = await role_service.get_role(db, cache, role_id)
        return success(role, "Role retrieved successfully")

    return await cached_response(request, cache, ROLES_TTL, render)


@router.put("/{role_id}", dependencies=[Depends(super_admin_only)])
async def update_role(
    role_id: UUID,
    data: RoleUpdate,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Update a role (SUPER_ADMIN)."""
    role = await role_service.update_role(db, cache, role_id, data)
    await clear_response_cache(cache, ROLES_PATH)
    return success(role, "Role updated successfully")


@router.delete("/{role_id}", dependencies=[Depends(super_admin_only)])
async def delete_role(
    role_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Delete a role that has no users (SUPER_ADMIN)."""
    await role_service.delete_role(db, cache, role_id)
    await clear_response_cache(cache, ROLES_PATH)
    return success(message="Role deleted successfully")


@router.patch("/{role_id}/set-default", dependencies=[Depends(super_admin_only)])
async def set_default_role(
    role_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Make this role the default for new registrations (SUPER_ADMIN)."""
    role = await role_service.set_default_role(db, cache, role_id)
    await clear_response_cache(cache, ROLES_PATH)
    return success(role, "Default role updated successfully")
