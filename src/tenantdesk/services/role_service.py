"""Service layer for role operations."""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.cache import ROLES_PATTERN, CacheService, role_key
from tenantdesk.models.role import Role
from tenantdesk.models.user import User
from tenantdesk.schemas.common import Page, PaginationParams
from tenantdesk.schemas.role import RoleCreate, RoleResponse, RoleUpdate
from tenantdesk.services.exceptions import BadRequestError, ConflictError, NotFoundError
from tenantdesk.services.utils import flush_or_conflict, order_by_clause

logger = logging.getLogger(__name__)

ROLE_EXISTS_MESSAGE = "Role with this name or slug already exists"

SORT_COLUMNS = {
    "createdAt": Role.created_at,
    "updatedAt": Role.updated_at,
    "name": Role.name,
    "slug": Role.slug,
}


def role_payload(role: Role, user_count: int | None = None) -> dict[str, Any]:
    """JSON-ready representation of a role."""
    response = RoleResponse.model_validate(role)
    response.user_count = user_count
    return response.to_json()


async def _count_users(db: AsyncSession, role_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(User).where(User.role_id == role_id),
    )
    return result.scalar_one()


async def _get_role_row(db: AsyncSession, role_id: UUID) -> Role:
    role = await db.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role")
    return role


async def _clear_defaults(db: AsyncSession, keep: UUID | None = None) -> None:
    stmt = update(Role).where(Role.is_default.is_(True))
    if keep is not None:
        stmt = stmt.where(Role.id != keep)
    await db.execute(stmt.values(is_default=False).execution_options(synchronize_session="fetch"))


async def create_role(
    db: AsyncSession,
    cache: CacheService,
    data: RoleCreate,
) -> dict[str, Any]:
    """
    Create a role.

    Raises:
        ConflictError: If a role with the same name or slug exists.
    """
    existing = await db.execute(
        select(Role.id).where(or_(Role.name == data.name, Role.slug == data.slug)),
    )
    if existing.first() is not None:
        raise ConflictError(ROLE_EXISTS_MESSAGE)

    if data.is_default:
        await _clear_defaults(db)

    role = Role(
        name=data.name,
        slug=data.slug,
        description=data.description,
        permissions=tuple(data.permissions),
        is_default=data.is_default,
    )
    db.add(role)
    await flush_or_conflict(db, ROLE_EXISTS_MESSAGE)
    await db.commit()

    await cache.delete_pattern(ROLES_PATTERN)
    logger.info("role_created", extra={"role_id": str(role.id), "slug": role.slug})
    return role_payload(role, user_count=0)


async def get_role(db: AsyncSession, cache: CacheService, role_id: UUID) -> dict[str, Any]:
    """
    Get a role with its user count, cached under role:<id>.

    Raises:
        NotFoundError: If the role does not exist (nothing is cached).
    """
    async def load() -> dict[str, Any]:
        role = await _get_role_row(db, role_id)
        return role_payload(role, user_count=await _count_users(db, role_id))

    return await cache.get_or_compute(role_key(role_id), load)


async def get_role_by_slug(db: AsyncSession, slug: str) -> dict[str, Any]:
    """
    Get a role by slug (uncached).

    Raises:
        NotFoundError: If no role has this slug.
    """
    result = await db.execute(select(Role).where(Role.slug == slug))
    role = result.scalar_one_or_none()
    if role is None:
        raise NotFoundError("Role")
    return role_payload(role)


async def get_default_role(db: AsyncSession) -> Role | None:
    """Return the active default role, or None if none is configured."""
    result = await db.execute(
        select(Role).where(Role.is_default.is_(True), Role.is_active.is_(True)).limit(1),
    )
    return result.scalar_one_or_none()


async def list_roles(
    db: AsyncSession,
    cache: CacheService,
    params: PaginationParams,
) -> Page:
    """List roles with user counts, cached under roles:list:<page>:<limit>:<sort>:<order>."""
    order = order_by_clause(SORT_COLUMNS, params)

    async def load() -> dict[str, Any]:
        result = await db.execute(
            select(Role).order_by(order).offset(params.offset).limit(params.limit),
        )
        roles = list(result.scalars().all())
        total = (await db.execute(select(func.count()).select_from(Role))).scalar_one()

        counts: dict[UUID, int] = {}
        if roles:
            count_rows = await db.execute(
                select(User.role_id, func.count())
                .where(User.role_id.in_([r.id for r in roles]))
                .group_by(User.role_id),
            )
            counts = {role_id: count for role_id, count in count_rows.all()}

        return Page(
            items=[role_payload(r, user_count=counts.get(r.id, 0)) for r in roles],
            total=total,
            page=params.page,
            limit=params.limit,
        ).model_dump()

    value = await cache.get_or_compute(f"roles:list:{params.cache_suffix()}", load)
    return Page.model_validate(value)


async def update_role(
    db: AsyncSession,
    cache: CacheService,
    role_id: UUID,
    data: RoleUpdate,
) -> dict[str, Any]:
    """
    Update a role, then invalidate role:<id> and roles:*.

    Raises:
        NotFoundError: If the role does not exist.
        ConflictError: If the new name is taken.
    """
    role = await _get_role_row(db, role_id)
    changes = data.model_dump(exclude_unset=True)

    if "name" in changes and changes["name"] != role.name:
        taken = await db.execute(select(Role.id).where(Role.name == changes["name"]))
        if taken.first() is not None:
            raise ConflictError(ROLE_EXISTS_MESSAGE)

    for field, value in changes.items():
        if field == "permissions":
            value = tuple(value or ())
        setattr(role, field, value)

    await flush_or_conflict(db, ROLE_EXISTS_MESSAGE)
    await db.commit()

    await cache.delete(role_key(role_id))
    await cache.delete_pattern(ROLES_PATTERN)
    return role_payload(role)


async def delete_role(db: AsyncSession, cache: CacheService, role_id: UUID) -> None:
    """
    Delete a role that no user references.

    Raises:
        NotFoundError: If the role does not exist.
        BadRequestError: If users are still assigned to it.
    """
    role = await _get_role_row(db, role_id)
    if await _count_users(db, role_id) > 0:
        raise BadRequestError("Cannot delete role with assigned users")

    await db.delete(role)
    await db.commit()

    await cache.delete(role_key(role_id))
    await cache.delete_pattern(ROLES_PATTERN)
    logger.info("role_deleted", extra={"role_id": str(role_id)})


async def set_default_role(
    db: AsyncSession,
    cache: CacheService,
    role_id: UUID,
) -> dict[str, Any]:
    """
    Make `role_id` the only default role.

    Every other default is cleared in the same transaction before the flag is set,
    so at most one role is ever committed as default.

    Raises:
        NotFoundError: If the role does not exist.
    """
    role = await _get_role_row(db, role_id)
    await _clear_defaults(db, keep=role_id)
    role.is_default = True
    await db.flush()
    await db.commit()

    # Any role's cached payload may have carried the old isDefault flag
    await cache.delete_pattern("role:*")
    await cache.delete_pattern(ROLES_PATTERN)
    return role_payload(role)


async def get_role_permissions(
    db: AsyncSession,
    cache: CacheService,
    role_id: UUID,
) -> tuple[str, ...] | None:
    """Permission set of a role via the role:<id> cache, None if the role is missing."""
    try:
        role = await get_role(db, cache, role_id)
    except NotFoundError:
        return None
    return tuple(role["permissions"])
