"""Service layer for admin accounts."""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.cache import ADMINS_PATTERN, CacheService, admin_key
from tenantdesk.core.passwords import hash_password, verify_password
from tenantdesk.core.request_context import Principal, PrincipalType
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.models.admin import Admin
from tenantdesk.schemas.admin import AdminCreate, AdminLoginResponse, AdminResponse, AdminUpdate
from tenantdesk.schemas.common import Page, PaginationParams
from tenantdesk.schemas.user import LoginRequest
from tenantdesk.services.exceptions import AuthenticationError, ConflictError, NotFoundError
from tenantdesk.services.utils import flush_or_conflict, order_by_clause

logger = logging.getLogger(__name__)

ADMIN_EXISTS_MESSAGE = "Admin with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

SORT_COLUMNS = {
    "createdAt": Admin.created_at,
    "updatedAt": Admin.updated_at,
    "name": Admin.name,
    "email": Admin.email,
    "role": Admin.role,
}


async def _get_admin_row(db: AsyncSession, admin_id: UUID) -> Admin:
    admin = await db.get(Admin, admin_id)
    if admin is None:
        raise NotFoundError("Admin")
    return admin


async def create_admin(
    db: AsyncSession,
    cache: CacheService,
    data: AdminCreate,
    bcrypt_rounds: int,
) -> dict[str, Any]:
    """
    Create an admin account.

    Raises:
        ConflictError: If the email is already taken by another admin.
    """
    existing = await db.execute(select(Admin.id).where(Admin.email == data.email))
    if existing.first() is not None:
        raise ConflictError(ADMIN_EXISTS_MESSAGE)

    admin = Admin(
        email=data.email,
        password_hash=hash_password(data.password, bcrypt_rounds),
        name=data.name,
        phone=data.phone,
        role=data.role.value,
        permissions=tuple(data.permissions),
    )
    db.add(admin)
    await flush_or_conflict(db, ADMIN_EXISTS_MESSAGE)
    await db.commit()

    await cache.delete_pattern(ADMINS_PATTERN)
    logger.info("admin_created", extra={"admin_id": str(admin.id), "role": admin.role})
    return AdminResponse.model_validate(admin).to_json()


async def login_admin(
    db: AsyncSession,
    codec: TokenCodec,
    data: LoginRequest,
) -> dict[str, Any]:
    """
    Verify admin credentials and issue an access and a refresh token.

    Raises:
        AuthenticationError: Unknown email, inactive account or wrong password.
    """
    result = await db.execute(select(Admin).where(Admin.email == data.email))
    admin = result.scalar_one_or_none()
    if admin is None or not admin.is_active:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(data.password, admin.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    claims = Principal(
        id=str(admin.id),
        email=admin.email,
        role=admin.role,
        type=PrincipalType.ADMIN,
    ).to_claims()
    return AdminLoginResponse(
        admin=AdminResponse.model_validate(admin),
        token=codec.sign_access_token(claims),
        refresh_token=codec.sign_refresh_token(claims),
    ).to_json()


async def get_admin(db: AsyncSession, cache: CacheService, admin_id: UUID) -> dict[str, Any]:
    """
    Get an admin, cached under admin:<id>.

    Raises:
        NotFoundError: If the admin does not exist (nothing is cached).
    """
    async def load() -> dict[str, Any]:
        admin = await _get_admin_row(db, admin_id)
        return AdminResponse.model_validate(admin).to_json()

    return await cache.get_or_compute(admin_key(admin_id), load)


async def list_admins(
    db: AsyncSession,
    cache: CacheService,
    params: PaginationParams,
) -> Page:
    """List admins, cached under admins:list:<page>:<limit>:<sort>:<order>."""
    order = order_by_clause(SORT_COLUMNS, params)

    async def load() -> dict[str, Any]:
        result = await db.execute(
            select(Admin).order_by(order).offset(params.offset).limit(params.limit),
        )
        admins = result.scalars().all()
        total = (await db.execute(select(func.count()).select_from(Admin))).scalar_one()
        return Page(
            items=[AdminResponse.model_validate(a).to_json() for a in admins],
            total=total,
            page=params.page,
            limit=params.limit,
        ).model_dump()

    value = await cache.get_or_compute(f"admins:list:{params.cache_suffix()}", load)
    return Page.model_validate(value)


async def update_admin(
    db: AsyncSession,
    cache: CacheService,
    admin_id: UUID,
    data: AdminUpdate,
) -> dict[str, Any]:
    """
    Update admin profile fields, then invalidate admin:<id> and admins:*.

    Raises:
        NotFoundError: If the admin does not exist.
    """
    admin = await _get_admin_row(db, admin_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "permissions":
            value = tuple(value or ())
        setattr(admin, field, value)
    await db.flush()
    await db.commit()

    await cache.delete(admin_key(admin_id))
    await cache.delete_pattern(ADMINS_PATTERN)
    return AdminResponse.model_validate(admin).to_json()


async def delete_admin(db: AsyncSession, cache: CacheService, admin_id: UUID) -> None:
    """
    Delete an admin.

    Raises:
        NotFoundError: If the admin does not exist.
    """
    admin = await _get_admin_row(db, admin_id)
    await db.delete(admin)
    await db.commit()

    await cache.delete(admin_key(admin_id))
    await cache.delete_pattern(ADMINS_PATTERN)
    logger.info("admin_deleted", extra={"admin_id": str(admin_id)})
