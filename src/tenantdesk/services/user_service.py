"""Service layer for user accounts."""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.cache import USERS_PATTERN, CacheService, user_key
from tenantdesk.core.passwords import hash_password, verify_password
from tenantdesk.core.request_context import Principal, PrincipalType
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.models.role import Role
from tenantdesk.models.user import User
from tenantdesk.schemas.common import Page, PaginationParams
from tenantdesk.schemas.user import (
    LoginRequest,
    UserLoginResponse,
    UserProfileResponse,
    UserRegister,
    UserResponse,
    UserStatusResponse,
    UserUpdate,
)
from tenantdesk.services import role_service
from tenantdesk.services.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from tenantdesk.services.utils import flush_or_conflict, order_by_clause

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "User with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

SORT_COLUMNS = {
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
    "name": User.name,
    "email": User.email,
}


async def _get_user_row(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def _invalidate(cache: CacheService, user_id: UUID) -> None:
    await cache.delete(user_key(user_id))
    await cache.delete_pattern(USERS_PATTERN)


async def register_user(
    db: AsyncSession,
    cache: CacheService,
    data: UserRegister,
    bcrypt_rounds: int,
) -> dict[str, Any]:
    """
    Register a user, assigning the current default role when none is given.

    Raises:
        ConflictError: If the email is already registered.
        BadRequestError: If no role is given and no default role exists.
        NotFoundError: If the given role does not exist.
    """
    existing = await db.execute(select(User.id).where(User.email == data.email))
    if existing.first() is not None:
        raise ConflictError(USER_EXISTS_MESSAGE)

    if data.role_id is None:
        default_role = await role_service.get_default_role(db)
        if default_role is None:
            raise BadRequestError("No default role found. Please create a default role first.")
        role_id = default_role.id
    else:
        if await db.get(Role, data.role_id) is None:
            raise NotFoundError("Role")
        role_id = data.role_id

    user = User(
        email=data.email,
        password_hash=hash_password(data.password, bcrypt_rounds),
        name=data.name,
        phone=data.phone,
        role_id=role_id,
    )
    db.add(user)
    await flush_or_conflict(db, USER_EXISTS_MESSAGE)
    await db.refresh(user, ["role"])
    await db.commit()

    await cache.delete_pattern(USERS_PATTERN)
    logger.info("user_registered", extra={"user_id": str(user.id)})
    return UserResponse.model_validate(user).to_json()


async def login_user(
    db: AsyncSession,
    codec: TokenCodec,
    data: LoginRequest,
) -> dict[str, Any]:
    """
    Verify credentials and issue an access and a refresh token.

    Raises:
        AuthenticationError: Unknown email, inactive account or wrong password
            (indistinguishable to the caller).
    """
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(data.password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    claims = Principal(
        id=str(user.id),
        email=user.email,
        role=user.role.slug,
        type=PrincipalType.USER,
        role_id=str(user.role_id),
    ).to_claims()
    return UserLoginResponse(
        user=UserResponse.model_validate(user),
        token=codec.sign_access_token(claims),
        refresh_token=codec.sign_refresh_token(claims),
    ).to_json()


async def get_user(db: AsyncSession, cache: CacheService, user_id: UUID) -> dict[str, Any]:
    """
    Get a user's profile, cached under user:<id>.

    Raises:
        NotFoundError: If the user does not exist (nothing is cached).
    """
    async def load() -> dict[str, Any]:
        user = await _get_user_row(db, user_id)
        return UserProfileResponse.model_validate(user).to_json()

    return await cache.get_or_compute(user_key(user_id), load)


async def list_users(
    db: AsyncSession,
    cache: CacheService,
    params: PaginationParams,
) -> Page:
    """List users, cached under users:list:<page>:<limit>:<sort>:<order>."""
    order = order_by_clause(SORT_COLUMNS, params)

    async def load() -> dict[str, Any]:
        result = await db.execute(
            select(User).order_by(order).offset(params.offset).limit(params.limit),
        )
        users = result.scalars().all()
        total = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        return Page(
            items=[UserResponse.model_validate(u).to_json() for u in users],
            total=total,
            page=params.page,
            limit=params.limit,
        ).model_dump()

    value = await cache.get_or_compute(f"users:list:{params.cache_suffix()}", load)
    return Page.model_validate(value)


async def update_user(
    db: AsyncSession,
    cache: CacheService,
    user_id: UUID,
    data: UserUpdate,
) -> dict[str, Any]:
    """
    Update profile fields, then invalidate user:<id> and users:*.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await _get_user_row(db, user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.flush()
    await db.commit()

    await _invalidate(cache, user_id)
    return UserResponse.model_validate(user).to_json()


async def delete_user(db: AsyncSession, cache: CacheService, user_id: UUID) -> None:
    """
    Delete a user.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await _get_user_row(db, user_id)
    await db.delete(user)
    await db.commit()

    await _invalidate(cache, user_id)
    logger.info("user_deleted", extra={"user_id": str(user_id)})


async def change_user_role(
    db: AsyncSession,
    cache: CacheService,
    user_id: UUID,
    role_id: UUID,
) -> dict[str, Any]:
    """
    Move a user to another role.

    Raises:
        NotFoundError: If the user or the role does not exist.
    """
    await role_service.get_role(db, cache, role_id)
    user = await _get_user_row(db, user_id)
    user.role_id = role_id
    await db.flush()
    await db.refresh(user, ["role"])
    await db.commit()

    await _invalidate(cache, user_id)
    logger.info("user_role_changed", extra={"user_id": str(user_id), "role_id": str(role_id)})
    return UserResponse.model_validate(user).to_json()


async def toggle_user_status(
    db: AsyncSession,
    cache: CacheService,
    user_id: UUID,
) -> dict[str, Any]:
    """
    Flip a user's active flag. Inactive users cannot log in.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await _get_user_row(db, user_id)
    user.is_active = not user.is_active
    await db.flush()
    await db.commit()

    await _invalidate(cache, user_id)
    return UserStatusResponse.model_validate(user).to_json()


async def get_user_role_id(
    db: AsyncSession,
    cache: CacheService,
    user_id: UUID,
) -> UUID | None:
    """Current role id of a user via the user:<id> cache, None if the user is missing."""
    try:
        profile = await get_user(db, cache, user_id)
    except NotFoundError:
        return None
    return UUID(profile["roleId"])
