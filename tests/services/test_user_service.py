"""Tests for user service operations."""
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from conftest import TEST_BCRYPT_ROUNDS, TEST_PASSWORD, create_role, create_user
from tenantdesk.core.cache import CacheService, user_key
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.models import Role, User
from tenantdesk.schemas.common import PaginationParams
from tenantdesk.schemas.user import LoginRequest, UserRegister, UserUpdate
from tenantdesk.services import user_service
from tenantdesk.services.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)


def _registration(email: str = "alice@example.com", **kwargs: object) -> UserRegister:
    return UserRegister(email=email, password="secret123", name="Alice", **kwargs)


async def _user_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


class TestRegisterUser:
    """Tests for user_service.register_user."""

    async def test__register_user__assigns_default_role(
        self, db_session: AsyncSession, cache: CacheService, default_role: Role,
    ) -> None:
        """Without a roleId the default role is assigned."""
        user = await user_service.register_user(
            db_session, cache, _registration(), TEST_BCRYPT_ROUNDS,
        )

        assert user["email"] == "alice@example.com"
        assert user["role"]["id"] == str(default_role.id)
        assert user["role"]["slug"] == "member"
        assert "passwordHash" not in user
        assert "password" not in user

    async def test__register_user__email_normalized(
        self, db_session: AsyncSession, cache: CacheService, default_role: Role,  # noqa: ARG002
    ) -> None:
        """Emails are stored trimmed and lower-cased."""
        user = await user_service.register_user(
            db_session, cache, _registration("  Alice@Example.COM "), TEST_BCRYPT_ROUNDS,
        )
        assert user["email"] == "alice@example.com"

    async def test__register_user__duplicate_email_conflicts(
        self, db_session: AsyncSession, cache: CacheService, default_role: Role,  # noqa: ARG002
    ) -> None:
        """A second registration with the same email fails and adds no row."""
        await user_service.register_user(db_session, cache, _registration(), TEST_BCRYPT_ROUNDS)

        with pytest.raises(ConflictError, match="User with this email already exists"):
            await user_service.register_user(
                db_session, cache, _registration("ALICE@example.com"), TEST_BCRYPT_ROUNDS,
            )

        assert await _user_count(db_session) == 1

    async def test__register_user__no_default_role(
        self, db_session: AsyncSession, cache: CacheService,
    ) -> None:
        """Registration fails when no default role is configured."""
        await create_role(db_session, is_default=False)

        with pytest.raises(BadRequestError, match="No default role found"):
            await user_service.register_user(
                db_session, cache, _registration(), TEST_BCRYPT_ROUNDS,
            )

    async def test__register_user__explicit_role(
        self, db_session: AsyncSession, cache: CacheService, default_role: Role,  # noqa: ARG002
    ) -> None:
        """A given roleId overrides the default."""
        editor = await create_role(db_session, name="Editor", slug="editor")

        user = await user_service.register_user(
            db_session, cache, _registration(role_id=editor.id), TEST_BCRYPT_ROUNDS,
        )

        assert user["role"]["slug"] == "editor"

    async def test__register_user__unknown_role(
        self, db_session: AsyncSession, cache: CacheService,
    ) -> None:
        """An unknown roleId is NotFound."""
        with pytest.raises(NotFoundError, match="Role not found"):
            await user_service.register_user(
                db_session, cache, _registration(role_id=uuid7()), TEST_BCRYPT_ROUNDS,
            )


class TestLoginUser:
    """Tests for user_service.login_user."""

    @pytest.fixture
    def codec(self) -> TokenCodec:
        return TokenCodec("unit-test-secret-0123456789abcdef", timedelta(hours=1))

    async def test__login_user__issues_tokens_with_role_claims(
        self, db_session: AsyncSession, codec: TokenCodec, user: User,
    ) -> None:
        """Both tokens carry the user's id, role slug and role id."""
        result = await user_service.login_user(
            db_session, codec, LoginRequest(email="alice@example.com", password=TEST_PASSWORD),
        )

        claims = codec.verify(result["token"])
        assert claims == codec.verify(result["refreshToken"])
        assert claims == {
            "id": str(user.id),
            "email": "alice@example.com",
            "role": "member",
            "roleId": str(user.role_id),
            "type": "user",
        }
        assert result["user"]["id"] == str(user.id)

    @pytest.mark.parametrize(
        ("email", "password"),
        [("alice@example.com", "wrong-password"), ("nobody@example.com", TEST_PASSWORD)],
    )
    async def test__login_user__bad_credentials(
        self,
        db_session: AsyncSession,
        codec: TokenCodec,
        user: User,  # noqa: ARG002
        email: str,
        password: str,
    ) -> None:
        """Unknown email and wrong password fail identically."""
        with pytest.raises(AuthenticationError, match="^Invalid credentials$"):
            await user_service.login_user(
                db_session, codec, LoginRequest(email=email, password=password),
            )

    async def test__login_user__inactive_user_refused(
        self, db_session: AsyncSession, codec: TokenCodec, default_role: Role,
    ) -> None:
        """Deactivated users cannot log in."""
        await create_user(db_session, default_role, email="off@example.com", is_active=False)

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await user_service.login_user(
                db_session, codec, LoginRequest(email="off@example.com", password=TEST_PASSWORD),
            )


class TestUserReads:
    """Tests for cached user reads."""

    async def test__get_user__caches_profile(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """The profile, including role permissions, is stored under user:<id>."""
        profile = await user_service.get_user(db_session, cache, user.id)

        hit, cached = await cache.get(user_key(user.id))
        assert hit is True
        assert cached == profile
        assert profile["roleId"] == str(user.role_id)
        assert profile["role"]["permissions"] == []

    async def test__get_user__missing(
        self, db_session: AsyncSession, cache: CacheService,
    ) -> None:
        """Unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError, match="User not found"):
            await user_service.get_user(db_session, cache, uuid7())

    async def test__list_users__paginates(
        self, db_session: AsyncSession, cache: CacheService, default_role: Role,
    ) -> None:
        """Pages are sliced by limit and carry the total."""
        for i in range(3):
            await create_user(db_session, default_role, email=f"u{i}@example.com", name=f"U{i}")

        page = await user_service.list_users(
            db_session, cache, PaginationParams(page=2, limit=2, sort_by="email", sort_order="asc"),
        )

        assert page.total == 3
        assert [u["email"] for u in page.items] == ["u2@example.com"]

    async def test__get_user_role_id__missing_user_is_none(
        self, db_session: AsyncSession, cache: CacheService,
    ) -> None:
        """Role lookups for unknown users return None."""
        assert await user_service.get_user_role_id(db_session, cache, uuid7()) is None


class TestUserWrites:
    """Tests for user mutations and their cache invalidation."""

    async def test__update_user__invalidates_profile(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """A cached profile is replaced after an update."""
        await user_service.get_user(db_session, cache, user.id)

        await user_service.update_user(db_session, cache, user.id, UserUpdate(name="Alicia"))

        profile = await user_service.get_user(db_session, cache, user.id)
        assert profile["name"] == "Alicia"

    async def test__change_user_role__reflected_in_role_id(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """The cached role id follows a role change."""
        editor = await create_role(db_session, name="Editor", slug="editor")
        assert await user_service.get_user_role_id(db_session, cache, user.id) == user.role_id

        updated = await user_service.change_user_role(db_session, cache, user.id, editor.id)

        assert updated["role"]["slug"] == "editor"
        assert await user_service.get_user_role_id(db_session, cache, user.id) == editor.id

    async def test__change_user_role__unknown_role(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """Moving a user to a missing role fails."""
        with pytest.raises(NotFoundError, match="Role not found"):
            await user_service.change_user_role(db_session, cache, user.id, uuid7())

    async def test__toggle_user_status__flips_flag(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """Toggling twice restores the original state."""
        first = await user_service.toggle_user_status(db_session, cache, user.id)
        second = await user_service.toggle_user_status(db_session, cache, user.id)

        assert first["isActive"] is False
        assert second["isActive"] is True

    async def test__delete_user__removes_row_and_cache(
        self, db_session: AsyncSession, cache: CacheService, user: User,
    ) -> None:
        """Deleted users are gone from the database and the cache."""
        await user_service.get_user(db_session, cache, user.id)

        await user_service.delete_user(db_session, cache, user.id)

        assert (await cache.get(user_key(user.id)))[0] is False
        assert await _user_count(db_session) == 0
