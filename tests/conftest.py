"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.main import create_app
from tenantdesk.core.cache import CacheService
from tenantdesk.core.config import Settings
from tenantdesk.core.memory_cache import MemoryCacheStore
from tenantdesk.core.passwords import hash_password
from tenantdesk.core.request_context import Principal, PrincipalType
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.db.session import Database, get_async_session
from tenantdesk.models import Admin, AdminRole, Role, User

TEST_JWT_SECRET = "test-jwt-secret-that-is-long-enough-0123456789"
STATIC_API_KEY = "static-test-key"
TEST_PASSWORD = "password123"
TEST_BCRYPT_ROUNDS = 4


def make_settings(database_url: str, **overrides: Any) -> Settings:
    """Settings isolated from the local .env file."""
    values: dict[str, Any] = {
        "ENVIRONMENT": "test",
        "DATABASE_URL": database_url,
        "JWT_SECRET": TEST_JWT_SECRET,
        "API_KEY": STATIC_API_KEY,
        "CACHE_BACKEND": "memory",
        "BCRYPT_ROUNDS": TEST_BCRYPT_ROUNDS,
        "RATE_LIMIT_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite file unique to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def settings(database_url: str) -> Settings:
    """Test settings with the in-process cache and rate limiting off."""
    return make_settings(database_url)


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database]:
    """Connected database with the schema created."""
    db = Database(settings)
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """Session on the test database."""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
async def cache_store() -> AsyncGenerator[MemoryCacheStore]:
    """Connected in-process cache store."""
    store = MemoryCacheStore()
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def cache(cache_store: MemoryCacheStore) -> CacheService:
    """Cache service over the in-process store."""
    return CacheService(cache_store, default_ttl=3600)


@pytest.fixture
def token_codec(settings: Settings) -> TokenCodec:
    """Codec sharing the app's signing secret."""
    return TokenCodec(
        settings.jwt_secret,
        access_token_ttl=timedelta(seconds=settings.jwt_access_token_ttl),
    )


@pytest.fixture
async def app(
    settings: Settings,
    cache_store: MemoryCacheStore,
    db_session: AsyncSession,
) -> AsyncGenerator[FastAPI]:
    """
    Application with its lifespan running.

    Requests share the test's db_session, so rows created by a test are visible
    to the app and vice versa. The app also shares the test's cache store.
    """
    application = create_app(settings, cache_store=cache_store)

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    application.dependency_overrides[get_async_session] = override_get_async_session

    # ASGITransport does not send lifespan events
    async with application.router.lifespan_context(application):
        yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to the app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def create_role(
    db: AsyncSession,
    name: str = "Member",
    slug: str = "member",
    permissions: tuple[str, ...] = (),
    is_default: bool = False,
) -> Role:
    """Insert and commit a role."""
    role = Role(name=name, slug=slug, permissions=permissions, is_default=is_default)
    db.add(role)
    await db.commit()
    return role


async def create_user(
    db: AsyncSession,
    role: Role,
    email: str = "alice@example.com",
    name: str = "Alice",
    is_active: bool = True,
) -> User:
    """Insert and commit a user with TEST_PASSWORD."""
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD, TEST_BCRYPT_ROUNDS),
        name=name,
        role_id=role.id,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user, ["role"])
    return user


async def create_admin(
    db: AsyncSession,
    email: str = "admin@example.com",
    role: AdminRole = AdminRole.ADMIN,
    name: str = "Admin",
) -> Admin:
    """Insert and commit an admin with TEST_PASSWORD."""
    admin = Admin(
        email=email,
        password_hash=hash_password(TEST_PASSWORD, TEST_BCRYPT_ROUNDS),
        name=name,
        role=role.value,
    )
    db.add(admin)
    await db.commit()
    return admin


def user_headers(codec: TokenCodec, user: User) -> dict[str, str]:
    """Bearer header for a user principal."""
    principal = Principal(
        id=str(user.id),
        email=user.email,
        role=user.role.slug,
        type=PrincipalType.USER,
        role_id=str(user.role_id),
    )
    return {"Authorization": f"Bearer {codec.sign_access_token(principal.to_claims())}"}


def admin_headers(codec: TokenCodec, admin: Admin) -> dict[str, str]:
    """Bearer header for an admin principal."""
    principal = Principal(
        id=str(admin.id),
        email=admin.email,
        role=admin.role,
        type=PrincipalType.ADMIN,
    )
    return {"Authorization": f"Bearer {codec.sign_access_token(principal.to_claims())}"}


@pytest.fixture
async def default_role(db_session: AsyncSession) -> Role:
    """Default role assigned at registration."""
    return await create_role(db_session, is_default=True)


@pytest.fixture
async def user(db_session: AsyncSession, default_role: Role) -> User:
    """Active user in the default role."""
    return await create_user(db_session, default_role)


@pytest.fixture
async def admin(db_session: AsyncSession) -> Admin:
    """Plain ADMIN."""
    return await create_admin(db_session)


@pytest.fixture
async def super_admin(db_session: AsyncSession) -> Admin:
    """SUPER_ADMIN."""
    return await create_admin(
        db_session, email="root@example.com", role=AdminRole.SUPER_ADMIN, name="Root",
    )


@pytest.fixture
def user_auth(token_codec: TokenCodec, user: User) -> dict[str, str]:
    """Authorization header for `user`."""
    return user_headers(token_codec, user)


@pytest.fixture
def admin_auth(token_codec: TokenCodec, admin: Admin) -> dict[str, str]:
    """Authorization header for `admin`."""
    return admin_headers(token_codec, admin)


@pytest.fixture
def super_admin_auth(token_codec: TokenCodec, super_admin: Admin) -> dict[str, str]:
    """Authorization header for `super_admin`."""
    return admin_headers(token_codec, super_admin)


@pytest.fixture
def static_key_auth() -> dict[str, str]:
    """X-API-Key header carrying the static key."""
    return {"X-API-Key": STATIC_API_KEY}
