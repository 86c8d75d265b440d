"""Tests for user account endpoints."""
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import create_user
from tenantdesk.models import Role, User


async def _user_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


class TestRegisterAndLogin:
    """Tests for POST /api/users/register and /api/users/login."""

    async def test__register__assigns_default_role(
        self, client: AsyncClient, default_role: Role,
    ) -> None:
        """New users land in the default role."""
        response = await client.post(
            "/api/users/register",
            json={"email": "alice@example.com", "password": "secret123", "name": "Alice"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["role"]["id"] == str(default_role.id)
        assert "password" not in body["data"]
        assert "passwordHash" not in body["data"]

    async def test__register__duplicate_email(
        self, client: AsyncClient, db_session: AsyncSession, user: User,  # noqa: ARG002
    ) -> None:
        """Registering a taken email is a 400 and adds no row."""
        response = await client.post(
            "/api/users/register",
            json={"email": "alice@example.com", "password": "secret123", "name": "Alice"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "User with this email already exists",
        }
        assert await _user_count(db_session) == 1

    async def test__register__password_over_bcrypt_limit(
        self, client: AsyncClient, db_session: AsyncSession, default_role: Role,  # noqa: ARG002
    ) -> None:
        """A password longer than 72 bytes is a validation error, not a server error."""
        response = await client.post(
            "/api/users/register",
            json={"email": "long@example.com", "password": "a" * 100, "name": "Long Pw"},
        )

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert error["field"] == "password"
        assert "Password must be at most 72 bytes" in error["message"]
        assert await _user_count(db_session) == 0

    async def test__register__multibyte_password_counted_in_bytes(
        self, client: AsyncClient, default_role: Role,  # noqa: ARG002
    ) -> None:
        """The limit applies to the UTF-8 encoding, not the character count."""
        response = await client.post(
            "/api/users/register",
            json={"email": "emoji@example.com", "password": "é" * 40, "name": "Accent"},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

    async def test__login__password_over_bcrypt_limit(self, client: AsyncClient) -> None:
        """Overlong login passwords are rejected before any lookup."""
        response = await client.post(
            "/api/users/login", json={"email": "alice@example.com", "password": "a" * 100},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

    async def test__register__without_default_role(self, client: AsyncClient) -> None:
        """Registration needs a default role to exist."""
        response = await client.post(
            "/api/users/register",
            json={"email": "alice@example.com", "password": "secret123", "name": "Alice"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            "No default role found. Please create a default role first."
        )

    async def test__register__validation_errors(
        self, client: AsyncClient, default_role: Role,  # noqa: ARG002
    ) -> None:
        """Malformed bodies produce field-level errors."""
        response = await client.post(
            "/api/users/register",
            json={"email": "not-an-email", "password": "123", "name": "A"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert {"email", "password", "name"} <= fields

    async def test__login__returns_tokens(self, client: AsyncClient, user: User) -> None:
        """Valid credentials yield an access and a refresh token."""
        response = await client.post(
            "/api/users/login", json={"email": "Alice@Example.com", "password": "password123"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == str(user.id)
        assert data["token"]
        assert data["refreshToken"]

    async def test__login__wrong_password(self, client: AsyncClient, user: User) -> None:  # noqa: ARG002
        """Bad credentials are a 401."""
        response = await client.post(
            "/api/users/login", json={"email": "alice@example.com", "password": "nope"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestProfile:
    """Tests for /api/users/profile."""

    async def test__profile__includes_role_permissions(
        self, client: AsyncClient, user: User, user_auth: dict[str, str],
    ) -> None:
        """The profile exposes the role and its permissions."""
        response = await client.get("/api/users/profile", headers=user_auth)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == str(user.id)
        assert data["roleId"] == str(user.role_id)
        assert data["role"]["permissions"] == []

    async def test__profile__update_visible_on_next_read(
        self, client: AsyncClient, user_auth: dict[str, str],
    ) -> None:
        """The cached profile is invalidated by an update."""
        await client.get("/api/users/profile", headers=user_auth)

        updated = await client.put(
            "/api/users/profile", json={"name": "Alicia", "phone": "555-0100"}, headers=user_auth,
        )
        assert updated.status_code == 200

        response = await client.get("/api/users/profile", headers=user_auth)
        assert response.json()["data"]["name"] == "Alicia"
        assert response.json()["data"]["phone"] == "555-0100"


class TestUserAdministration:
    """Tests for admin-facing user routes."""

    async def test__list_users__paginated_envelope(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        default_role: Role,
        admin_auth: dict[str, str],
    ) -> None:
        """List responses carry pagination metadata."""
        for i in range(3):
            await create_user(db_session, default_role, email=f"u{i}@example.com", name=f"U{i}")

        response = await client.get(
            "/api/users", params={"page": 2, "limit": 2}, headers=admin_auth,
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 1
        assert body["meta"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}

    async def test__list_users__limit_over_maximum(
        self, client: AsyncClient, admin_auth: dict[str, str],
    ) -> None:
        """Limits above 100 are rejected."""
        response = await client.get("/api/users", params={"limit": 101}, headers=admin_auth)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "limit"

    async def test__list_users__unknown_sort(
        self, client: AsyncClient, admin_auth: dict[str, str],
    ) -> None:
        """Unknown sortBy values are a validation error."""
        response = await client.get(
            "/api/users", params={"sortBy": "passwordHash"}, headers=admin_auth,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "sortBy"

    async def test__get_user__not_found(
        self, client: AsyncClient, admin_auth: dict[str, str],
    ) -> None:
        """Unknown ids are a 404 envelope."""
        response = await client.get(
            "/api/users/0190f1c2-0000-7000-8000-000000000000", headers=admin_auth,
        )

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}

    async def test__get_user__malformed_id(
        self, client: AsyncClient, admin_auth: dict[str, str],
    ) -> None:
        """Non-UUID ids fail validation."""
        response = await client.get("/api/users/not-a-uuid", headers=admin_auth)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "user_id"

    async def test__delete_user__requires_super_admin(
        self,
        client: AsyncClient,
        user: User,
        admin_auth: dict[str, str],
        super_admin_auth: dict[str, str],
    ) -> None:
        """Plain admins cannot delete; SUPER_ADMIN can."""
        refused = await client.delete(f"/api/users/{user.id}", headers=admin_auth)
        assert refused.status_code == 403

        deleted = await client.delete(f"/api/users/{user.id}", headers=super_admin_auth)
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True, "message": "User deleted successfully"}

        missing = await client.get(f"/api/users/{user.id}", headers=super_admin_auth)
        assert missing.status_code == 404

    async def test__change_role__unknown_role(
        self, client: AsyncClient, user: User, admin_auth: dict[str, str],
    ) -> None:
        """Moving a user to a missing role is a 404."""
        response = await client.patch(
            f"/api/users/{user.id}/role",
            json={"roleId": "0190f1c2-0000-7000-8000-000000000000"},
            headers=admin_auth,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Role not found"
