"""Tests for principals and password hashing."""
import pytest

from tenantdesk.core.passwords import hash_password, verify_password
from tenantdesk.core.request_context import API_ROLE, Principal, PrincipalType


class TestPrincipalClaims:
    """Tests for Principal.to_claims and Principal.from_claims."""

    def test__to_claims__roundtrips_user(self) -> None:
        """A user principal survives the claim encoding, roleId included."""
        principal = Principal(
            id="0190f1c2-0000-7000-8000-000000000001",
            email="alice@example.com",
            role="member",
            type=PrincipalType.USER,
            role_id="0190f1c2-0000-7000-8000-000000000002",
        )
        assert Principal.from_claims(principal.to_claims()) == principal

    def test__to_claims__omits_missing_role_id(self) -> None:
        """Admins carry no roleId claim."""
        principal = Principal(
            id="a1", email="root@example.com", role="SUPER_ADMIN", type=PrincipalType.ADMIN,
        )
        assert "roleId" not in principal.to_claims()

    def test__from_claims__reads_camel_case_role_id(self) -> None:
        """The role id claim uses the camelCase wire name."""
        claims = {
            "id": "u1", "email": "a@example.com", "role": "member", "type": "user",
            "roleId": "r1",
        }

        assert Principal.from_claims(claims).role_id == "r1"
        assert Principal.from_claims({**claims, "roleId": None}).role_id is None
        assert "role_id" not in Principal.from_claims(claims).to_claims()

    @pytest.mark.parametrize(
        "claims",
        [
            {"email": "a@example.com", "role": "member", "type": "user"},
            {"id": "1", "email": "a@example.com", "role": "member", "type": "robot"},
            {"id": 1, "email": "a@example.com", "role": "member", "type": "user"},
            {},
        ],
    )
    def test__from_claims__wrong_shape_is_none(self, claims: dict) -> None:
        """Missing fields, unknown types and non-string ids are rejected."""
        assert Principal.from_claims(claims) is None

    def test__is_api__only_for_api_role(self) -> None:
        """The api role marks key-authenticated principals."""
        api = Principal(id="system", email="api@system.local", role=API_ROLE, type=PrincipalType.ADMIN)
        admin = Principal(id="a1", email="x@example.com", role="ADMIN", type=PrincipalType.ADMIN)
        assert api.is_api is True
        assert admin.is_api is False


class TestPasswords:
    """Tests for bcrypt helpers."""

    def test__verify_password__accepts_correct_password(self) -> None:
        """The hash verifies against the original password."""
        hashed = hash_password("secret123", rounds=4)
        assert hashed != "secret123"
        assert verify_password("secret123", hashed) is True

    def test__verify_password__rejects_wrong_password(self) -> None:
        """Any other password fails."""
        hashed = hash_password("secret123", rounds=4)
        assert verify_password("secret124", hashed) is False

    def test__verify_password__malformed_hash_never_matches(self) -> None:
        """A corrupt stored hash is a mismatch, not an error."""
        assert verify_password("secret123", "not-a-bcrypt-hash") is False
