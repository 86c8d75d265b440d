"""Request context types carrying the authenticated principal."""
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# Sentinels for principals resolved from API keys
SYSTEM_PRINCIPAL_ID = "system"
SYSTEM_PRINCIPAL_EMAIL = "api@system.local"
API_KEY_PRINCIPAL_EMAIL = "api-user"
API_ROLE = "api"


class PrincipalType(StrEnum):
    """Kind of account a principal represents."""

    USER = "user"
    ADMIN = "admin"


class AuthScheme(StrEnum):
    """Credential scheme that resolved the principal."""

    BEARER = "bearer"
    STATIC_KEY = "static_key"
    SESSION_KEY = "session_key"


@dataclass(frozen=True)
class Principal:
    """
    Resolved identity attached to a request.

    Built fresh per request from verified credentials; never persisted.
    """

    id: str
    email: str
    role: str
    type: PrincipalType
    role_id: str | None = None

    @property
    def is_api(self) -> bool:
        """True for principals authenticated by API key."""
        return self.role == API_ROLE

    def to_claims(self) -> dict[str, Any]:
        """Claims to embed in a bearer token."""
        claims: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "type": self.type.value,
        }
        if self.role_id is not None:
            claims["roleId"] = self.role_id
        return claims

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Principal | None":
        """Build a principal from verified claims, None if the claim shape is wrong."""
        try:
            principal_type = PrincipalType(claims["type"])
            principal_id = claims["id"]
            email = claims["email"]
            role = claims["role"]
        except (KeyError, ValueError):
            return None
        if not all(isinstance(v, str) for v in (principal_id, email, role)):
            return None
        role_id = claims.get("roleId")
        return cls(
            id=principal_id,
            email=email,
            role=role,
            type=principal_type,
            role_id=role_id if isinstance(role_id, str) else None,
        )


@dataclass(frozen=True)
class RequestContext:
    """
    Authentication result threaded through the dependency chain.

    Authorization dependencies take this (never None), so a route guarded by them
    cannot run without an identity.
    """

    principal: Principal
    scheme: AuthScheme
    key_prefix: str | None = None  # Only set for session-key auth, e.g. "td_a3f8b2c1"
