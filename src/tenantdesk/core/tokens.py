"""Bearer token signing and verification (HS256 JWTs)."""
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Refresh tokens have a fixed lifetime regardless of the access token setting
REFRESH_TOKEN_TTL = timedelta(days=30)

# Registered claims added by sign() and stripped by verify()
RESERVED_CLAIMS = frozenset({"iat", "exp"})


class TokenCodec:
    """
    Signs and verifies bearer tokens with a shared secret.

    Stateless: no token is stored server-side. Access and refresh tokens share the
    key and claim shape and differ only in expiry, so verify() accepts either.
    """

    def __init__(self, secret: str, access_token_ttl: timedelta) -> None:
        if not secret:
            raise ValueError("A token signing secret is required")
        self._secret = secret
        self._access_token_ttl = access_token_ttl

    def sign(
        self,
        claims: dict[str, Any],
        ttl: timedelta,
        now: datetime | None = None,
    ) -> str:
        """
        Produce a signed token carrying `claims` that expires `ttl` after `now`.

        Any alteration of the claims or expiry invalidates the signature.
        """
        issued_at = now or datetime.now(UTC)
        payload = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def sign_access_token(self, claims: dict[str, Any]) -> str:
        """Sign a token with the configured access-token lifetime."""
        return self.sign(claims, self._access_token_ttl)

    def sign_refresh_token(self, claims: dict[str, Any]) -> str:
        """Sign a token with the fixed 30-day refresh lifetime."""
        return self.sign(claims, REFRESH_TOKEN_TTL)

    def verify(self, token: str) -> dict[str, Any] | None:
        """
        Return the claims if the signature and expiry are valid, else None.

        Bad signature, expiry and malformed input are deliberately indistinguishable
        to the caller.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("token_rejected reason=%s", type(e).__name__)
            return None
        return {k: v for k, v in payload.items() if k not in RESERVED_CLAIMS}

    @staticmethod
    def decode_unsafe(token: str) -> dict[str, Any] | None:
        """
        Decode claims WITHOUT checking signature or expiry.

        For inspection only (logging, debugging). Never base an authorization
        decision on the result.
        """
        try:
            return jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
                algorithms=[ALGORITHM],
            )
        except jwt.PyJWTError:
            return None
