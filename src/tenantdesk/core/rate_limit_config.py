"""
Rate limiting configuration and types.

This module contains the policy configuration for rate limiting - the "what" limits
to apply, separate from the "how" (enforcement logic in rate_limiter.py).
"""
from dataclasses import dataclass

from tenantdesk.core.config import Settings


@dataclass
class RateLimitConfig:
    """Fixed-window limit applied per client address."""

    max_requests: int
    window_seconds: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        """Build the limit from RATE_LIMIT_* settings."""
        return cls(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )


@dataclass
class RateLimitResult:
    """Result of a rate limit check with all info needed for headers."""

    allowed: bool
    limit: int  # Max requests in current window
    remaining: int  # Requests remaining in current window
    reset: int  # Unix timestamp when window resets
    retry_after: int  # Seconds until retry allowed (0 if allowed)


class RateLimitExceededError(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Too many requests from this IP, please try again later")


# Paths that never count against the limit
EXEMPT_PATHS: set[str] = {
    "/health",
}
