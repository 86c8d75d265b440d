"""
Process-local rate limiting enforcement.

This module contains the enforcement logic - the "how" of rate limiting.
For configuration, see rate_limit_config.py.

Counters live in this process only: running several workers multiplies the
effective limit by the worker count.
"""
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from tenantdesk.core.rate_limit_config import RateLimitConfig, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    started_at: float
    count: int


class RateLimiter:
    """
    Fixed-window request counter keyed by client address.

    Owned by the application (app.state.rate_limiter); windows that have ended
    are pruned lazily on the next check.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    @property
    def config(self) -> RateLimitConfig:
        """Limit being enforced."""
        return self._config

    def _prune(self, now: float) -> None:
        window_seconds = self._config.window_seconds
        expired = [
            client for client, window in self._windows.items()
            if now - window.started_at >= window_seconds
        ]
        for client in expired:
            del self._windows[client]

    def check(self, client: str) -> RateLimitResult:
        """
        Count a request from `client` and report whether it is allowed.

        Rejected requests do not extend the window.
        """
        now = self._clock()
        self._prune(now)

        limit = self._config.max_requests
        window = self._windows.get(client)
        if window is None:
            window = _Window(started_at=now, count=0)
            self._windows[client] = window

        reset_at = window.started_at + self._config.window_seconds
        if window.count >= limit:
            retry_after = max(1, math.ceil(reset_at - now))
            logger.warning(
                "rate_limit_exceeded",
                extra={"client": client, "limit": limit},
            )
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset=int(reset_at),
                retry_after=retry_after,
            )

        window.count += 1
        return RateLimitResult(
            allowed=True,
            limit=limit,
            remaining=limit - window.count,
            reset=int(reset_at),
            retry_after=0,
        )

    def reset(self) -> None:
        """Forget every counter."""
        self._windows.clear()
