"""Tests for the process-local rate limiter."""
import pytest

from tenantdesk.core.rate_limit_config import RateLimitConfig
from tenantdesk.core.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self) -> None:
        self.now = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(RateLimitConfig(max_requests=3, window_seconds=60), clock=clock)


class TestRateLimiter:
    """Tests for RateLimiter.check."""

    def test__check__allows_up_to_limit(self, limiter: RateLimiter) -> None:
        """The first max_requests requests pass with decreasing remaining."""
        remaining = [limiter.check("10.0.0.1").remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

    def test__check__blocks_over_limit(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """The request after the limit is rejected with a retry delay."""
        for _ in range(3):
            limiter.check("10.0.0.1")
        clock.now += 20

        result = limiter.check("10.0.0.1")

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after == 40
        assert result.reset == int(1_700_000_000 + 60)

    def test__check__window_resets(self, limiter: RateLimiter, clock: FakeClock) -> None:
        """A new window starts once the old one has elapsed."""
        for _ in range(4):
            limiter.check("10.0.0.1")
        clock.now += 60

        result = limiter.check("10.0.0.1")

        assert result.allowed is True
        assert result.remaining == 2

    def test__check__clients_are_independent(self, limiter: RateLimiter) -> None:
        """Each address has its own counter."""
        for _ in range(3):
            limiter.check("10.0.0.1")

        assert limiter.check("10.0.0.1").allowed is False
        assert limiter.check("10.0.0.2").allowed is True

    def test__check__rejections_do_not_extend_window(
        self, limiter: RateLimiter, clock: FakeClock,
    ) -> None:
        """Hammering a blocked window does not push its reset back."""
        for _ in range(3):
            limiter.check("10.0.0.1")
        first = limiter.check("10.0.0.1")
        clock.now += 30
        second = limiter.check("10.0.0.1")

        assert first.reset == second.reset

    def test__check__retry_after_at_least_one_second(
        self, limiter: RateLimiter, clock: FakeClock,
    ) -> None:
        """Retry-After never rounds down to zero."""
        for _ in range(3):
            limiter.check("10.0.0.1")
        clock.now += 59.9

        assert limiter.check("10.0.0.1").retry_after == 1

    def test__reset__forgets_counters(self, limiter: RateLimiter) -> None:
        """reset() restores every client's full allowance."""
        for _ in range(3):
            limiter.check("10.0.0.1")
        limiter.reset()

        assert limiter.check("10.0.0.1").remaining == 2
