"""Unit tests for the rate limiter middleware."""

from datetime import datetime, timezone

import pytest

from src.middleware.rate_limiter import RateLimiter
from src.store.kv_store import InMemoryStore

WINDOW = 3600


@pytest.fixture
def limiter(fake_clock) -> RateLimiter:
    return RateLimiter(
        InMemoryStore(clock=fake_clock), max_requests=3, window_seconds=WINDOW, clock=fake_clock
    )


class TestRateLimiter:
    """Test suite for the RateLimiter class."""

    @pytest.mark.asyncio
    async def test_allows_requests_under_limit(self, limiter):
        """Requests up to the limit should be allowed."""
        for _ in range(3):
            assert await limiter.check_and_increment("203.0.113.5") is True

    @pytest.mark.asyncio
    async def test_blocks_requests_over_limit(self, limiter):
        """The request after the limit should be blocked."""
        for _ in range(3):
            await limiter.check_and_increment("203.0.113.5")

        assert await limiter.check_and_increment("203.0.113.5") is False
        assert await limiter.get_remaining_requests("203.0.113.5") == 0

    @pytest.mark.asyncio
    async def test_different_clients_have_separate_limits(self, limiter):
        """Each client should have their own counter."""
        for _ in range(3):
            await limiter.check_and_increment("client-a")

        assert await limiter.check_and_increment("client-a") is False
        assert await limiter.check_and_increment("client-b") is True

    @pytest.mark.asyncio
    async def test_new_window_resets_counts(self, limiter, fake_clock):
        """Counters reset at the next clock-aligned window."""
        for _ in range(3):
            await limiter.check_and_increment("client")
        assert await limiter.check_and_increment("client") is False

        fake_clock.advance(limiter.seconds_until_reset())
        assert await limiter.check_and_increment("client") is True

    @pytest.mark.asyncio
    async def test_counters_from_past_windows_are_dropped(self, fake_clock):
        """Old window counters must not pile up in the in-memory store."""
        store = InMemoryStore(clock=fake_clock)
        limiter = RateLimiter(store, max_requests=3, window_seconds=WINDOW, clock=fake_clock)

        for _ in range(48):
            for i in range(50):
                await limiter.check_and_increment(f"198.51.100.{i}")
            fake_clock.advance(WINDOW)

        assert len(store._data) <= 50

    @pytest.mark.asyncio
    async def test_remaining_requests(self, limiter):
        assert await limiter.get_remaining_requests("client") == 3

        await limiter.check_and_increment("client")
        assert await limiter.get_remaining_requests("client") == 2

    @pytest.mark.asyncio
    async def test_without_store_everything_is_allowed(self):
        limiter = RateLimiter(None, max_requests=1)

        assert limiter.enabled is False
        for _ in range(5):
            assert await limiter.check_and_increment("client") is True
        assert await limiter.get_remaining_requests("client") == 1
        await limiter.reset()

    @pytest.mark.asyncio
    async def test_reset_single_client(self, limiter):
        for _ in range(3):
            await limiter.check_and_increment("client-a")
            await limiter.check_and_increment("client-b")

        await limiter.reset("client-a")

        assert await limiter.get_remaining_requests("client-a") == 3
        assert await limiter.get_remaining_requests("client-b") == 0

    @pytest.mark.asyncio
    async def test_reset_all(self, limiter):
        await limiter.check_and_increment("client-a")
        await limiter.check_and_increment("client-b")

        await limiter.reset()

        assert await limiter.get_remaining_requests("client-a") == 3
        assert await limiter.get_remaining_requests("client-b") == 3

    @pytest.mark.asyncio
    async def test_exceeded_log_masks_client(self, limiter, mock_logfire):
        for _ in range(4):
            await limiter.check_and_increment("203.0.113.5")

        mock_logfire.warn.assert_called_once()
        assert "203.0.113.5" not in str(mock_logfire.warn.call_args)

    def test_window_reset_time(self, limiter, fake_clock):
        reset_at = limiter.get_window_reset_time()

        # 1_000_000 lies in window 277, which ends at 278 * 3600
        assert reset_at == datetime.fromtimestamp(278 * WINDOW, tz=timezone.utc)
        assert reset_at.tzinfo is not None

    def test_seconds_until_reset(self, limiter, fake_clock):
        assert limiter.seconds_until_reset() == 800

        fake_clock.advance(799.5)
        assert limiter.seconds_until_reset() == 1

    def test_properties(self, limiter):
        assert limiter.max_requests == 3
        assert limiter.enabled is True
