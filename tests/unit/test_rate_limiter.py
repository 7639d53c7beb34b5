"""Tests for the minimum-interval rate limiter."""

import pytest

from budget_scraper.core.rate_limiter import RateLimiter


class TestRateLimiter:
    """Tests for RateLimiter.wait."""

    @pytest.mark.asyncio
    async def test_first_call_does_not_wait(self, fake_limiter, fake_clock):
        """Test that the first call goes through immediately."""
        await fake_limiter.wait()

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_back_to_back_calls_are_spaced(self, fake_limiter, fake_clock):
        """Test that consecutive calls are at least min_interval apart."""
        stamps = []
        for _ in range(3):
            await fake_limiter.wait()
            stamps.append(fake_clock.now)

        assert fake_clock.sleeps == [1.0, 1.0]
        assert all(b - a >= 1.0 for a, b in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_waits_only_for_remaining_interval(self, fake_limiter, fake_clock):
        """Test that time already elapsed counts toward the interval."""
        await fake_limiter.wait()
        fake_clock.advance(0.25)
        await fake_limiter.wait()

        assert fake_clock.sleeps == [pytest.approx(0.75)]

    @pytest.mark.asyncio
    async def test_no_wait_after_interval_passed(self, fake_limiter, fake_clock):
        """Test that no sleep happens once the interval has elapsed."""
        await fake_limiter.wait()
        fake_clock.advance(5.0)
        await fake_limiter.wait()

        assert fake_clock.sleeps == []

    @pytest.mark.asyncio
    async def test_zero_interval_never_sleeps(self, fake_clock):
        """Test that a zero interval disables pacing."""
        limiter = RateLimiter(min_interval=0.0, clock=fake_clock, sleep=fake_clock.sleep)
        for _ in range(5):
            await limiter.wait()

        assert fake_clock.sleeps == []

    def test_per_second(self):
        """Test creating limiter from a requests-per-second budget."""
        limiter = RateLimiter.per_second(2.0)

        assert limiter.min_interval == 0.5
