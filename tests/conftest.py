"""Shared test fixtures."""

import pytest

from budget_scraper.core.rate_limiter import RateLimiter


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_limiter(fake_clock):
    """1 request/second limiter driven by the fake clock."""
    return RateLimiter(min_interval=1.0, clock=fake_clock, sleep=fake_clock.sleep)
