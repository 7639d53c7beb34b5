"""
Minimum-interval rate limiter.

Every outbound request awaits ``wait()`` first; the limiter alone owns
the request cadence for whatever it guards (one portal, one geocoding API).
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional


@dataclass
class RateLimiter:
    """Enforces a minimum wall-clock interval between calls to ``wait()``."""

    min_interval: float = 1.0
    last_call: Optional[float] = None
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def per_second(cls, requests_per_second: float) -> "RateLimiter":
        """Create limiter from a requests-per-second budget."""
        return cls(min_interval=1.0 / requests_per_second)

    async def wait(self) -> None:
        """Wait until ``min_interval`` has passed since the previous call returned."""
        async with self.lock:
            if self.last_call is not None:
                elapsed = self.clock() - self.last_call
                if elapsed < self.min_interval:
                    await self.sleep(self.min_interval - elapsed)

            self.last_call = self.clock()
