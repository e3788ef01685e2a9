"""
Rate Limiter module for the domain reconciler.

This module provides a fixed-delay rate limiter with:
- Serial access control (one live request at a time, via asyncio.Lock)
- No delay before the first live request of a run
- A fixed pause before every later live request
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional

from domain_reconciler.config import FetcherConfig


@dataclass
class RateLimitStatus:
    """What the limiter did before handing out its slot."""

    waited_seconds: float
    first_request: bool


class RateLimiter:
    """
    Token-less rate limiter protecting a remote API from bursts.

    Ensures:
    - Holders of the slot never overlap (the lock is held for the whole block)
    - Every live request after the first is preceded by a fixed delay
    """

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        """
        Initialize the rate limiter.

        Args:
            config: Fetcher configuration carrying the inter-request delay
            sleep: Awaitable sleep function, injectable for tests
        """
        self._config = config or FetcherConfig()
        self._sleep = sleep or asyncio.sleep
        self._lock = asyncio.Lock()
        self._has_made_request = False

    @property
    def has_made_request(self) -> bool:
        return self._has_made_request

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        """
        Hold the limiter's lock for the duration of the block.

        Usage:
            async with rate_limiter.acquire():
                if cached is None:
                    await rate_limiter.wait_turn()
                    response = await make_request()
                    rate_limiter.record_request()
        """
        async with self._lock:
            yield

    async def wait_turn(self) -> RateLimitStatus:
        """
        Sleep for the configured delay if a live request was already made.

        Must be called while holding acquire().
        """
        if not self._has_made_request:
            return RateLimitStatus(waited_seconds=0.0, first_request=True)

        delay = self._config.request_delay_seconds
        if delay > 0:
            await self._sleep(delay)
        return RateLimitStatus(waited_seconds=delay, first_request=False)

    def record_request(self) -> None:
        """Record that a live request was made."""
        self._has_made_request = True
