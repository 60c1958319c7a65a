"""Politeness delay between upstream requests."""

import asyncio


class RateLimiter:
    """Sleeps a fixed delay between consecutive catalog page requests. A zero delay never sleeps."""

    def __init__(
        self,
        delay: float
    ):
        self.delay = delay

    async def wait(self) -> None:
        """Wait appropriate time before next request."""
        if self.delay > 0:
            await asyncio.sleep(self.delay)
