"""Change notification for the virtual filesystem.

A Regenerator counts updates to its owner. Each consumer remembers the
last generation it saw and waits for the counter to move past it, so any
number of consumers can follow the same owner independently. A consumer
that falls behind sees only the latest generation, not every one it
missed.
"""

import asyncio
import logging
from typing import AsyncIterator, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Regenerator(Generic[T]):
    """Generation counter with a wake signal.

    The owner calls updated() after each mutation attempt, and errored()
    first when that attempt failed. Waiters are woken by updated() only,
    so a failed write still wakes them exactly once.

    Attributes:
        owner: The object being watched; yielded by subscribe()
        generation: Number of updates signalled so far
        last_error: Error reported with the most recent failed update
    """

    def __init__(self, owner: T):
        self.owner = owner
        self.generation = 0
        self.last_error: Optional[BaseException] = None
        self._waiters: List[asyncio.Future] = []

    def updated(self) -> int:
        """Advance the generation and wake all waiters.

        Returns:
            The new generation
        """
        self.generation += 1
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done() and not waiter.get_loop().is_closed():
                waiter.set_result(self.generation)
        logger.debug("Generation %d, woke %d waiter(s)", self.generation, len(waiters))
        return self.generation

    def errored(self, error: BaseException) -> None:
        """Record the error of a failed update."""
        self.last_error = error

    async def wait(self, since: int) -> int:
        """Wait until the generation is past *since*.

        Args:
            since: The last generation the caller has seen

        Returns:
            The current generation
        """
        if self.generation != since:
            return self.generation
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def subscribe(self, since: Optional[int] = None) -> AsyncIterator[T]:
        """Yield the owner now, then again after each new generation.

        Args:
            since: Generation to start from; defaults to the current one
        """
        seen = self.generation if since is None else since
        while True:
            yield self.owner
            seen = await self.wait(seen)

    async def changes(self, since: Optional[int] = None) -> AsyncIterator[int]:
        """Yield each new generation as it is reached, skipping ones missed."""
        seen = self.generation if since is None else since
        while True:
            seen = await self.wait(seen)
            yield seen
