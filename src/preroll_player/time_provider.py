"""
Time Provider Abstraction

Provides pluggable time source for ad timers. The realtime provider follows
the wall clock; the simulated provider keeps a virtual clock that only moves
when the caller advances it, which makes countdown timelines deterministic.
"""

import asyncio
import heapq
import itertools
import time
from abc import ABC, abstractmethod

from .log_config import get_context_logger


class TimeProvider(ABC):
    """
    Abstract base class for time providers.

    Enables different time behaviors (real vs. simulated) while keeping the
    timer code identical. Subclasses must implement time retrieval and sleep.
    """

    @abstractmethod
    def now(self) -> float:
        """Get current time (Unix timestamp for real, virtual time for simulated)."""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Sleep for specified duration.

        Args:
            seconds: Duration to sleep (wall-clock for real, virtual for simulated)
        """
        pass

    async def current_time(self) -> float:
        """Async accessor for the current time."""
        return self.now()

    def elapsed_time(self, start_time: float) -> float:
        """Calculate elapsed time since start_time.

        Args:
            start_time: Reference time from an earlier now() call

        Returns:
            Elapsed time in seconds
        """
        return self.now() - start_time

    @abstractmethod
    def get_mode(self) -> str:
        """Get time provider mode identifier."""
        pass


class RealtimeTimeProvider(TimeProvider):
    """
    Real-time time provider using wall-clock time.

    Uses time.time() for current time and asyncio.sleep() for delays.

    Examples:
        >>> provider = RealtimeTimeProvider()
        >>> start = provider.now()
        >>> await provider.sleep(1.0)  # Sleep 1 real second
        >>> assert 0.95 < provider.elapsed_time(start) < 1.1
    """

    def now(self) -> float:
        """Get current wall-clock time."""
        return time.time()

    async def sleep(self, seconds: float) -> None:
        """Sleep for specified wall-clock duration."""
        await asyncio.sleep(seconds)

    def get_mode(self) -> str:
        """Get provider mode."""
        return "realtime"


class SimulatedTimeProvider(TimeProvider):
    """
    Simulated time provider with a caller-driven virtual clock.

    sleep() suspends until advance() moves the virtual clock past the
    sleeper's deadline. Sleepers wake in deadline order (registration order
    for equal deadlines) and the event loop is drained after each wake-up, so
    every callback scheduled by a woken task runs before the next deadline
    is processed.

    Examples:
        >>> clock = SimulatedTimeProvider()
        >>> task = asyncio.create_task(clock.sleep(5.0))
        >>> await clock.advance(5.0)
        >>> assert task.done() and clock.now() == 5.0
    """

    # Loop iterations needed for a woken task to run and re-arm its sleep
    DRAIN_ITERATIONS = 20

    def __init__(self, initial_time: float = 0.0):
        """
        Initialize simulated time provider.

        Args:
            initial_time: Starting virtual time (default: 0.0)
        """
        self.virtual_time = initial_time
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._sequence = itertools.count()
        self.logger = get_context_logger("simulated_time_provider")

    def now(self) -> float:
        """Get current virtual time."""
        return self.virtual_time

    async def sleep(self, seconds: float) -> None:
        """Wait until the virtual clock reaches now + seconds."""
        if seconds <= 0:
            await asyncio.sleep(0)
            return

        future = asyncio.get_running_loop().create_future()
        deadline = self.virtual_time + seconds
        heapq.heappush(self._sleepers, (deadline, next(self._sequence), future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move the virtual clock forward, waking due sleepers in order.

        Args:
            seconds: Virtual duration to advance

        Raises:
            ValueError: If seconds is negative
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance by a negative duration, got {seconds}")

        target = self.virtual_time + seconds
        await self._drain()

        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            if future.done():
                continue
            self.virtual_time = max(self.virtual_time, deadline)
            future.set_result(None)
            await self._drain()

        self.virtual_time = target
        await self._drain()

    def pending_sleepers(self) -> int:
        """Number of sleepers still waiting on the virtual clock."""
        return sum(1 for _, _, future in self._sleepers if not future.done())

    def get_mode(self) -> str:
        """Get provider mode."""
        return "simulated"

    async def _drain(self) -> None:
        for _ in range(self.DRAIN_ITERATIONS):
            await asyncio.sleep(0)


def create_time_provider(mode: str = "real", **kwargs) -> TimeProvider:
    """
    Factory function to create appropriate time provider.

    Args:
        mode: 'real' or 'simulated'
        **kwargs: Additional arguments passed to the simulated provider

    Returns:
        Configured TimeProvider instance
    """
    if mode == "simulated":
        return SimulatedTimeProvider(**kwargs)
    return RealtimeTimeProvider()


__all__ = [
    "TimeProvider",
    "RealtimeTimeProvider",
    "SimulatedTimeProvider",
    "create_time_provider",
]
