"""Cancellable one-shot and interval timers driven by a TimeProvider."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from .log_config import get_context_logger
from .time_provider import TimeProvider


TimerCallback = Callable[[], Any | Awaitable[Any]]


class Timer:
    """
    One-shot or repeating timer running as an asyncio task.

    cancel() is idempotent. When called from inside the timer's own callback
    the callback is allowed to finish and the timer simply stops re-arming.

    Examples:
        >>> timer = Timer.once(clock, 5.0, reveal_skip)
        >>> ticker = Timer.every(clock, 1.0, tick)
        >>> ticker.cancel()
    """

    def __init__(
        self,
        time_provider: TimeProvider,
        delay: float,
        callback: TimerCallback,
        repeat: bool = False,
        name: str = "timer",
    ):
        self.time_provider = time_provider
        self.delay = delay
        self.callback = callback
        self.repeat = repeat
        self.name = name
        self.fired = 0
        self._cancelled = False
        self.logger = get_context_logger("timer")
        self._task = asyncio.get_running_loop().create_task(self._run(), name=name)

    @classmethod
    def once(cls, time_provider: TimeProvider, delay: float, callback: TimerCallback, name: str = "timeout") -> "Timer":
        return cls(time_provider, delay, callback, repeat=False, name=name)

    @classmethod
    def every(cls, time_provider: TimeProvider, interval: float, callback: TimerCallback, name: str = "interval") -> "Timer":
        return cls(time_provider, interval, callback, repeat=True, name=name)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._task.done()

    def cancel(self) -> None:
        """Stop the timer."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not asyncio.current_task():
            self._task.cancel()

    async def _run(self) -> None:
        while not self._cancelled:
            await self.time_provider.sleep(self.delay)
            if self._cancelled:
                return

            self.fired += 1
            try:
                result = self.callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                self.logger.exception("Timer callback failed", timer=self.name)

            if not self.repeat:
                self._cancelled = True
                return


__all__ = ["Timer", "TimerCallback"]
