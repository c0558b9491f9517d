"""
Owned asyncio timers for live views.

A ViewScope owns every periodic task and debouncer a view starts. Closing the
scope cancels them all and bumps its generation, so results of requests that
were in flight at close time are dropped instead of applied.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Any

logger = logging.getLogger("logitrack.realtime")

AsyncCallback = Callable[..., Awaitable[Any]]


class StaleResponseGuard:
    """Generation counter: a token taken before a request is checked after it."""

    def __init__(self):
        self.generation = 0

    def token(self) -> int:
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def invalidate(self) -> None:
        self.generation += 1


class PeriodicTask:
    """Run `callback` immediately, then every `interval` seconds until stopped."""

    def __init__(self, interval: float, callback: AsyncCallback, name: str = "periodic"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def _loop(self) -> None:
        while True:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                # One failed tick must not stop the timer
                logger.exception("Periodic task %s failed", self.name)
            await asyncio.sleep(self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class Debouncer:
    """
    Single-shot timer reset on every call.

    Only the arguments of the last call made within `delay` seconds reach
    the callback.
    """

    def __init__(self, delay: float, callback: AsyncCallback):
        self.delay = delay
        self.callback = callback
        self._pending: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def call(self, *args, **kwargs) -> None:
        self.cancel()
        self._pending = asyncio.create_task(self._fire(args, kwargs))

    async def _fire(self, args, kwargs) -> None:
        await asyncio.sleep(self.delay)
        await self.callback(*args, **kwargs)

    def cancel(self) -> None:
        if self.pending:
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> None:
        """Wait for the pending call, if any."""
        if self.pending:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass


class ViewScope:
    """Lifetime of one mounted view."""

    def __init__(self):
        self.guard = StaleResponseGuard()
        self._tasks: List[PeriodicTask] = []
        self._debouncers: List[Debouncer] = []
        self.closed = False

    def every(self, interval: float, callback: AsyncCallback, name: str = "periodic") -> PeriodicTask:
        if self.closed:
            raise RuntimeError("view scope is closed")
        task = PeriodicTask(interval, callback, name=name)
        self._tasks.append(task)
        task.start()
        return task

    def debounce(self, delay: float, callback: AsyncCallback) -> Debouncer:
        if self.closed:
            raise RuntimeError("view scope is closed")
        debouncer = Debouncer(delay, callback)
        self._debouncers.append(debouncer)
        return debouncer

    def token(self) -> int:
        return self.guard.token()

    def is_current(self, token: int) -> bool:
        return not self.closed and self.guard.is_current(token)

    async def close(self) -> None:
        """Cancel every owned timer; later results are discarded."""
        self.closed = True
        self.guard.invalidate()
        for debouncer in self._debouncers:
            debouncer.cancel()
        for task in self._tasks:
            await task.stop()
        self._tasks.clear()
        self._debouncers.clear()
