"""Timer scheduling and debounced callbacks."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Coroutine, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of timers and background tasks for the engine."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def spawn(self, coroutine: Coroutine[Any, Any, Any]) -> "asyncio.Future[Any]": ...


class AsyncioScheduler:
    """Scheduler bound to an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay, callback)

    def spawn(self, coroutine: Coroutine[Any, Any, Any]) -> "asyncio.Future[Any]":
        return self.loop.create_task(coroutine)


class DebounceState(Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"


class Debouncer:
    """Runs ``callback`` once a burst of triggers has been quiet for ``delay``.

    Each ``trigger`` while scheduled restarts the window. When the timer fires
    the state returns to idle before the callback runs, so triggers raised by
    the callback open a fresh window.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        callback: Callable[[], None],
    ) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.state = DebounceState.IDLE
        self._handle: Optional[TimerHandle] = None

    @property
    def scheduled(self) -> bool:
        return self.state is DebounceState.SCHEDULED

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self.state = DebounceState.SCHEDULED
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self.state = DebounceState.IDLE

    def _fire(self) -> None:
        self._handle = None
        self.state = DebounceState.IDLE
        self.callback()
