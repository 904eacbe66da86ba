from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from ghja.configuration import EngineConfiguration
from ghja.coordinator import MutationCoordinator
from ghja.dictionary import Dictionary
from ghja.documents import HtmlDocument


class _VirtualTimer:
    def __init__(self, when: float, order: int, callback: Callable[[], None]) -> None:
        self.when = when
        self.order = order
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Scheduler whose time only moves when ``advance`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: List[_VirtualTimer] = []
        self._order = 0

    def call_later(self, delay: float, callback: Callable[[], None]) -> _VirtualTimer:
        self._order += 1
        timer = _VirtualTimer(self.now + delay, self._order, callback)
        self._timers.append(timer)
        return timer

    def spawn(self, coroutine: Any) -> "asyncio.Future[Any]":
        return asyncio.get_running_loop().create_task(coroutine)

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.order))
            self._timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target


class FakeProvider:
    """Provider double returning canned translations."""

    def __init__(
        self,
        translations: Optional[Dict[str, str]] = None,
        *,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.translations = translations or {}
        self.error = error
        self.gate = gate
        self.calls: List[List[str]] = []

    async def translate_batch(self, texts, credentials) -> List[str]:
        self.calls.append(list(texts))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return [self.translations.get(text, text) for text in texts]


REMOTE_SETTINGS = dict(use_remote_api=True, provider="DeepL", api_key="secret")


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def make_coordinator(clock: VirtualClock):
    """Build a started coordinator over ``markup`` without a settings store."""

    def factory(
        markup: str,
        *,
        pairs=(("Issues", "課題"), ("Issue", "課題")),
        fake_provider: Optional[FakeProvider] = None,
        start: bool = True,
        **settings: Any,
    ) -> MutationCoordinator:
        document = HtmlDocument(markup)
        coordinator = MutationCoordinator(
            document,
            clock,
            configuration=EngineConfiguration(**settings),
            dictionary=Dictionary.from_pairs(pairs),
            provider_factory=(lambda configuration: fake_provider) if fake_provider else None,
        )
        if start:
            assert coordinator.start()
        return coordinator

    return factory
