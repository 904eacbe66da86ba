"""Batched, best-effort remote translation reconciled by value."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Coroutine, Deque, Dict, List, Optional, Set, Tuple

import aiohttp

from .batching import PendingBatch, is_remote_candidate
from .configuration import EngineConfiguration, remote_configuration_problem
from .dictionary import Dictionary
from .documents import HtmlDocument, iter_translatable
from .errors import ErrorCategory, ErrorRecord, GhjaError
from .providers import ProviderCredentials, TranslationProvider, build_provider
from .scheduling import Debouncer, Scheduler
from .state import TranslationState

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
ERROR_HISTORY = 100

ProviderFactory = Callable[[EngineConfiguration], TranslationProvider]


class RemoteBatchTranslator:
    """Collects untranslated text, sends it in batches and applies results.

    Results are written back by matching the current value of every live
    fragment at response time, never by a node captured at request time, so
    fragments removed or changed in between are simply left alone.
    """

    def __init__(
        self,
        document: HtmlDocument,
        dictionary: Dictionary,
        scheduler: Scheduler,
        *,
        configuration: Optional[EngineConfiguration] = None,
        state: Optional[TranslationState] = None,
        provider_factory: Optional[ProviderFactory] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.document = document
        self.dictionary = dictionary
        self.scheduler = scheduler
        self.state = state
        self.session = session
        self.provider_factory = provider_factory or self._default_provider
        self.configuration = configuration or EngineConfiguration()
        self.pending = PendingBatch()
        self.errors: Deque[ErrorRecord] = deque(maxlen=ERROR_HISTORY)
        self._debouncer = Debouncer(scheduler, DEBOUNCE_SECONDS, self._flush)
        self._tasks: Set["asyncio.Future[Any]"] = set()
        self._unresolved: Set[str] = set()
        self._attribute_requests: Set[Tuple[Any, str, str]] = set()
        self._problem_reported = False
        self.applied = 0

    def update_configuration(self, configuration: EngineConfiguration) -> None:
        self.configuration = configuration
        self._problem_reported = False

    @property
    def busy(self) -> bool:
        return self._debouncer.scheduled or bool(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for every in-flight remote call to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Collection -------------------------------------------------------

    def collect(self) -> int:
        """Queue every live fragment the dictionary could not translate."""

        if not self._ready():
            return 0
        aggressiveness = self.configuration.aggressiveness
        added = 0
        for fragment in iter_translatable(self.document.body):
            text = fragment.value
            if text in self.pending or text in self._unresolved:
                continue
            if not is_remote_candidate(text, aggressiveness):
                continue
            if self.dictionary.apply(text) != text:
                continue
            self.pending.add(text)
            added += 1
        if len(self.pending):
            self._debouncer.trigger()
        return added

    def _flush(self) -> None:
        texts = self.pending.drain()
        if not texts:
            return
        logger.debug("Sending %d texts for remote translation.", len(texts))
        self._spawn(self._send_batch(texts))

    async def _send_batch(self, texts: List[str]) -> int:
        configuration = self.configuration
        try:
            provider = self.provider_factory(configuration)
            results = await provider.translate_batch(
                texts, ProviderCredentials.from_configuration(configuration)
            )
        except Exception as exc:
            self._record(
                ErrorCategory.PROVIDER,
                f"Remote translation batch of {len(texts)} texts discarded.",
                _describe(exc),
            )
            return 0
        return self.apply_translations(texts, results)

    def apply_translations(self, requested: List[str], results: List[str]) -> int:
        """Replace live fragments whose current value was requested."""

        if not self.configuration.enabled:
            return 0
        mapping: Dict[str, str] = {}
        for original, translated in zip(requested, results):
            if translated and translated != original:
                mapping[original] = translated
            else:
                self._unresolved.add(original)
        if not mapping:
            return 0

        applied = 0
        for fragment in iter_translatable(self.document.body):
            replacement = mapping.get(fragment.value)
            if replacement is None:
                continue
            self.document.set_text(fragment, replacement)
            if self.state is not None:
                self.state.mark(fragment)
            applied += 1
        self.applied += applied
        return applied

    # --- Attributes -------------------------------------------------------

    def request_attribute(self, element: Any, name: str, original: str) -> None:
        """Translate one attribute value remotely and apply it if still current."""

        if not self._ready():
            return
        if original in self._unresolved:
            return
        if not is_remote_candidate(original, self.configuration.aggressiveness):
            return
        key = (element, name, original)
        if key in self._attribute_requests:
            return
        self._attribute_requests.add(key)
        self._spawn(self._translate_attribute(key))

    async def _translate_attribute(self, key: Tuple[Any, str, str]) -> None:
        element, name, original = key
        try:
            translated = await self.translate_one(original)
        finally:
            self._attribute_requests.discard(key)
        if translated is None:
            return
        if not translated or translated == original:
            self._unresolved.add(original)
            return
        if not self.configuration.enabled or element.get(name) != original:
            return
        self.document.set_attribute(element, name, translated)
        self.applied += 1

    async def translate_one(self, text: str) -> Optional[str]:
        configuration = self.configuration
        if remote_configuration_problem(configuration):
            return None
        try:
            provider = self.provider_factory(configuration)
            results = await provider.translate_batch(
                [text], ProviderCredentials.from_configuration(configuration)
            )
        except Exception as exc:
            self._record(
                ErrorCategory.PROVIDER,
                "Remote translation of a single text failed.",
                _describe(exc),
            )
            return None
        return results[0]

    # --- Internal helpers -------------------------------------------------

    def _ready(self) -> bool:
        configuration = self.configuration
        if not configuration.use_remote_api:
            return False
        problem = remote_configuration_problem(configuration)
        if problem is None:
            return True
        if not self._problem_reported:
            self._problem_reported = True
            self._record(ErrorCategory.CONFIGURATION, problem)
        return False

    def _default_provider(self, configuration: EngineConfiguration) -> TranslationProvider:
        return build_provider(
            configuration.provider,
            session=self.session,
            debug=configuration.provider_debug,
        )

    def _spawn(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        task = self.scheduler.spawn(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Future[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Remote translation task failed.", exc_info=exc)

    def _record(self, category: ErrorCategory, message: str, details: Optional[str] = None) -> None:
        self.errors.append(ErrorRecord(category=category, message=message, details=details))
        if details:
            logger.warning("%s %s", message, details)
        else:
            logger.warning("%s", message)


def _describe(exc: Exception) -> str:
    if isinstance(exc, GhjaError):
        return str(exc)
    return f"Unexpected {type(exc).__name__}: {exc}"
