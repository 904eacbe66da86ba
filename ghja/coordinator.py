"""Mutation-driven scheduling and the engine's control surface."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import aiohttp

from .configuration import EngineConfiguration, SettingsStore
from .dictionary import Dictionary
from .documents import HtmlDocument
from .engine import TranslationEngine
from .errors import ErrorCategory, ErrorRecord, GhjaError
from .remote import ProviderFactory, RemoteBatchTranslator
from .scheduling import Debouncer, Scheduler
from .state import TranslationState
from .structures import KeyEvent, MutationRecord

logger = logging.getLogger(__name__)

MUTATION_DEBOUNCE_SECONDS = 0.25
NAVIGATION_DELAY_SECONDS = 0.15
TARGET_LANGUAGE = "ja"
TOGGLE_KEY = "j"

MESSAGE_TRANSLATE_NOW = "translate-now"
MESSAGE_GET_STATUS = "get-status"
MESSAGE_SET_ENABLED = "set-enabled"

OBSERVED_MUTATIONS = frozenset({"childList", "characterData"})


class MutationCoordinator:
    """Owns the configuration and re-runs the engine as the document changes.

    Observed child-list and character-data changes open a debounce window;
    when it closes, an enabled engine translates fragments it has not seen
    yet and refreshes attributes. Full passes run at start-up, on request,
    on enabling and shortly after a same-document navigation.
    """

    def __init__(
        self,
        document: HtmlDocument,
        scheduler: Scheduler,
        *,
        store: Optional[SettingsStore] = None,
        configuration: Optional[EngineConfiguration] = None,
        dictionary: Optional[Dictionary] = None,
        provider_factory: Optional[ProviderFactory] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.document = document
        self.scheduler = scheduler
        self.store = store
        self.configuration = configuration or EngineConfiguration()
        self.state = TranslationState()
        self.dictionary = dictionary or Dictionary()
        self.remote = RemoteBatchTranslator(
            document,
            self.dictionary,
            scheduler,
            configuration=self.configuration,
            state=self.state,
            provider_factory=provider_factory,
            session=session,
        )
        self.engine = TranslationEngine(
            document,
            dictionary=self.dictionary,
            state=self.state,
            remote=self.remote,
            configuration=self.configuration,
        )
        self.errors: List[ErrorRecord] = []
        self.started = False
        self.changes = 0
        self._mutations = Debouncer(scheduler, MUTATION_DEBOUNCE_SECONDS, self._on_quiet)
        self._navigation = Debouncer(scheduler, NAVIGATION_DELAY_SECONDS, self._on_navigation_settled)

    # --- Lifecycle --------------------------------------------------------

    def start(self) -> bool:
        """Load settings, begin observing and run the initial pass.

        Returns ``False`` and leaves the page untouched when settings cannot
        be loaded.
        """

        try:
            configuration = self.store.load() if self.store is not None else self.configuration
        except GhjaError as exc:
            self._record(ErrorCategory.INITIALIZATION, "Initialisation failed.", str(exc))
            return False

        self._apply(configuration)
        self.document.observe(self.on_mutations)
        self.started = True
        if configuration.enabled:
            self.document.set_language(TARGET_LANGUAGE)
            self.translate_now()
        return True

    def stop(self) -> None:
        self.document.disconnect(self.on_mutations)
        self._mutations.cancel()
        self._navigation.cancel()
        self.started = False

    @property
    def busy(self) -> bool:
        return self._mutations.scheduled or self._navigation.scheduled or self.remote.busy

    async def settle(self, poll_interval: float = 0.05) -> None:
        """Wait until no debounce window is open and no remote call is pending."""

        while self.busy:
            await self.remote.wait_idle()
            await asyncio.sleep(poll_interval)

    # --- Configuration ----------------------------------------------------

    def apply_configuration(self, **changes: Any) -> EngineConfiguration:
        """Validate ``changes`` into a new snapshot and hand it to dependents."""

        merged = {**self.configuration.model_dump(), **changes}
        configuration = EngineConfiguration.model_validate(merged)
        self._apply(configuration)
        return configuration

    def _apply(self, configuration: EngineConfiguration) -> None:
        self.configuration = configuration
        self.engine.update_configuration(configuration)

    def set_enabled(self, value: bool) -> None:
        """Enable with a full pass, or disable by reloading the untouched page."""

        self.apply_configuration(enabled=value)
        self._persist(enabled=value)
        if value:
            self.document.set_language(TARGET_LANGUAGE)
            self.translate_now()
        else:
            self.reload()

    def _persist(self, **changes: Any) -> None:
        if self.store is None:
            return
        try:
            self.store.save(**changes)
        except GhjaError as exc:
            self._record(ErrorCategory.FILE_IO, "Settings could not be saved.", str(exc))

    # --- Passes -----------------------------------------------------------

    def translate_now(self) -> int:
        changed = self.engine.translate_document()
        self.changes += changed
        return changed

    def reload(self) -> None:
        """Restore the original page; substitutions are never undone one by one."""

        self.remote.pending.clear()
        self.state.clear()
        self.document.reload()
        self._mutations.cancel()

    def on_mutations(self, records: Sequence[MutationRecord]) -> None:
        if any(record.kind in OBSERVED_MUTATIONS for record in records):
            self._mutations.trigger()

    def on_navigation(self) -> None:
        """Handle a same-document route change once the new content settles."""

        self._navigation.trigger()

    def _on_quiet(self) -> None:
        if not self.configuration.enabled:
            return
        self.changes += self.engine.translate_new_or_changed()

    def _on_navigation_settled(self) -> None:
        if not self.configuration.enabled:
            return
        self.translate_now()

    # --- Control surface --------------------------------------------------

    def handle_message(self, message: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Answer a control message; unknown message types get no response."""

        kind = message.get("type")
        if kind == MESSAGE_TRANSLATE_NOW:
            try:
                self.translate_now()
            except (GhjaError, ValueError) as exc:
                logger.warning("Translate-now request failed: %s", exc)
                return {"ok": False, "error": str(exc)}
            return {"ok": True}
        if kind == MESSAGE_GET_STATUS:
            return {"configuration": self.configuration.to_message()}
        if kind == MESSAGE_SET_ENABLED:
            self.set_enabled(bool(message.get("value")))
            return {"ok": True}
        return None

    def handle_key(self, event: KeyEvent) -> bool:
        """Toggle the engine on Alt+J; return ``True`` when the key was used."""

        if not event.alt or event.shift or event.ctrl or event.meta:
            return False
        if event.key.lower() != TOGGLE_KEY:
            return False
        self.set_enabled(not self.configuration.enabled)
        return True

    # --- Reporting --------------------------------------------------------

    def error_records(self) -> List[ErrorRecord]:
        return [*self.errors, *self.remote.errors]

    def _record(self, category: ErrorCategory, message: str, details: Optional[str] = None) -> None:
        self.errors.append(ErrorRecord(category=category, message=message, details=details))
        if category is ErrorCategory.INITIALIZATION:
            logger.error("%s %s", message, details or "")
        else:
            logger.warning("%s %s", message, details or "")
