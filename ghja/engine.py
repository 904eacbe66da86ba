"""Dictionary translation of text fragments and interactive attributes."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from lxml import etree

from .configuration import EngineConfiguration
from .dictionary import Dictionary
from .documents import HtmlDocument, walk_fragments
from .eligibility import should_skip
from .remote import RemoteBatchTranslator
from .state import TranslationState

ATTRIBUTE_NAMES: Tuple[str, ...] = ("placeholder", "title", "aria-label")

_ATTRIBUTE_CARRIERS = etree.XPath(
    "descendant-or-self::*[{}]".format(" or ".join(f"@{name}" for name in ATTRIBUTE_NAMES))
)


class TranslationEngine:
    """Applies the dictionary pass to a document and feeds the remote layer."""

    def __init__(
        self,
        document: HtmlDocument,
        *,
        dictionary: Optional[Dictionary] = None,
        state: Optional[TranslationState] = None,
        remote: Optional[RemoteBatchTranslator] = None,
        configuration: Optional[EngineConfiguration] = None,
    ) -> None:
        self.document = document
        self.dictionary = dictionary or Dictionary()
        self.state = state or TranslationState()
        self.remote = remote
        self.configuration = configuration or EngineConfiguration()

    def update_configuration(self, configuration: EngineConfiguration) -> None:
        self.configuration = configuration
        if self.remote is not None:
            self.remote.update_configuration(configuration)

    def translate_document(self) -> int:
        """Full pass over every fragment and attribute."""

        changed = self.translate_text_nodes(only_unprocessed=False)
        return changed + self.translate_attributes()

    def translate_new_or_changed(self) -> int:
        changed = self.translate_text_nodes(only_unprocessed=True)
        return changed + self.translate_attributes()

    def translate_text_nodes(
        self,
        root: Optional[Any] = None,
        *,
        only_unprocessed: bool = False,
    ) -> int:
        """Run the dictionary pass over fragments under ``root``.

        Returns the number of fragments whose text changed. Afterwards the
        remote layer, when enabled, collects what the dictionary left alone.
        """

        if root is None:
            root = self.document.body
        self.state.sweep(self.document.root)

        changed = 0
        for fragment in walk_fragments(
            root, state=self.state, only_unprocessed=only_unprocessed
        ):
            original = fragment.value
            translated = self.dictionary.apply(original)
            if translated != original:
                self.document.set_text(fragment, translated)
                changed += 1

        if self.remote is not None and self.configuration.use_remote_api:
            self.remote.collect()
        return changed

    def translate_attributes(self) -> int:
        """Translate placeholder, title and aria-label values in place."""

        changed = 0
        for element in _ATTRIBUTE_CARRIERS(self.document.root):
            if should_skip(element):
                continue
            for name in ATTRIBUTE_NAMES:
                original = element.get(name)
                if not original:
                    continue
                translated = self.dictionary.apply(original)
                if translated != original:
                    self.document.set_attribute(element, name, translated)
                    changed += 1
                elif self.remote is not None and self.configuration.use_remote_api:
                    self.remote.request_attribute(element, name, original)
        return changed
