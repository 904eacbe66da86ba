"""Observable HTML document and text fragment enumeration."""

from __future__ import annotations

import pathlib
from typing import Any, Callable, Iterator, List, Optional, Sequence

import lxml.html
from lxml import etree

from .eligibility import should_skip
from .errors import UnsupportedFileTypeError
from .state import TranslationState
from .structures import MutationRecord, TextFragment

MutationCallback = Callable[[Sequence[MutationRecord]], None]

SUPPORTED_SUFFIXES = (".html", ".htm", ".xhtml")


_PARSER = lxml.html.HTMLParser(default_doctype=False)


def _parse(markup: str) -> Any:
    return lxml.html.document_fromstring(markup, parser=_PARSER)


class HtmlDocument:
    """An HTML tree whose writes are reported to registered observers.

    Every change made through this class (including the engine's own writes)
    is delivered to observers as ``MutationRecord`` batches, the way a
    browser's MutationObserver would see it.
    """

    def __init__(self, markup: str, *, source_path: Optional[pathlib.Path] = None) -> None:
        self.source_path = source_path
        self._original_markup = markup
        self.root = _parse(markup)
        self._observers: List[MutationCallback] = []

    @classmethod
    def from_path(cls, path: pathlib.Path) -> "HtmlDocument":
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise UnsupportedFileTypeError(
                "This file type isn't supported. Please use .html or .htm."
            )
        return cls(path.read_text(encoding="utf-8"), source_path=path)

    @property
    def body(self) -> Any:
        body = self.root.find("body")
        return body if body is not None else self.root

    # --- Observation ------------------------------------------------------

    def observe(self, callback: MutationCallback) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def disconnect(self, callback: MutationCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _emit(self, records: Sequence[MutationRecord]) -> None:
        for callback in list(self._observers):
            callback(records)

    # --- Mutation ---------------------------------------------------------

    def set_text(self, fragment: TextFragment, value: str) -> None:
        if getattr(fragment.element, fragment.slot) == value:
            return
        setattr(fragment.element, fragment.slot, value)
        self._emit([MutationRecord(kind="characterData", target=fragment.parent)])

    def set_attribute(self, element: Any, name: str, value: str) -> None:
        if element.get(name) == value:
            return
        element.set(name, value)
        self._emit([MutationRecord(kind="attributes", target=element, attribute=name)])

    def set_language(self, language: str) -> None:
        self.set_attribute(self.root, "lang", language)

    def append_html(self, parent: Any, markup: str) -> None:
        """Parse ``markup`` and append the resulting nodes to ``parent``."""

        for item in lxml.html.fragments_fromstring(markup):
            if isinstance(item, str):
                if len(parent):
                    last = parent[-1]
                    last.tail = (last.tail or "") + item
                else:
                    parent.text = (parent.text or "") + item
            else:
                parent.append(item)
        self._emit([MutationRecord(kind="childList", target=parent)])

    def replace_children(self, parent: Any, markup: str) -> None:
        for child in list(parent):
            parent.remove(child)
        parent.text = None
        self.append_html(parent, markup)

    def remove(self, element: Any) -> None:
        """Detach ``element``; its tail text stays in the parent."""

        parent = element.getparent()
        if parent is None:
            return
        element.drop_tree()
        self._emit([MutationRecord(kind="childList", target=parent)])

    def reload(self) -> None:
        """Discard every change by re-parsing the original markup."""

        self.root = _parse(self._original_markup)
        self._emit([MutationRecord(kind="childList", target=self.root)])

    # --- Output -----------------------------------------------------------

    def serialize(self) -> str:
        return lxml.html.tostring(self.root.getroottree(), encoding="unicode")

    def save(self, destination: pathlib.Path) -> None:
        destination.write_text(self.serialize(), encoding="utf-8")


def iter_fragments(root: Any) -> Iterator[TextFragment]:
    """Yield every non-empty text slot under ``root`` in document order."""

    for event, element in etree.iterwalk(root, events=("start", "end")):
        if event == "start":
            if isinstance(element.tag, str) and element.text:
                yield TextFragment(element, "text")
        elif element is not root and element.tail:
            yield TextFragment(element, "tail")


def iter_translatable(root: Any) -> Iterator[TextFragment]:
    """Yield fragments whose parent passes the eligibility rules."""

    for fragment in iter_fragments(root):
        if should_skip(fragment.parent):
            continue
        if not fragment.value.strip():
            continue
        yield fragment


def walk_fragments(
    root: Any,
    *,
    state: Optional[TranslationState] = None,
    only_unprocessed: bool = False,
) -> Iterator[TextFragment]:
    """Yield translatable fragments, marking each one processed once handled.

    The mark is taken after the consumer resumes, so it records the value the
    consumer left behind.
    """

    for fragment in iter_translatable(root):
        if only_unprocessed and state is not None and state.is_processed(fragment):
            continue
        yield fragment
        if state is not None:
            state.mark(fragment)
