"""Core data structures for the ghja translation engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional

import regex

TextSlot = Literal["text", "tail"]
MutationKind = Literal["childList", "characterData", "attributes"]


@dataclass(frozen=True)
class DictionaryEntry:
    """A source phrase and the phrase that replaces it."""

    source: str
    target: str


@dataclass(frozen=True)
class CompiledMatcher:
    """A boundary-aware pattern for one dictionary entry."""

    pattern: regex.Pattern
    replacement: str


@dataclass(frozen=True)
class TextFragment:
    """A text-bearing slot of an element.

    ``text`` is the content before the element's first child, ``tail`` the
    content that follows the element's end tag inside its parent.
    """

    element: Any
    slot: TextSlot

    @property
    def value(self) -> str:
        return getattr(self.element, self.slot) or ""

    @property
    def parent(self) -> Optional[Any]:
        if self.slot == "text":
            return self.element
        return self.element.getparent()

    @property
    def key(self) -> tuple[Any, str]:
        return (self.element, self.slot)


@dataclass(frozen=True)
class MutationRecord:
    """A single observed change to the document."""

    kind: MutationKind
    target: Any
    attribute: Optional[str] = None


@dataclass(frozen=True)
class KeyEvent:
    """A keyboard event delivered by the host."""

    key: str
    alt: bool = False
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
