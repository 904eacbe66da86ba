"""Per-fragment record of what the dictionary pass has already seen."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from .structures import TextFragment


def is_attached(element: Any, root: Any) -> bool:
    """Return ``True`` when ``element`` is ``root`` or one of its descendants."""

    node = element
    while node is not None:
        if node is root:
            return True
        node = node.getparent()
    return False


class TranslationState:
    """Tracks fragments already offered to the dictionary pass.

    Entries are keyed by fragment identity and remember the value the fragment
    held after processing; a fragment whose value has since changed is treated
    as new. ``sweep`` releases entries whose element left the document.
    """

    def __init__(self) -> None:
        self._seen: Dict[Tuple[Any, str], str] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def is_processed(self, fragment: TextFragment) -> bool:
        recorded = self._seen.get(fragment.key)
        return recorded is not None and recorded == fragment.value

    def mark(self, fragment: TextFragment) -> None:
        self._seen[fragment.key] = fragment.value

    def sweep(self, root: Any) -> int:
        """Drop entries for elements no longer under ``root``; return the count."""

        stale = [key for key in self._seen if not is_attached(key[0], root)]
        for key in stale:
            del self._seen[key]
        return len(stale)

    def clear(self) -> None:
        self._seen.clear()
