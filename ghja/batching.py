"""Candidate selection and de-duplicated batches for remote translation."""

from __future__ import annotations

from typing import Dict, List

from .configuration import Aggressiveness

BATCH_LIMIT = 50

MIN_CANDIDATE_LENGTH: Dict[Aggressiveness, int] = {
    Aggressiveness.CONSERVATIVE: 8,
    Aggressiveness.BALANCED: 4,
    Aggressiveness.AGGRESSIVE: 1,
}


def contains_japanese(text: str) -> bool:
    """Detect hiragana, katakana or common kanji in the text."""

    for char in text:
        code = ord(char)
        if (
            0x3041 <= code <= 0x3093  # Hiragana
            or 0x30A1 <= code <= 0x30F3  # Katakana
            or 0x4E00 <= code <= 0x9FAF  # CJK Unified Ideographs
        ):
            return True
    return False


def is_remote_candidate(text: str, aggressiveness: Aggressiveness) -> bool:
    """Return ``True`` for text worth sending to a provider."""

    trimmed = text.strip()
    if len(trimmed) < MIN_CANDIDATE_LENGTH[aggressiveness]:
        return False
    return not contains_japanese(trimmed)


class PendingBatch:
    """Distinct strings awaiting a remote call, kept in insertion order."""

    def __init__(self, limit: int = BATCH_LIMIT) -> None:
        self.limit = max(1, limit)
        self._texts: Dict[str, None] = {}

    def __len__(self) -> int:
        return len(self._texts)

    def __contains__(self, text: object) -> bool:
        return text in self._texts

    def add(self, text: str) -> None:
        self._texts.setdefault(text, None)

    def drain(self) -> List[str]:
        """Remove and return up to ``limit`` strings; the rest stay queued."""

        drained = list(self._texts)[: self.limit]
        for text in drained:
            del self._texts[text]
        return drained

    def clear(self) -> None:
        self._texts.clear()
