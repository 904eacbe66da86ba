"""Error definitions for the ghja translation engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises handled errors for reporting."""

    CONFIGURATION = auto()
    PROVIDER = auto()
    INITIALIZATION = auto()
    FILE_IO = auto()


class GhjaError(Exception):
    """Base exception for all custom errors."""


class SettingsError(GhjaError):
    """Raised when persisted settings cannot be read, validated, or written."""


class UnsupportedFileTypeError(GhjaError):
    """Raised when a given file extension is not supported."""


class OverwriteRefusedError(GhjaError):
    """Raised when attempting to overwrite an output without consent."""


class TranslationProviderConfigurationError(GhjaError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(GhjaError):
    """Raised when a translation provider call fails."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
