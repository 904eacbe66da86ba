"""High-level orchestration for translating an HTML file once."""

from __future__ import annotations

import pathlib
import time
from dataclasses import dataclass, field
from typing import List, Optional

import aiohttp

from .configuration import SettingsStore
from .coordinator import MutationCoordinator
from .dictionary import Dictionary
from .documents import HtmlDocument
from .errors import GhjaError, OverwriteRefusedError
from .providers import DEFAULT_TIMEOUT
from .remote import ProviderFactory
from .scheduling import AsyncioScheduler


@dataclass
class TranslationSummary:
    """Report returned after processing a document."""

    input_path: pathlib.Path
    output_path: pathlib.Path
    enabled: bool
    remote_enabled: bool
    provider_name: str
    dictionary_changes: int
    remote_changes: int
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)


class TranslationRunner:
    """Loads a file, lets the coordinator settle, and writes the result."""

    def __init__(
        self,
        *,
        input_path: pathlib.Path,
        output_path: pathlib.Path,
        store: Optional[SettingsStore] = None,
        dictionary: Optional[Dictionary] = None,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> None:
        self.input_path = input_path
        self.output_path = output_path
        self.store = store
        self.dictionary = dictionary
        self.provider_factory = provider_factory

    async def run(self) -> TranslationSummary:
        start_time = time.time()
        document = HtmlDocument.from_path(self.input_path)

        timeout = aiohttp.ClientTimeout(total=DEFAULT_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            coordinator = MutationCoordinator(
                document,
                AsyncioScheduler(),
                store=self.store,
                dictionary=self.dictionary,
                provider_factory=self.provider_factory,
                session=session,
            )
            if not coordinator.start():
                errors = coordinator.error_records()
                raise GhjaError(errors[-1].details or errors[-1].message)
            await coordinator.settle()
            coordinator.stop()

        document.save(self.output_path)
        configuration = coordinator.configuration
        return TranslationSummary(
            input_path=self.input_path,
            output_path=self.output_path,
            enabled=configuration.enabled,
            remote_enabled=configuration.use_remote_api,
            provider_name=configuration.provider.value,
            dictionary_changes=coordinator.changes,
            remote_changes=coordinator.remote.applied,
            elapsed_seconds=time.time() - start_time,
            error_messages=[
                f"{record.message} {record.details}" if record.details else record.message
                for record in coordinator.error_records()
            ],
        )


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError(
            "Input file not found. Please provide a readable .html file."
        )
    if not input_path.is_file():
        raise GhjaError("Input path must be a file.")

    if input_path.resolve() == output_path.resolve():
        raise OverwriteRefusedError(
            "The output path matches the input document. Refusing to overwrite the source file."
        )

    if output_path.exists() and not force_overwrite:
        raise OverwriteRefusedError(
            "The output file already exists. Rename it or use the overwrite flag."
        )
