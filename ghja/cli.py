"""Command line interface for the ghja engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib
import sys
from typing import Iterable, Optional

from .configuration import EngineConfiguration, SettingsStore
from .errors import (
    GhjaError,
    OverwriteRefusedError,
    SettingsError,
    TranslationProviderConfigurationError,
    TranslationProviderError,
    UnsupportedFileTypeError,
)
from .providers import check_provider
from .translator import TranslationRunner, TranslationSummary, validate_paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghja",
        description="Rewrite GitHub page text into Japanese while leaving code untouched.",
    )
    parser.add_argument(
        "--settings",
        help="Path to the YAML settings file (default: ~/.config/ghja/settings.yaml).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    translate = commands.add_parser("translate", help="Translate an HTML file once.")
    translate.add_argument("input_file", help="Path to the .html file to translate.")
    translate.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending '_ja' to the input name.",
    )
    translate.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )

    commands.add_parser("status", help="Show the current settings.")
    commands.add_parser("enable", help="Enable translation.")
    commands.add_parser("disable", help="Disable translation.")
    commands.add_parser("reset", help="Restore default settings.")
    commands.add_parser(
        "test-provider",
        help="Translate a sample sentence with the configured provider.",
    )
    return parser


def derive_output_path(input_path: pathlib.Path) -> pathlib.Path:
    return input_path.with_name(f"{input_path.stem}_ja{input_path.suffix}")


def execute_translation(
    *,
    input_file: str,
    output_file: str | None,
    force_overwrite: bool,
    store: SettingsStore,
) -> tuple[int, TranslationSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    input_path = pathlib.Path(input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except FileNotFoundError as exc:
        return 1, None, str(exc)
    except OverwriteRefusedError as exc:
        return 1, None, str(exc)
    except GhjaError as exc:
        return 1, None, str(exc)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    runner = TranslationRunner(
        input_path=input_path,
        output_path=output_path,
        store=store,
    )

    try:
        summary = asyncio.run(runner.run())
    except UnsupportedFileTypeError as exc:
        return 1, None, str(exc)
    except GhjaError as exc:
        return 1, None, str(exc)
    except OSError as exc:
        return 1, None, f"Could not read or write the document: {exc}"
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."

    return 0, summary, None


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    print("\nTranslation complete.")
    print(f"  Input file:      {summary.input_path}")
    print(f"  Output file:     {summary.output_path}")
    if not summary.enabled:
        print("  Translation is disabled; the document was copied unchanged.")
    print(f"  Dictionary:      {summary.dictionary_changes} fragments rewritten")
    if summary.remote_enabled:
        print(
            f"  Provider:        {summary.provider_name} "
            f"({summary.remote_changes} fragments rewritten)"
        )
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.error_messages:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def print_configuration(configuration: EngineConfiguration) -> None:
    values = configuration.to_message()
    if values.get("api_key"):
        values["api_key"] = "********"
    for key, value in values.items():
        print(f"  {key + ':':<16} {value}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[ghja] %(levelname)s %(name)s: %(message)s",
    )
    store = SettingsStore(pathlib.Path(args.settings).expanduser() if args.settings else None)

    if args.command == "translate":
        exit_code, summary, message = execute_translation(
            input_file=args.input_file,
            output_file=args.output,
            force_overwrite=args.force,
            store=store,
        )
        if message:
            print(message)
        if summary:
            print_summary(summary)
        return exit_code

    try:
        if args.command == "status":
            print_configuration(store.load())
        elif args.command in {"enable", "disable"}:
            configuration = store.save(enabled=args.command == "enable")
            print("Translation enabled." if configuration.enabled else "Translation disabled.")
        elif args.command == "reset":
            store.clear()
            print("Settings restored to defaults.")
        elif args.command == "test-provider":
            translated = asyncio.run(check_provider(store.load()))
            print(f"Success: {translated}")
    except SettingsError as exc:
        print(exc)
        return 1
    except TranslationProviderConfigurationError as exc:
        print(exc)
        return 1
    except TranslationProviderError as exc:
        print(f"Failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
