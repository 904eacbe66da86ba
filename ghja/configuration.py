"""Engine configuration model and the persisted settings store."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import SettingsError

APP_NAME = "ghja"
ENV_PREFIX = "GHJA_"
DEFAULT_SETTINGS_PATH = Path.home() / ".config" / APP_NAME / "settings.yaml"


class Provider(str, Enum):
    NONE = "None"
    DEEPL = "DeepL"
    GOOGLE = "Google"
    AZURE = "Azure"


class Aggressiveness(str, Enum):
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class EngineConfiguration(BaseModel):
    """Schema describing all supported configuration options."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    enabled: bool = Field(default=True, description="Rewrite the page at all.")
    use_remote_api: bool = Field(
        default=False,
        description="Send text the dictionary left unchanged to a provider.",
    )
    provider: Provider = Field(default=Provider.NONE)
    api_key: str = Field(default="", repr=False)
    region: str = Field(default="", description="Azure resource region.")
    aggressiveness: Aggressiveness = Field(default=Aggressiveness.BALANCED)
    provider_debug: bool = Field(default=False)

    @model_validator(mode="before")
    @classmethod
    def _normalise_choices(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw_provider = data.get("provider")
        if isinstance(raw_provider, str):
            normalized = raw_provider.strip().lower().replace("-", "").replace("_", "")
            synonyms = {
                "deepl": Provider.DEEPL,
                "google": Provider.GOOGLE,
                "googlecloud": Provider.GOOGLE,
                "azure": Provider.AZURE,
                "microsoft": Provider.AZURE,
            }
            data["provider"] = synonyms.get(normalized, Provider.NONE)
        raw_level = data.get("aggressiveness")
        if isinstance(raw_level, str):
            data["aggressiveness"] = raw_level.strip().lower()
        for key in ("api_key", "region"):
            if data.get(key) is None:
                data.pop(key, None)
        return data

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def remote_configuration_problem(configuration: EngineConfiguration) -> Optional[str]:
    """Describe why remote translation cannot run, or return ``None``."""

    if not configuration.use_remote_api:
        return "Remote translation is disabled."
    if configuration.provider is Provider.NONE:
        return "Remote translation is enabled but no provider is selected."
    if not configuration.api_key.strip():
        return "Remote translation is enabled but no API key is set."
    return None


class SettingsStore:
    """Persisted key-value settings.

    Layers are merged as defaults < YAML file < ``.env`` < process
    environment. Only the YAML layer is ever written.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        *,
        env_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.path = path or DEFAULT_SETTINGS_PATH
        self.env_dir = env_dir or Path.cwd()
        self.environ = os.environ if environ is None else environ

    def load(self) -> EngineConfiguration:
        combined: Dict[str, Any] = dict(self._read_file())
        self._merge_env_sources(combined)
        return self._validate(combined)

    def save(self, **changes: Any) -> EngineConfiguration:
        """Persist ``changes`` to the YAML layer and return the merged result."""

        stored = dict(self._read_file())
        stored.update({key: _plain(value) for key, value in changes.items()})
        self._validate(stored)
        self._write_file(stored)
        return self.load()

    def clear(self) -> EngineConfiguration:
        self._write_file(EngineConfiguration().to_message())
        return self.load()

    # --- Internal helpers -------------------------------------------------

    def _read_file(self) -> Mapping[str, Any]:
        if not self.path.exists():
            return {}
        try:
            parsed = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise SettingsError(f"Settings file {self.path} could not be read: {exc}") from exc
        if parsed is None:
            return {}
        if not isinstance(parsed, Mapping):
            raise SettingsError(
                f"Invalid settings file {self.path}: expected a mapping at the root."
            )
        return parsed

    def _write_file(self, values: Mapping[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                yaml.safe_dump(dict(values), allow_unicode=True, sort_keys=False),
                encoding="utf-8",
            )
        except OSError as exc:
            raise SettingsError(f"Settings file {self.path} could not be written: {exc}") from exc

    def _merge_env_sources(self, target: Dict[str, Any]) -> None:
        """Merge .env and process environment variables into the target mapping."""

        allowed = set(EngineConfiguration.model_fields)

        def merge_values(values: Mapping[str, Optional[str]]) -> None:
            for key, value in sorted(values.items()):
                if value is None or not key.startswith(ENV_PREFIX):
                    continue
                name = key[len(ENV_PREFIX):].lower()
                if name in allowed:
                    target[name] = value

        dotenv_path = self.env_dir / ".env"
        if dotenv_path.exists():
            try:
                dotenv_entries = dotenv_values(dotenv_path)
            except (OSError, UnicodeDecodeError) as exc:
                raise SettingsError(f"Environment file {dotenv_path} could not be read: {exc}") from exc
            merge_values(dotenv_entries)
        merge_values(self.environ)

    def _validate(self, values: Mapping[str, Any]) -> EngineConfiguration:
        try:
            return EngineConfiguration.model_validate(dict(values))
        except ValidationError as exc:
            raise SettingsError(_format_validation_errors(exc.errors())) from exc


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _format_validation_errors(entries: Sequence[Mapping[str, Any]]) -> str:
    details = []
    for entry in entries:
        location = ".".join(str(part) for part in entry.get("loc") or () if part != "")
        message = str(entry.get("msg") or "Invalid value")
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}")
    return "Settings validation errors detected:\n" + "\n".join(details)
