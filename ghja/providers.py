"""Remote translation provider adapters.

Every provider honours one contract: a non-empty list of strings goes in and
a list of the same length and order comes back, or
``TranslationProviderError`` is raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from .configuration import EngineConfiguration, Provider, remote_configuration_problem
from .errors import TranslationProviderConfigurationError, TranslationProviderError

logger = logging.getLogger(__name__)

TARGET_LANGUAGE = "ja"
SAMPLE_TEXT = "Hello, this is a translation test."
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class ProviderCredentials:
    api_key: str
    region: str = ""

    @classmethod
    def from_configuration(cls, configuration: EngineConfiguration) -> "ProviderCredentials":
        return cls(
            api_key=configuration.api_key.strip(),
            region=configuration.region.strip(),
        )


class TranslationProvider(ABC):
    """Abstract adapter for translation providers."""

    name = "provider"

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debug: bool = False,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.debug = debug

    async def translate_batch(
        self,
        texts: Sequence[str],
        credentials: ProviderCredentials,
    ) -> List[str]:
        """Translate ``texts`` into Japanese, preserving length and order."""

        if not texts:
            return []
        if not credentials.api_key:
            raise TranslationProviderConfigurationError(
                f"{self.name} requires an API key."
            )
        self._log_debug("provider.request.texts", list(texts))
        try:
            translations = await self._request(list(texts), credentials)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TranslationProviderError(
                f"{self.name} request failed: {exc}"
            ) from exc
        if len(translations) != len(texts):
            raise TranslationProviderError(
                f"{self.name} returned {len(translations)} translations "
                f"for {len(texts)} texts."
            )
        self._log_debug("provider.response.translations", translations)
        return translations

    @abstractmethod
    async def _request(
        self,
        texts: List[str],
        credentials: ProviderCredentials,
    ) -> List[str]:
        """Perform the vendor-specific call."""

    async def _post(self, url: str, **kwargs: Any) -> Any:
        """POST to ``url`` and return the decoded JSON body."""

        session = self.session
        owns_session = session is None
        if session is None:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        try:
            async with session.post(url, **kwargs) as response:
                if not 200 <= response.status < 300:
                    raise TranslationProviderError(
                        f"{self.name} HTTP {response.status}"
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as exc:
                    raise TranslationProviderError(
                        f"{self.name} returned invalid JSON: {exc}"
                    ) from exc
        finally:
            if owns_session:
                await session.close()
        self._log_debug("provider.response.raw", payload)
        return payload

    def _log_debug(self, label: str, payload: Any) -> None:
        if not self.debug:
            return
        try:
            message = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            message = repr(payload)
        logger.debug("[%s] %s:\n%s", self.name, label, message)

    def _malformed(self, detail: str) -> TranslationProviderError:
        return TranslationProviderError(
            f"{self.name} response malformed: {detail}."
        )


class DeepLProvider(TranslationProvider):
    """DeepL API v2. A ``free:`` key prefix selects the free-tier endpoint."""

    name = "DeepL"
    PRO_ENDPOINT = "https://api.deepl.com/v2/translate"
    FREE_ENDPOINT = "https://api-free.deepl.com/v2/translate"
    FREE_PREFIX = "free:"

    async def _request(
        self,
        texts: List[str],
        credentials: ProviderCredentials,
    ) -> List[str]:
        api_key = credentials.api_key
        endpoint = self.PRO_ENDPOINT
        if api_key.startswith(self.FREE_PREFIX):
            endpoint = self.FREE_ENDPOINT
            api_key = api_key[len(self.FREE_PREFIX):]

        form = [("text", text) for text in texts]
        form.append(("target_lang", TARGET_LANGUAGE.upper()))
        payload = await self._post(
            endpoint,
            data=form,
            headers={"Authorization": f"DeepL-Auth-Key {api_key}"},
        )

        if not isinstance(payload, dict) or not isinstance(payload.get("translations"), list):
            raise self._malformed("missing translations list")
        results: List[str] = []
        for item in payload["translations"]:
            if not isinstance(item, dict) or not isinstance(item.get("text"), str):
                raise self._malformed("expected objects with text")
            results.append(item["text"])
        return results


class GoogleProvider(TranslationProvider):
    """Google Cloud Translation API v2 with a simple API key."""

    name = "Google"
    ENDPOINT = "https://translation.googleapis.com/language/translate/v2"

    async def _request(
        self,
        texts: List[str],
        credentials: ProviderCredentials,
    ) -> List[str]:
        payload = await self._post(
            self.ENDPOINT,
            params={"key": credentials.api_key},
            json={"q": texts, "target": TARGET_LANGUAGE, "format": "text"},
        )

        data = payload.get("data") if isinstance(payload, dict) else None
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list):
            raise self._malformed("missing data.translations")
        results: List[str] = []
        for item in translations:
            if not isinstance(item, dict) or not isinstance(item.get("translatedText"), str):
                raise self._malformed("expected objects with translatedText")
            results.append(item["translatedText"])
        return results


class AzureProvider(TranslationProvider):
    """Azure Translator Text API v3."""

    name = "Azure"
    ENDPOINT = "https://api.cognitive.microsofttranslator.com/translate"

    async def _request(
        self,
        texts: List[str],
        credentials: ProviderCredentials,
    ) -> List[str]:
        headers: Dict[str, str] = {"Ocp-Apim-Subscription-Key": credentials.api_key}
        if credentials.region:
            headers["Ocp-Apim-Subscription-Region"] = credentials.region
        payload = await self._post(
            self.ENDPOINT,
            params={"api-version": "3.0", "to": TARGET_LANGUAGE},
            headers=headers,
            json=[{"Text": text} for text in texts],
        )

        if not isinstance(payload, list):
            raise self._malformed("expected a list")
        results: List[str] = []
        for item in payload:
            translations = item.get("translations") if isinstance(item, dict) else None
            if (
                not isinstance(translations, list)
                or not translations
                or not isinstance(translations[0], dict)
            ):
                raise self._malformed("missing translations")
            text = translations[0].get("text")
            if not isinstance(text, str):
                raise self._malformed("missing text")
            results.append(text)
        return results


PROVIDER_CLASSES = {
    Provider.DEEPL: DeepLProvider,
    Provider.GOOGLE: GoogleProvider,
    Provider.AZURE: AzureProvider,
}


def build_provider(
    provider: Provider,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    debug: bool = False,
) -> TranslationProvider:
    """Factory to create providers by configured name."""

    provider_class = PROVIDER_CLASSES.get(provider)
    if provider_class is None:
        raise TranslationProviderConfigurationError(
            f"No translation provider available for '{provider.value}'."
        )
    return provider_class(session=session, debug=debug)


async def check_provider(
    configuration: EngineConfiguration,
    *,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """Translate a sample sentence with the configured provider."""

    problem = remote_configuration_problem(configuration)
    if problem:
        raise TranslationProviderConfigurationError(problem)
    provider = build_provider(
        configuration.provider,
        session=session,
        debug=configuration.provider_debug,
    )
    results = await provider.translate_batch(
        [SAMPLE_TEXT],
        ProviderCredentials.from_configuration(configuration),
    )
    return results[0]
