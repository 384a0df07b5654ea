"""AI text generation backends and the fallback chain across them."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import httpx
import openai
import structlog

from .errors import AllProvidersFailed, NoProviderConfigured, ProviderError
from .models import Config
from .prompts import build_messages, build_single_prompt

logger = structlog.get_logger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class Provider:
    """A backend able to turn ``(transcript, prompt)`` into summary text.

    Subclasses implement :meth:`_complete`; :meth:`generate` turns every
    failure, including an empty answer, into :class:`ProviderError`.
    """

    name = "provider"

    def generate(self, transcript: str, prompt: str) -> str:
        try:
            text = self._complete(transcript, prompt)
        except ProviderError:
            raise
        except Exception as exc:  # noqa: BLE001 - any backend failure moves the chain on
            raise ProviderError(self.name, _describe(exc)) from exc
        if text is not None and not isinstance(text, str):
            raise ProviderError(self.name, f"malformed response (text is {type(text).__name__})")
        if not text or not text.strip():
            raise ProviderError(self.name, "empty response")
        return text

    def _complete(self, transcript: str, prompt: str) -> Optional[str]:
        raise NotImplementedError


class GeminiProvider(Provider):
    """Google Gemini through the public REST endpoint."""

    name = "Google Gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._timeout = timeout
        self._client = client

    def _complete(self, transcript: str, prompt: str) -> Optional[str]:
        body = {"contents": [{"parts": [{"text": build_single_prompt(transcript, prompt)}]}]}
        url = GEMINI_URL.format(model=self.model)
        params = {"key": self._api_key}
        if self._client is not None:
            response = self._client.post(url, params=params, json=body)
        else:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(url, params=params, json=body)
        if response.is_error:
            raise ProviderError(self.name, f"HTTP {response.status_code}: {response.text}")
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]


class OpenAICompatibleProvider(Provider):
    """Chat completion backends speaking the OpenAI API."""

    name = "OpenAI-compatible"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout: float = 60.0,
        client: Optional[openai.OpenAI] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # The chain moves to the next provider instead of retrying.
        self._client = client or openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def _complete(self, transcript: str, prompt: str) -> Optional[str]:
        system, user = build_messages(transcript, prompt)
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content


class OpenAIProvider(OpenAICompatibleProvider):
    name = "OpenAI"


class GroqProvider(OpenAICompatibleProvider):
    name = "Groq"

    def __init__(self, api_key: str, model: str = "llama-3.3-70b-versatile", **kwargs) -> None:
        kwargs.setdefault("base_url", GROQ_BASE_URL)
        super().__init__(api_key, model, **kwargs)


def _describe(exc: Exception) -> str:
    if isinstance(exc, (KeyError, IndexError, TypeError, ValueError)):
        return f"malformed response ({exc.__class__.__name__}: {exc})"
    return str(exc) or exc.__class__.__name__


def build_providers(config: Config) -> List[Provider]:
    """Instantiate the providers whose credentials are present, in priority order."""

    providers: List[Provider] = []
    if config.google_api_key:
        providers.append(
            GeminiProvider(config.google_api_key, model=config.gemini_model, timeout=config.api_timeout)
        )
    if config.openai_api_key:
        providers.append(
            OpenAIProvider(
                config.openai_api_key,
                config.openai_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.api_timeout,
            )
        )
    if config.groq_api_key:
        providers.append(
            GroqProvider(
                config.groq_api_key,
                config.groq_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.api_timeout,
            )
        )
    return providers


def configured_provider_names(config: Config) -> List[str]:
    names = []
    if config.google_api_key:
        names.append(GeminiProvider.name)
    if config.openai_api_key:
        names.append(OpenAIProvider.name)
    if config.groq_api_key:
        names.append(GroqProvider.name)
    return names


class ProviderChain:
    """Try providers in order and return the first non-empty answer.

    A failed provider is logged and skipped; nothing is retried.
    """

    def __init__(self, providers: Sequence[Provider]) -> None:
        self.providers = list(providers)

    @classmethod
    def from_config(cls, config: Config) -> "ProviderChain":
        return cls(build_providers(config))

    def generate(self, transcript: str, prompt: str) -> Tuple[str, str]:
        if not self.providers:
            raise NoProviderConfigured()

        failures: Dict[str, str] = {}
        for provider in self.providers:
            try:
                text = provider.generate(transcript, prompt)
            except ProviderError as exc:
                failures[provider.name] = exc.detail
                logger.warning("provider_failed", provider=provider.name, error=exc.detail)
                continue
            logger.info("provider_succeeded", provider=provider.name, length=len(text))
            return text, provider.name

        logger.error("all_providers_failed", providers=list(failures))
        raise AllProvidersFailed(failures)
