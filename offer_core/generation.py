"""Client for the Gemini text generation endpoint."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp
import httpx
from google import genai
from google.genai import errors, types

from .models import PromptRequest, SamplingParams

LOGGER = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GenerationError(Exception):
    """Base class for failures talking to the generation endpoint."""

    http_status = 500


class QuotaExceededError(GenerationError):
    """The provider rejected the call because a quota or rate limit was hit."""

    http_status = 429


class TransportError(GenerationError):
    """The request never produced a provider answer (network, timeout)."""


class ProviderError(GenerationError):
    """The provider answered with an error or an unusable response."""


def _is_quota_error(exc: errors.APIError) -> bool:
    if getattr(exc, "code", None) == 429:
        return True
    status = str(getattr(exc, "status", "") or "")
    return "RESOURCE_EXHAUSTED" in status or "RESOURCE_EXHAUSTED" in str(exc)


def build_safety_settings(threshold: str) -> List[types.SafetySetting]:
    return [
        types.SafetySetting(category=category, threshold=threshold)
        for category in SAFETY_CATEGORIES
    ]


class GeminiClient:
    """Thin async wrapper turning a :class:`PromptRequest` into text.

    ``client`` may be any object exposing ``aio.models.generate_content``;
    tests inject a stub there.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-1.5-pro",
        safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE",
        client: Any = None,
    ) -> None:
        self.model = model
        self.safety_threshold = safety_threshold
        self._client = client
        if self._client is None and api_key:
            self._client = genai.Client(api_key=api_key)

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _config(self, prompt: PromptRequest, sampling: SamplingParams) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=prompt.instructions,
            temperature=sampling.temperature,
            top_p=sampling.top_p,
            top_k=sampling.top_k,
            max_output_tokens=sampling.max_output_tokens,
            safety_settings=build_safety_settings(self.safety_threshold),
        )

    async def generate(self, prompt: PromptRequest, sampling: Optional[SamplingParams] = None) -> str:
        """Return the generated text for ``prompt`` or raise a :class:`GenerationError`."""

        if self._client is None:
            raise ProviderError("Gemini API Key fehlt. Bitte API-Key konfigurieren.")

        sampling = sampling or prompt.sampling
        contents = [types.Content(role="user", parts=[types.Part(text=prompt.user_content)])]
        LOGGER.debug(
            "Calling %s with temperature=%s top_p=%s top_k=%s",
            self.model,
            sampling.temperature,
            sampling.top_p,
            sampling.top_k,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=self._config(prompt, sampling),
            )
        except errors.APIError as exc:
            if _is_quota_error(exc):
                LOGGER.warning("Gemini quota exhausted: %s", exc)
                raise QuotaExceededError(f"Gemini-Kontingent erschöpft: {exc}") from exc
            LOGGER.error("Gemini API error: %s", exc)
            raise ProviderError(f"Fehler bei der Generierung mit Gemini: {exc}") from exc
        except (httpx.TransportError, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            LOGGER.error("Gemini transport failure: %s", exc)
            raise TransportError(f"Gemini ist nicht erreichbar: {exc}") from exc

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ProviderError("Gemini hat eine leere Antwort geliefert.")
        return text


__all__ = [
    "GeminiClient",
    "GenerationError",
    "ProviderError",
    "QuotaExceededError",
    "TransportError",
    "build_safety_settings",
]
