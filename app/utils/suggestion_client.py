"""
Folder suggestion clients.

Provides:
- Ollama generate API (local)
- OpenRouter chat completions
- Gemini generateContent

Every client exposes ``suggest(model, prompt)`` and raises
SuggestionServiceError on any transport or payload problem. Callers treat
errors and blank answers the same way.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
from loguru import logger

from app.utils.config import Settings, get_settings


class SuggestionServiceError(Exception):
    """Suggestion service failed to produce a response."""


class SuggestionClient(ABC):
    """Request/response capability: (model, prompt) -> text."""

    name: str = "base"

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    @abstractmethod
    def suggest(self, model: str, prompt: str) -> str:
        """
        Ask the service for a folder suggestion.

        Args:
            model: Model identifier
            prompt: Complete prompt text

        Returns:
            Raw response text (may be blank)

        Raises:
            SuggestionServiceError: On transport or payload errors
        """

    def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> dict:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPError as e:
            raise SuggestionServiceError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise SuggestionServiceError(f"{self.name} returned invalid JSON: {e}") from e


class OllamaSuggestionClient(SuggestionClient):
    """Suggestions from a local Ollama server."""

    name = "ollama"

    def __init__(self, base_url: str, timeout: float = 30.0):
        super().__init__(timeout)
        self.base_url = base_url.rstrip("/")

    def suggest(self, model: str, prompt: str) -> str:
        data = self._post(
            f"{self.base_url}/api/generate",
            {"model": model, "prompt": prompt, "stream": False},
        )
        text = data.get("response")
        if not isinstance(text, str):
            raise SuggestionServiceError("ollama response has no text")
        return text


class OpenRouterSuggestionClient(SuggestionClient):
    """Suggestions from OpenRouter's OpenAI-compatible API."""

    name = "openrouter"

    def __init__(self, api_key: str, base_url: str, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def suggest(self, model: str, prompt: str) -> str:
        data = self._post(
            f"{self.base_url}/chat/completions",
            {"model": model, "messages": [{"role": "user", "content": prompt}]},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise SuggestionServiceError(f"openrouter response malformed: {e}") from e


class GeminiSuggestionClient(SuggestionClient):
    """Suggestions from the Gemini API."""

    name = "gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, api_key: str, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = api_key

    def suggest(self, model: str, prompt: str) -> str:
        data = self._post(
            f"{self.base_url}/models/{model}:generateContent",
            {"contents": [{"parts": [{"text": prompt}]}]},
            headers={"x-goog-api-key": self.api_key},
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise SuggestionServiceError(f"gemini response malformed: {e}") from e

        return "".join(part.get("text", "") for part in parts)


def get_suggestion_client(
    settings: Optional[Settings] = None,
    api_key: Optional[str] = None,
) -> SuggestionClient:
    """
    Build the client for the configured provider.

    Args:
        settings: Settings to read provider details from
        api_key: Key from the rules file, preferred over the environment

    Returns:
        Suggestion client instance

    Raises:
        SuggestionServiceError: If the provider needs a key and none is set
    """
    settings = settings or get_settings()
    provider = settings.suggestion_provider

    if provider == "openrouter":
        key = api_key or settings.openrouter_api_key
        if not key:
            raise SuggestionServiceError("OpenRouter API key not configured")
        client = OpenRouterSuggestionClient(key, settings.openrouter_url, settings.suggestion_timeout)
    elif provider == "gemini":
        key = api_key or settings.gemini_api_key
        if not key:
            raise SuggestionServiceError("Gemini API key not configured")
        client = GeminiSuggestionClient(key, settings.suggestion_timeout)
    else:
        client = OllamaSuggestionClient(settings.ollama_url, settings.suggestion_timeout)

    logger.info(f"Suggestion provider: {client.name}")
    return client
