"""Remote text-completion providers behind one interface.

Each provider wraps an injected ``httpx.Client`` and turns every failure mode
(missing key, transport error, timeout, non-2xx status, unexpected body) into
an :class:`EnrichmentError`. Callers never see httpx exceptions.
"""

from abc import ABC, abstractmethod

import httpx

from mdenrich.config import Settings
from mdenrich.util.errors import EnrichmentError
from mdenrich.util.logging import get_logger


logger = get_logger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class CompletionProvider(ABC):
    """Contract for a chat-style completion backend."""

    name: str = "provider"

    @abstractmethod
    def is_available(self) -> bool:
        """True when credentials are configured; does not contact the service."""

    @abstractmethod
    def complete(self, prompt: str, system: str | None = None,
                 max_tokens: int = 100, temperature: float = 0.3) -> str:
        """Return the model's text response or raise EnrichmentError."""

    def _post(self, client: httpx.Client, url: str, headers: dict, payload: dict) -> dict:
        if not self.is_available():
            raise EnrichmentError("API key not configured", provider_name=self.name)
        try:
            response = client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise EnrichmentError(f"request timed out: {e}", provider_name=self.name) from e
        except httpx.HTTPError as e:
            raise EnrichmentError(f"HTTP request failed: {e}", provider_name=self.name) from e
        if not response.is_success:
            raise EnrichmentError(
                f"API returned status {response.status_code}: {response.text[:200]}",
                provider_name=self.name,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise EnrichmentError("response body is not JSON", provider_name=self.name) from e
        if not isinstance(body, dict):
            raise EnrichmentError("unexpected response shape", provider_name=self.name)
        return body


class OpenAIProvider(CompletionProvider):
    """OpenAI-compatible `/chat/completions` endpoint with bearer auth."""

    name = "openai"

    def __init__(self, client: httpx.Client, api_key: str, model: str,
                 base_url: str = "https://api.openai.com/v1") -> None:
        self._client = client
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip('/')

    def is_available(self) -> bool:
        return bool(self._api_key)

    def complete(self, prompt, system=None, max_tokens=100, temperature=0.3):
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        body = self._post(
            self._client,
            f"{self._base_url}/chat/completions",
            {"Authorization": f"Bearer {self._api_key}"},
            {"model": self._model, "messages": messages,
             "max_tokens": max_tokens, "temperature": temperature},
        )
        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise EnrichmentError("response has no message content", provider_name=self.name) from e
        if not isinstance(content, str):
            raise EnrichmentError("empty response", provider_name=self.name)
        usage = body.get("usage")
        logger.debug("completion", provider=self.name, model=self._model,
                     tokens=usage.get("total_tokens") if isinstance(usage, dict) else None)
        return content


class AnthropicProvider(CompletionProvider):
    """Anthropic `/messages` endpoint with x-api-key auth."""

    name = "anthropic"

    def __init__(self, client: httpx.Client, api_key: str, model: str,
                 base_url: str = "https://api.anthropic.com/v1") -> None:
        self._client = client
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip('/')

    def is_available(self) -> bool:
        return bool(self._api_key)

    def complete(self, prompt, system=None, max_tokens=100, temperature=0.3):
        payload = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            payload["system"] = system
        body = self._post(
            self._client,
            f"{self._base_url}/messages",
            {"x-api-key": self._api_key, "anthropic-version": ANTHROPIC_VERSION},
            payload,
        )
        parts = body.get("content")
        if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
            raise EnrichmentError("response has no text content", provider_name=self.name)
        try:
            text = "".join(part["text"] for part in parts if part.get("type", "text") == "text")
        except (KeyError, TypeError, AttributeError) as e:
            raise EnrichmentError("response has no text content", provider_name=self.name) from e
        logger.debug("completion", provider=self.name, model=self._model)
        return text


def build_provider(settings: Settings, client: httpx.Client) -> CompletionProvider | None:
    """Return the configured provider, or None when enrichment_provider is 'disabled'."""
    if settings.enrichment_provider == "openai":
        return OpenAIProvider(client, settings.openai_api_key, settings.openai_model, settings.openai_base_url)
    if settings.enrichment_provider == "anthropic":
        return AnthropicProvider(client, settings.anthropic_api_key, settings.anthropic_model,
                                 settings.anthropic_base_url)
    return None


def make_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=httpx.Timeout(settings.request_timeout, connect=5.0))
