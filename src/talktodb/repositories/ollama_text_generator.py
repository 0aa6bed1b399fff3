"""Ollama-based text generator.

Calls Ollama's `/api/generate` endpoint with streaming disabled and returns
the raw completion text. Requires a pulled instruction model, e.g.
`ollama pull llama3.1`.
"""

import httpx

from talktodb.config import settings
from talktodb.errors import ProviderUnavailable


class OllamaTextGenerator:
    """Ollama implementation of the TextGenerator protocol."""

    def __init__(
        self,
        model_name: str,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model_name = model_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OllamaTextGenerator":
        """Factory method to create OllamaTextGenerator with defaults from settings."""
        return cls(
            model_name=model_name or settings.generation_model,
            base_url=base_url or settings.ollama_base_url,
            timeout=settings.step_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def model_name(self) -> str:
        return self._model_name

    async def generate(self, prompt: str) -> str:
        """Complete a prompt.

        Raises:
            ProviderUnavailable: On HTTP errors or a response without text
        """
        payload = {
            "model": self._model_name,
            "prompt": prompt,
            "stream": False,
        }
        try:
            response = await self.client.post(f"{self._base_url}/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Ollama generate error: {e}") from e
        except ValueError as e:
            raise ProviderUnavailable(f"Ollama returned invalid JSON: {e}") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ProviderUnavailable(f"Unexpected generate response format: {str(data)[:200]}")
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
