"""Ollama-based embedding provider.

Uses Ollama's local API to generate embeddings. Ollama serves models locally
without requiring HuggingFace authentication or downloading models manually.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull embeddinggemma`
    - Ollama running: `ollama serve` (usually runs automatically)

Models available:
- embeddinggemma (308M params, 768 dims, 2K context)
- nomic-embed-text (137M params, 768 dims)
- mxbai-embed-large (335M params, 1024 dims)
- all-minilm (22M params, 384 dims)
"""

import logging

import httpx

from talktodb.config import settings
from talktodb.errors import ProviderUnavailable

logger = logging.getLogger(__name__)


class OllamaEmbeddingProvider:
    """Ollama-based implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Every vector returned is checked against ``dimension``: a missing, empty,
    non-numeric or wrongly sized embedding raises ProviderUnavailable instead
    of leaking into similarity search.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create()
        embedding = await provider.encode("Top 10 action movies?")
        print(len(embedding))  # 768
        ```
    """

    def __init__(
        self,
        model_name: str,
        base_url: str,
        dimension: int,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model.
            base_url: Ollama API base URL.
            dimension: Expected vector length.
            timeout: Request timeout in seconds.
            client: Optional preconfigured HTTP client (tests inject a mock transport).
        """
        self._model_name = model_name
        self._base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
    ) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with defaults from settings."""
        return cls(
            model_name=model_name or settings.embedding_model,
            base_url=base_url or settings.ollama_base_url,
            dimension=dimension or settings.embedding_dimension,
            timeout=settings.step_timeout,
        )

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            ProviderUnavailable: If the Ollama API request fails or the
                response does not contain a usable vector
        """
        url = f"{self._base_url}/api/embed"
        payload = {
            "model": self._model_name,
            "input": text,
        }

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? Try: ollama serve)"
            elif "not found" in str(e).lower():
                error_msg += f" (model not found? Try: ollama pull {self._model_name})"
            raise ProviderUnavailable(error_msg) from e
        except ValueError as e:
            raise ProviderUnavailable(f"Ollama returned invalid JSON: {e}") from e

        # Ollama returns {"embeddings": [[...]]} for single input
        if isinstance(data, dict) and isinstance(data.get("embeddings"), list) and data["embeddings"]:
            vector = data["embeddings"][0]
        elif isinstance(data, dict) and "embedding" in data:
            vector = data["embedding"]
        else:
            raise ProviderUnavailable(f"Unexpected embedding response format: {str(data)[:200]}")

        return self._validate(vector)

    def _validate(self, vector: object) -> list[float]:
        if not isinstance(vector, list) or not vector:
            raise ProviderUnavailable("Embedding response contained no vector")
        if len(vector) != self._dimension:
            raise ProviderUnavailable(
                f"Embedding has {len(vector)} components, expected {self._dimension}"
            )
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in vector):
            raise ProviderUnavailable("Embedding contains non-numeric components")
        return [float(v) for v in vector]

    async def is_available(self) -> bool:
        """Check if Ollama is running and the model answers."""
        try:
            _ = await self.encode("test")
            return True
        except ProviderUnavailable as e:
            logger.warning("Embedding provider unavailable: %s", e)
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
