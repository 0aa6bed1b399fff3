"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert text to vector embeddings.

Implementations can include:
- Ollama embeddings (local HTTP, default)
- sentence-transformers (in-process)
- Hosted embedding APIs
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed.
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors (e.g., 768)."""
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode (non-empty)

        Returns:
            The embedding vector, exactly ``dimension`` floats

        Raises:
            ProviderUnavailable: If the model errors or returns a malformed vector.
                Implementations never return a zero vector in its place.
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available."""
        ...
