"""Local sentence-transformers embedding provider.

Runs the embedding model in-process, no API calls required. The default
EmbeddingGemma model produces 768-dimensional vectors and is trained with
Matryoshka Representation Learning, so vectors may be truncated to a smaller
configured dimension (512, 256, 128) while keeping their quality.

Requires:
    pip install -U sentence-transformers
"""

import asyncio
import logging
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from talktodb.config import settings
from talktodb.errors import ProviderUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "google/embeddinggemma-300m"


class LocalEmbeddingProvider:
    """sentence-transformers implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing. Encoding is CPU-bound, so it runs in a worker thread to keep the
    event loop free for other requests.
    """

    def __init__(self, model_name: str, dimension: int) -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model.
            dimension: Output vector length. Vectors longer than this are
                truncated (Matryoshka); shorter ones are rejected.
        """
        self._model_name = model_name
        self._dimension = dimension
        self._model: SentenceTransformer | None = None

    @classmethod
    def create(cls, model_name: str | None = None, dimension: int | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with defaults.

        Args:
            model_name: Model name. If None, uses EmbeddingGemma.
            dimension: Output dimension. If None, uses settings.

        Returns:
            Configured LocalEmbeddingProvider
        """
        return cls(
            model_name=model_name or DEFAULT_MODEL,
            dimension=dimension or settings.embedding_dimension,
        )

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name, trust_remote_code=True)
            logger.info("Model loaded in %.2fs", time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Get the model name/identifier."""
        return self._model_name

    def _encode_sync(self, text: str) -> list[float]:
        embedding = self.model.encode(
            text,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        embedding = np.asarray(embedding, dtype=np.float32)
        if embedding.ndim > 1:
            embedding = embedding[0]
        if embedding.shape[0] < self._dimension:
            raise ProviderUnavailable(
                f"Model produced {embedding.shape[0]} components, expected {self._dimension}"
            )
        return embedding[: self._dimension].tolist()

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            ProviderUnavailable: If the model cannot be loaded or fails to encode
        """
        try:
            return await asyncio.to_thread(self._encode_sync, text)
        except ProviderUnavailable:
            raise
        except Exception as e:
            raise ProviderUnavailable(f"Local embedding failed: {e}") from e

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            await asyncio.to_thread(lambda: self.model)
            return True
        except Exception as e:
            logger.warning("Local embedding model unavailable: %s", e)
            return False
