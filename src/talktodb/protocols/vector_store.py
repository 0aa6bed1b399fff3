"""Vector cache store protocol.

Defines the interface for any backend that can store question embeddings
with their cached answers and search them by cosine similarity.

Implementations can include:
- Redis Stack with vector search (default)
- In-memory numpy store (local runs, tests)
- Pinecone, Qdrant, pgvector
"""

from typing import Protocol, runtime_checkable

from talktodb.entities import SimilarityMatch


@runtime_checkable
class VectorStore(Protocol):
    """Protocol for vector cache backends."""

    async def search(self, vector: list[float], top_k: int = 1) -> list[SimilarityMatch]:
        """Find the entries most similar to a vector.

        Args:
            vector: The query embedding vector
            top_k: Maximum number of matches to return

        Returns:
            Matches sorted by cosine similarity, highest first. Empty if the
            store holds no entries.

        Raises:
            CacheUnavailable: If the backend cannot be queried
        """
        ...

    async def upsert(self, entry_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        """Insert or replace a single entry.

        Args:
            entry_id: Unique entry id
            vector: The question embedding
            metadata: ``question``, ``sqlQuery`` and ``response`` fields

        Raises:
            CacheUnavailable: If the write fails
        """
        ...

    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        ...
