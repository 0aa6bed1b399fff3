"""In-memory implementation of VectorStore.

Keeps entries in a dict and scores them with numpy cosine similarity.
Meant for local runs without Redis and for tests; contents are lost when
the process exits.
"""

import numpy as np

from talktodb.entities import CacheEntry, SimilarityMatch
from talktodb.errors import CacheUnavailable


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Cosine similarity of vector ``a`` against each row of ``b``.

    Zero-norm rows score 0.0.
    """
    norms = np.linalg.norm(b, axis=1) * np.linalg.norm(a)
    dots = b @ a
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return np.clip(scores, -1.0, 1.0)


class InMemoryVectorStore:
    """Dict-backed VectorStore with exact (brute-force) cosine search."""

    def __init__(self, dimension: int) -> None:
        self._dimension = dimension
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def search(self, vector: list[float], top_k: int = 1) -> list[SimilarityMatch]:
        if len(vector) != self._dimension:
            raise CacheUnavailable(
                f"Query vector has {len(vector)} components, store expects {self._dimension}"
            )
        if not self._entries:
            return []

        entries = list(self._entries.values())
        matrix = np.asarray([e.embedding for e in entries], dtype=np.float64)
        scores = cosine_similarity(np.asarray(vector, dtype=np.float64), matrix)

        order = np.argsort(-scores, kind="stable")[:top_k]
        return [SimilarityMatch(entry=entries[i], score=float(scores[i])) for i in order]

    async def upsert(self, entry_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        if len(vector) != self._dimension:
            raise CacheUnavailable(
                f"Vector has {len(vector)} components, store expects {self._dimension}"
            )
        self._entries[entry_id] = CacheEntry(
            id=entry_id,
            embedding=list(vector),
            question=metadata.get("question", ""),
            generated_query=metadata.get("sqlQuery", ""),
            response=metadata.get("response", "[]"),
        )

    async def health_check(self) -> bool:
        return True

    def get(self, entry_id: str) -> CacheEntry | None:
        return self._entries.get(entry_id)

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())
