"""Similarity match domain entity."""

from dataclasses import dataclass

from .cache_entry import CacheEntry


@dataclass(frozen=True)
class SimilarityMatch:
    """A single result of a vector similarity search.

    Attributes:
        entry: The matched cache entry
        score: Cosine similarity (1 = identical, -1 = opposite)
    """

    entry: CacheEntry
    score: float

    def is_hit(self, threshold: float) -> bool:
        """A match is usable only when its score strictly exceeds the threshold."""
        return self.score > threshold
