"""Redis implementation of VectorStore.

This store uses Redis Stack with vector search capabilities (HNSW index,
COSINE metric). Redis reports cosine *distance* (0 = identical, 2 = opposite);
it is converted here to cosine similarity (``1 - distance``).

Entries have no TTL: retention and eviction are left to the Redis deployment.
"""

import asyncio
import logging
import struct
import time
from typing import Any

import redis
from redisvl.index import SearchIndex
from redisvl.query import VectorQuery

from talktodb.config import get_redis_client, settings
from talktodb.entities import CacheEntry, SimilarityMatch
from talktodb.errors import CacheUnavailable

logger = logging.getLogger(__name__)

VECTOR_FIELD = "embedding"
RETURN_FIELDS = ["question", "sql_query", "response", "timestamp"]


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return "" if value is None else str(value)


class RedisVectorStore:
    """Redis implementation using an HNSW vector index.

    This class satisfies the VectorStore protocol through structural
    typing. redis-py and redisvl are blocking, so every call is pushed to a
    worker thread.

    Search results do not carry the stored vectors back (the index only
    returns metadata fields), so ``match.entry.embedding`` is empty.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        index_name: str,
        dimension: int,
        index: SearchIndex | None = None,
    ) -> None:
        """Initialize the Redis vector store.

        Args:
            redis_client: Redis client instance.
            index_name: Name of the Redis search index (also the key prefix).
            dimension: Embedding dimension the index is created with.
            index: Prebuilt SearchIndex (tests pass a mock).
        """
        self._client = redis_client
        self._index_name = index_name
        self._dimension = dimension
        self._index = index

        self._ensure_index()

    @classmethod
    def create(
        cls,
        dimension: int | None = None,
        index_name: str | None = None,
    ) -> "RedisVectorStore":
        """Factory method to create RedisVectorStore with defaults from settings."""
        return cls(
            redis_client=get_redis_client(),
            index_name=index_name or settings.cache_index_name,
            dimension=dimension or settings.embedding_dimension,
        )

    @property
    def prefix(self) -> str:
        return f"{self._index_name}:"

    def _ensure_index(self) -> None:
        """Ensure the Redis vector index exists."""
        if self._index is None:
            index_schema = {
                "index": {
                    "name": self._index_name,
                    "prefix": self.prefix,
                    "storage_type": "hash",
                },
                "fields": [
                    {"name": "question", "type": "text"},
                    {"name": "sql_query", "type": "text"},
                    {"name": "response", "type": "text"},
                    {
                        "name": VECTOR_FIELD,
                        "type": "vector",
                        "attrs": {
                            "dims": self._dimension,
                            "algorithm": "HNSW",
                            "metric": "COSINE",
                            "datatype": "FLOAT32",
                        },
                    },
                    {"name": "timestamp", "type": "numeric"},
                ],
            }
            self._index = SearchIndex.from_dict(index_schema, redis_client=self._client)

        if self._index.exists():
            logger.info("Using existing index: %s", self._index_name)
        else:
            self._index.create(overwrite=False)
            logger.info("Created new index: %s (%d dims, cosine)", self._index_name, self._dimension)

    def _search_sync(self, vector: list[float], top_k: int) -> list[SimilarityMatch]:
        query = VectorQuery(
            vector=vector,
            vector_field_name=VECTOR_FIELD,
            return_fields=RETURN_FIELDS,
            num_results=top_k,
        )
        results = self._index.query(query)

        matches = []
        for result in results:
            distance = float(result.get("vector_distance", 2.0))
            key = _text(result.get("id", ""))
            entry = CacheEntry(
                id=key.removeprefix(self.prefix),
                embedding=[],
                question=_text(result.get("question")),
                generated_query=_text(result.get("sql_query")),
                response=_text(result.get("response")),
            )
            matches.append(SimilarityMatch(entry=entry, score=1.0 - distance))

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:top_k]

    async def search(self, vector: list[float], top_k: int = 1) -> list[SimilarityMatch]:
        """Find the entries most similar to a vector.

        Raises:
            CacheUnavailable: If Redis cannot be queried
        """
        try:
            return await asyncio.to_thread(self._search_sync, vector, top_k)
        except Exception as e:
            raise CacheUnavailable(f"Vector search failed: {e}") from e

    def _upsert_sync(self, entry_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        # Convert vector to float32 bytes for Redis
        vector_bytes = struct.pack(f"{len(vector)}f", *vector)

        pipe = self._client.pipeline()
        pipe.hset(
            f"{self.prefix}{entry_id}",
            mapping={
                "question": metadata.get("question", ""),
                "sql_query": metadata.get("sqlQuery", ""),
                "response": metadata.get("response", "[]"),
                VECTOR_FIELD: vector_bytes,
                "timestamp": str(time.time()),
            },
        )
        pipe.execute()

    async def upsert(self, entry_id: str, vector: list[float], metadata: dict[str, str]) -> None:
        """Store a single entry under ``<index_name>:<entry_id>``.

        Raises:
            CacheUnavailable: If the write fails
        """
        if len(vector) != self._dimension:
            raise CacheUnavailable(
                f"Vector has {len(vector)} components, index expects {self._dimension}"
            )
        try:
            await asyncio.to_thread(self._upsert_sync, entry_id, vector, metadata)
        except Exception as e:
            raise CacheUnavailable(f"Vector upsert failed: {e}") from e

    async def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(await asyncio.to_thread(self._client.ping))
        except redis.RedisError as e:
            logger.warning("Redis health check failed: %s", e)
            return False

    @property
    def index_name(self) -> str:
        return self._index_name
