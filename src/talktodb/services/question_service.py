"""Question answering service with a semantic cache in front of text-to-SQL.

This service orchestrates one question end to end:

    EMBEDDING -> CACHE_LOOKUP -> CACHE_HIT                      -> RESPOND
                              -> COMPILE -> EXECUTE -> CACHE_STORE -> RESPOND

Fail-soft contract: every collaborator failure is caught at its step and the
caller receives an empty row set. Callers (and end users) therefore cannot tell
"no rows matched" from "a step failed"; the ``failure`` field of the returned
Answer is the only place the difference is visible, and the HTTP layer does
not expose it. Collaborator exceptions outside the typed errors are logged
and mapped to the failure of the step that raised them.

A cache hit returns the rows stored when the entry was written, without
re-running the query, so answers may be stale. A miss returns the same
JSON-normalized rows it stores, so a later hit answers identically.

Concurrent misses for the same question are not coordinated: each compiles,
executes, and writes its own cache entry.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from talktodb.config import settings
from talktodb.entities import (
    Answer,
    CacheEntry,
    SchemaDescriptor,
    SimilarityMatch,
    deserialize_rows,
    new_entry_id,
    serialize_rows,
)
from talktodb.errors import (
    CacheUnavailable,
    CompilationEmpty,
    ErrorKind,
    ExecutionFailure,
    ProviderUnavailable,
    TalkToDBError,
)
from talktodb.protocols import EmbeddingProvider, QueryExecutor, SchemaSource, VectorStore

from .query_compiler import QueryCompiler

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.95

T = TypeVar("T")


class QuestionService:
    """Cache-aside orchestration of embedding, vector search, compilation and execution.

    This service depends on PROTOCOLS, not concrete implementations, and
    receives all of its configuration at construction.

    Example:
        ```python
        service = QuestionService(
            embedding_provider=OllamaEmbeddingProvider.create(),
            vector_store=RedisVectorStore.create(),
            compiler=QueryCompiler(OllamaTextGenerator.create()),
            schema_source=database,
            executor=database,
        )
        answer = await service.answer("Top 10 action movies?")
        ```
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        compiler: QueryCompiler,
        schema_source: SchemaSource,
        executor: QueryExecutor,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        top_k: int = 1,
        step_timeout: float | None = 30.0,
    ) -> None:
        """Initialize the question service.

        Args:
            embedding_provider: Turns question text into vectors.
            vector_store: Semantic cache backend.
            compiler: Question-to-SQL compiler.
            schema_source: Supplies the table schema for each compilation.
            executor: Runs compiled SQL.
            similarity_threshold: A cached answer is reused only when the best
                match scores strictly above this cosine similarity.
            top_k: Number of matches requested from the vector store.
            step_timeout: Seconds allowed for each external call (None disables).
        """
        if not -1 <= similarity_threshold <= 1:
            raise ValueError("similarity_threshold must be between -1 and 1")
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        self._embeddings = embedding_provider
        self._store = vector_store
        self._compiler = compiler
        self._schema_source = schema_source
        self._executor = executor
        self._threshold = similarity_threshold
        self._top_k = top_k
        self._step_timeout = step_timeout

    @classmethod
    def create(
        cls,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        compiler: QueryCompiler,
        schema_source: SchemaSource,
        executor: QueryExecutor,
    ) -> "QuestionService":
        """Factory method filling threshold, top_k and timeout from settings."""
        return cls(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            compiler=compiler,
            schema_source=schema_source,
            executor=executor,
            similarity_threshold=settings.cache_similarity_threshold,
            top_k=settings.cache_top_k,
            step_timeout=settings.step_timeout,
        )

    async def _bounded(self, step: Awaitable[T], error: type[TalkToDBError], name: str) -> T:
        """Await one external call, turning a timeout or any untyped error into that step's failure."""
        try:
            return await asyncio.wait_for(step, timeout=self._step_timeout)
        except asyncio.TimeoutError as e:
            raise error(f"{name} timed out after {self._step_timeout}s") from e
        except error:
            raise
        except Exception as e:
            logger.exception("Unexpected error during %s", name)
            raise error(f"{name} failed: {e!r}") from e

    async def answer(self, question: str) -> Answer:
        """Answer a natural-language question.

        Args:
            question: Non-empty question text

        Returns:
            Answer whose rows are the cached or freshly queried row set, or
            empty if any step failed

        Raises:
            ValueError: If the question is empty
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")

        # EMBEDDING
        try:
            vector = await self._bounded(self._embeddings.encode(question), ProviderUnavailable, "embedding")
        except ProviderUnavailable as e:
            logger.warning("Embedding unavailable, answering empty: %s", e)
            return Answer.degraded(ErrorKind.PROVIDER_UNAVAILABLE)

        # CACHE_LOOKUP
        best = await self._lookup(vector)
        score = best.score if best is not None else None
        if best is not None and best.is_hit(self._threshold):
            cached = self._cached_rows(best)
            if cached is not None:
                logger.info("Cache hit (score=%.4f, entry=%s)", best.score, best.entry.id)
                return Answer(rows=cached, cache_hit=True, sql=best.entry.generated_query, score=best.score)

        logger.info("Cache miss (best score=%s), generating SQL", "n/a" if score is None else f"{score:.4f}")

        # COMPILE
        try:
            sql = await self._compile(question)
        except CompilationEmpty as e:
            logger.warning("No SQL generated, answering empty: %s", e)
            return Answer.degraded(ErrorKind.COMPILATION_EMPTY, score=score)

        # EXECUTE
        try:
            rows = await self._bounded(self._executor.execute(sql), ExecutionFailure, "execution")
        except ExecutionFailure as e:
            logger.warning("Query execution failed, answering empty: %s", e)
            return Answer(sql=sql, failure=ErrorKind.EXECUTION_FAILURE, score=score)

        # CACHE_STORE
        try:
            response = serialize_rows(rows)
        except (TypeError, ValueError) as e:
            logger.warning("Row set is not serializable, not caching: %s", e)
            return Answer(rows=rows, sql=sql, score=score)

        await self._store_entry(question, vector, sql, response)

        # same normalized rows a later cache hit will return
        return Answer(rows=deserialize_rows(response), sql=sql, score=score)

    async def _lookup(self, vector: list[float]) -> SimilarityMatch | None:
        """Best match for a vector; a failed search counts as a miss."""
        try:
            matches = await self._bounded(self._store.search(vector, self._top_k), CacheUnavailable, "cache search")
        except CacheUnavailable as e:
            logger.warning("Cache search failed, treating as miss: %s", e)
            return None
        return max(matches, key=lambda m: m.score) if matches else None

    @staticmethod
    def _cached_rows(match: SimilarityMatch) -> list[dict[str, Any]] | None:
        try:
            return match.entry.rows()
        except ValueError as e:
            logger.warning("Cached response for %s is unreadable, treating as miss: %s", match.entry.id, e)
            return None

    async def _compile(self, question: str) -> str:
        try:
            schema = await self._bounded(self._schema_source.get_schema(), ExecutionFailure, "schema lookup")
        except ExecutionFailure as e:
            raise CompilationEmpty(f"Schema unavailable: {e}") from e
        return await self._bounded(self._compiler.compile(schema, question), CompilationEmpty, "compilation")

    async def _store_entry(self, question: str, vector: list[float], sql: str, response: str) -> None:
        """Write a new cache entry; failures leave the answer uncached."""
        entry = CacheEntry(
            id=new_entry_id(),
            embedding=vector,
            question=question,
            generated_query=sql,
            response=response,
        )
        try:
            await self._bounded(
                self._store.upsert(entry.id, entry.embedding, entry.metadata),
                CacheUnavailable,
                "cache upsert",
            )
        except CacheUnavailable as e:
            logger.warning("Cache store failed, response served uncached: %s", e)
            return
        logger.info("Cached answer as %s", entry.id)

    async def get_schema(self) -> SchemaDescriptor:
        """Current schema of the queried table, independent of the question flow."""
        return await self._bounded(self._schema_source.get_schema(), ExecutionFailure, "schema lookup")

    async def is_healthy(self) -> dict[str, bool]:
        """Check reachability of the cache and embedding backends."""
        return {
            "cache_healthy": await self._store.health_check(),
            "embedding_healthy": await self._embeddings.is_available(),
        }

    @property
    def threshold(self) -> float:
        """Get current similarity threshold."""
        return self._threshold
