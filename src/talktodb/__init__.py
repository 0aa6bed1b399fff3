"""TalkToDB - natural-language questions over SQL with a semantic cache.

This package provides a layered architecture:

Layers:
    - protocols: Interface contracts (EmbeddingProvider, VectorStore, TextGenerator, ...)
    - repositories: Adapters for Ollama, Redis, SQL databases
    - services: Query compilation and the cache-aside question flow
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from talktodb.services import QueryCompiler, QuestionService

    service = QuestionService.create(
        embedding_provider=provider,
        vector_store=store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
    )
    answer = await service.answer("Top 10 action movies?")
    ```

For HTTP API:
    ```python
    from talktodb.api.app import app
    ```
"""

from talktodb.config import get_settings, settings
from talktodb.entities import Answer, CacheEntry, ColumnDescriptor, SchemaDescriptor, SimilarityMatch
from talktodb.errors import (
    CacheUnavailable,
    CompilationEmpty,
    ErrorKind,
    ExecutionFailure,
    ProviderUnavailable,
    TalkToDBError,
)
from talktodb.protocols import EmbeddingProvider, QueryExecutor, SchemaSource, TextGenerator, VectorStore
from talktodb.services import QueryCompiler, QuestionService

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Protocols (interfaces)
    "EmbeddingProvider",
    "QueryExecutor",
    "SchemaSource",
    "TextGenerator",
    "VectorStore",
    # Services (business logic)
    "QueryCompiler",
    "QuestionService",
    # Entities (domain models)
    "Answer",
    "CacheEntry",
    "ColumnDescriptor",
    "SchemaDescriptor",
    "SimilarityMatch",
    # Errors
    "ErrorKind",
    "TalkToDBError",
    "ProviderUnavailable",
    "CacheUnavailable",
    "CompilationEmpty",
    "ExecutionFailure",
]
