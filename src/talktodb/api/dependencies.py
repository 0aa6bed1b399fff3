"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services built from settings and stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Tests override get_handler with fake-backed handlers
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from talktodb.config import configure_logging, settings
from talktodb.handlers import QuestionHandler
from talktodb.protocols import EmbeddingProvider, VectorStore
from talktodb.repositories import (
    InMemoryVectorStore,
    LocalEmbeddingProvider,
    OllamaEmbeddingProvider,
    OllamaTextGenerator,
    RedisVectorStore,
    SqlDatabase,
    load_csv,
)
from talktodb.services import QueryCompiler, QuestionService

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> QuestionHandler:
    """Dependency injection for QuestionHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "question_handler", None)
    if handler is None:
        raise RuntimeError("QuestionHandler not initialized. Check lifespan setup.")
    return handler


def build_embedding_provider() -> EmbeddingProvider:
    """Embedding provider selected by EMBEDDING_BACKEND.

    When switching providers or dimensions, the vector index must be
    recreated: stored vectors from another model are not comparable.
    """
    if settings.embedding_backend == "local":
        return LocalEmbeddingProvider.create()
    return OllamaEmbeddingProvider.create()


def build_vector_store(dimension: int) -> VectorStore:
    """Vector store selected by CACHE_BACKEND."""
    if settings.cache_backend == "memory":
        return InMemoryVectorStore(dimension=dimension)
    return RedisVectorStore.create(dimension=dimension)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Repositories (database, embeddings, vector store, generator)
    2. Service (business logic) - app.state.question_service
    3. Handler (HTTP endpoints) - app.state.question_handler
    """
    configure_logging()

    database = SqlDatabase.create()
    if settings.load_csv_on_startup:
        await load_csv(database.engine, settings.csv_file, settings.table_name)

    embedding_provider = build_embedding_provider()
    vector_store = build_vector_store(embedding_provider.dimension)
    generator = OllamaTextGenerator.create()

    question_service = QuestionService.create(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
    )
    question_handler = QuestionHandler(question_service=question_service, database=database)

    app.state.question_service = question_service
    app.state.question_handler = question_handler

    logger.info(
        "Question service initialized (table=%s, cache=%s, embeddings=%s/%s, threshold=%.2f)",
        settings.table_name,
        settings.cache_backend,
        settings.embedding_backend,
        embedding_provider.model_name,
        question_service.threshold,
    )

    yield

    if isinstance(embedding_provider, OllamaEmbeddingProvider):
        await embedding_provider.close()
    await generator.close()
    await database.close()

    del app.state.question_handler
    del app.state.question_service
    logger.info("Question service shut down")


# Type alias for cleaner dependency injection
HandlerDep = Annotated[QuestionHandler, Depends(get_handler)]
