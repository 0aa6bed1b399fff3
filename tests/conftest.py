"""Shared fakes and fixtures for the question pipeline tests."""

import asyncio
import hashlib

import numpy as np
import pytest

from talktodb.entities import ColumnDescriptor, SchemaDescriptor
from talktodb.errors import ExecutionFailure, ProviderUnavailable
from talktodb.repositories import InMemoryVectorStore
from talktodb.services import QueryCompiler, QuestionService

DIMENSION = 768

MOVIES_SCHEMA = SchemaDescriptor(
    table_name="movies",
    columns=(
        ColumnDescriptor(name="Title", type="TEXT"),
        ColumnDescriptor(name="Genre", type="TEXT"),
        ColumnDescriptor(name="Rating", type="FLOAT"),
    ),
)

ACTION_ROWS = [
    {"Title": "Mad Max: Fury Road", "Genre": "Action", "Rating": 8.1},
    {"Title": "The Dark Knight", "Genre": "Action", "Rating": 9.0},
]


def text_vector(text: str, dimension: int = DIMENSION) -> list[float]:
    """Deterministic pseudo-embedding seeded by the text."""
    seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
    return np.random.default_rng(seed).standard_normal(dimension).tolist()


class FakeEmbeddingProvider:
    """Embeds text deterministically; ``aliases`` map paraphrases to one vector."""

    def __init__(self, dimension: int = DIMENSION, aliases: dict[str, str] | None = None) -> None:
        self._dimension = dimension
        self.aliases = aliases or {}
        self.calls: list[str] = []
        self.fail = False
        self.delay = 0.0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-embeddings"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderUnavailable("embedding model offline")
        return text_vector(self.aliases.get(text, text), self._dimension)

    async def is_available(self) -> bool:
        return not self.fail


class FakeTextGenerator:
    """Returns a canned completion and records every prompt."""

    def __init__(self, completion: str = "```sql\nSELECT * FROM movies WHERE Genre = 'Action'\n```") -> None:
        self.completion = completion
        self.prompts: list[str] = []
        self.fail = False

    @property
    def model_name(self) -> str:
        return "fake-llm"

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise ProviderUnavailable("generation model offline")
        return self.completion


class FakeDatabase:
    """Serves a fixed schema and row set and records executed SQL."""

    table_name = "movies"

    def __init__(self, schema: SchemaDescriptor = MOVIES_SCHEMA, rows: list[dict] | None = None) -> None:
        self.schema = schema
        self.rows = ACTION_ROWS if rows is None else rows
        self.executed: list[str] = []
        self.fail_execute = False
        self.fail_schema = False
        self.delay = 0.0

    async def get_schema(self) -> SchemaDescriptor:
        if self.fail_schema:
            raise ExecutionFailure("database unreachable")
        return self.schema

    async def execute(self, sql: str) -> list[dict]:
        self.executed.append(sql)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_execute:
            raise ExecutionFailure("syntax error")
        return [dict(row) for row in self.rows]

    async def health_check(self) -> bool:
        return not self.fail_schema


@pytest.fixture
def embeddings() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore(dimension=DIMENSION)


@pytest.fixture
def service(embeddings, store, generator, database) -> QuestionService:
    return QuestionService(
        embedding_provider=embeddings,
        vector_store=store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
    )
