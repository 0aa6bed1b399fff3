"""
Tests for the cache-aside question flow.
"""

import asyncio
import json
import re
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from talktodb.entities import CacheEntry, SchemaDescriptor, SimilarityMatch, serialize_rows
from talktodb.errors import CacheUnavailable, ErrorKind
from talktodb.services import QueryCompiler, QuestionService

from .conftest import ACTION_ROWS, DIMENSION, FakeDatabase, text_vector

ENTRY_ID = re.compile(r"^Question-\d{13}-[a-z0-9]{9}$")


def make_service(embeddings, store, generator, database, **kwargs) -> QuestionService:
    return QuestionService(
        embedding_provider=embeddings,
        vector_store=store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
        **kwargs,
    )


async def test_first_question_compiles_executes_and_caches(service, store, generator, database):
    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == ACTION_ROWS
    assert not answer.cache_hit
    assert answer.failure is None
    assert answer.sql == "SELECT * FROM movies WHERE Genre = 'Action'"
    assert len(generator.prompts) == 1
    assert database.executed == ["SELECT * FROM movies WHERE Genre = 'Action'"]

    entries = store.entries()
    assert len(entries) == 1
    entry = entries[0]
    assert ENTRY_ID.match(entry.id)
    assert entry.question == "Top 10 action movies?"
    assert entry.generated_query == answer.sql
    assert entry.response == serialize_rows(ACTION_ROWS)
    assert len(entry.embedding) == DIMENSION


async def test_repeated_question_is_served_from_cache(service, store, generator, database):
    first = await service.answer("Top 10 action movies?")
    second = await service.answer("Top 10 action movies?")

    assert second.cache_hit
    assert second.rows == first.rows
    assert second.score > 0.95
    assert second.sql == first.sql
    # compile and execute ran only for the first call
    assert len(generator.prompts) == 1
    assert len(database.executed) == 1
    assert len(store) == 1


async def test_cache_hit_returns_stored_snapshot_not_fresh_data(service, database):
    await service.answer("Top 10 action movies?")
    database.rows = [{"Title": "Inception", "Genre": "Action", "Rating": 8.8}]

    answer = await service.answer("Top 10 action movies?")

    assert answer.cache_hit
    assert answer.rows == ACTION_ROWS


async def test_paraphrase_hits_cache(embeddings, store, generator, database):
    embeddings.aliases["Show me the top 10 action films"] = "Top 10 action movies?"
    service = make_service(embeddings, store, generator, database)

    await service.answer("Top 10 action movies?")
    answer = await service.answer("Show me the top 10 action films")

    assert answer.cache_hit
    assert answer.rows == ACTION_ROWS
    assert len(generator.prompts) == 1


async def test_distinct_question_misses_cache(service, generator, database):
    await service.answer("Top 10 action movies?")
    answer = await service.answer("Top 5 comedies?")

    assert not answer.cache_hit
    assert answer.score is not None and answer.score < 0.95
    assert len(generator.prompts) == 2
    assert len(database.executed) == 2


async def test_score_equal_to_threshold_is_a_miss(embeddings, generator, database):
    entry = CacheEntry(
        id="Question-1-abc",
        embedding=[],
        question="old",
        generated_query="SELECT 1",
        response=json.dumps([{"x": 1}]),
    )
    store = AsyncMock()
    store.search.return_value = [SimilarityMatch(entry=entry, score=0.95)]
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert not answer.cache_hit
    assert answer.rows == ACTION_ROWS
    store.search.assert_awaited_once()
    assert store.search.await_args.args[1] == 1
    store.upsert.assert_awaited_once()


async def test_embedding_failure_skips_cache_and_compiler(embeddings, generator, database):
    embeddings.fail = True
    store = AsyncMock()
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.PROVIDER_UNAVAILABLE
    store.search.assert_not_awaited()
    store.upsert.assert_not_awaited()
    assert generator.prompts == []
    assert database.executed == []


async def test_empty_compilation_skips_executor(service, store, generator, database):
    generator.completion = "```sql\n   \n```"

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.COMPILATION_EMPTY
    assert database.executed == []
    assert len(store) == 0


async def test_generator_failure_is_compilation_empty(service, generator, database):
    generator.fail = True

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.COMPILATION_EMPTY
    assert database.executed == []


async def test_empty_schema_skips_generator(embeddings, store, generator):
    database = FakeDatabase(schema=SchemaDescriptor(table_name="movies"))
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.failure is ErrorKind.COMPILATION_EMPTY
    assert generator.prompts == []
    assert database.executed == []


async def test_schema_failure_degrades_to_empty(service, generator, database):
    database.fail_schema = True

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.COMPILATION_EMPTY
    assert generator.prompts == []


async def test_execution_failure_is_empty_and_not_cached(service, store, database):
    database.fail_execute = True

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.EXECUTION_FAILURE
    assert len(store) == 0


async def test_zero_rows_are_cached(service, store, database):
    database.rows = []

    first = await service.answer("Any horror movies rated 10?")
    second = await service.answer("Any horror movies rated 10?")

    assert first.rows == [] and first.failure is None
    assert second.cache_hit
    assert len(database.executed) == 1


async def test_search_failure_is_treated_as_miss(embeddings, generator, database):
    store = AsyncMock()
    store.search.side_effect = CacheUnavailable("redis down")
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == ACTION_ROWS
    assert answer.failure is None
    assert len(database.executed) == 1
    store.upsert.assert_awaited_once()


async def test_upsert_failure_still_serves_rows(embeddings, generator, database):
    store = AsyncMock()
    store.search.return_value = []
    store.upsert.side_effect = CacheUnavailable("read-only replica")
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == ACTION_ROWS
    assert answer.failure is None


async def test_unreadable_cached_response_is_treated_as_miss(embeddings, store, generator, database):
    vector = text_vector("Top 10 action movies?")
    await store.upsert(
        "Question-1-broken",
        vector,
        {"question": "Top 10 action movies?", "sqlQuery": "SELECT 1", "response": "not json"},
    )
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert not answer.cache_hit
    assert answer.rows == ACTION_ROWS
    assert len(database.executed) == 1


async def test_slow_embedding_times_out(embeddings, store, generator, database):
    embeddings.delay = 0.5
    service = make_service(embeddings, store, generator, database, step_timeout=0.01)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.PROVIDER_UNAVAILABLE
    assert generator.prompts == []


async def test_concurrent_identical_misses_each_write_an_entry(service, store, database):
    # both requests are past the lookup before either writes
    database.delay = 0.01

    first, second = await asyncio.gather(
        service.answer("Top 10 action movies?"),
        service.answer("Top 10 action movies?"),
    )

    assert first.rows == second.rows == ACTION_ROWS
    assert len(database.executed) == 2
    ids = [entry.id for entry in store.entries()]
    assert len(ids) == 2
    assert len(set(ids)) == 2


async def test_empty_question_is_rejected(service, embeddings):
    with pytest.raises(ValueError):
        await service.answer("   ")
    assert embeddings.calls == []


def test_invalid_threshold_is_rejected(embeddings, store, generator, database):
    with pytest.raises(ValueError):
        make_service(embeddings, store, generator, database, similarity_threshold=1.5)


async def test_untyped_executor_error_degrades_to_execution_failure(embeddings, store, generator, database):
    executor = AsyncMock()
    executor.execute.side_effect = ValueError("unsupported format character 'A' (0x41) at index 40")
    service = QuestionService(
        embedding_provider=embeddings,
        vector_store=store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=executor,
    )

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.EXECUTION_FAILURE
    assert len(store) == 0


async def test_untyped_embedding_error_degrades_to_provider_unavailable(store, generator, database):
    embeddings = AsyncMock()
    embeddings.encode.side_effect = KeyError(0)
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == []
    assert answer.failure is ErrorKind.PROVIDER_UNAVAILABLE
    assert generator.prompts == []


async def test_untyped_schema_error_degrades_to_compilation_empty(service, database, generator, monkeypatch):
    monkeypatch.setattr(database, "get_schema", AsyncMock(side_effect=RuntimeError("pool exhausted")))

    answer = await service.answer("Top 10 action movies?")

    assert answer.failure is ErrorKind.COMPILATION_EMPTY
    assert generator.prompts == []


async def test_untyped_cache_errors_are_misses(embeddings, generator, database):
    store = AsyncMock()
    store.search.side_effect = RuntimeError("index dropped")
    store.upsert.side_effect = OSError("connection reset")
    service = make_service(embeddings, store, generator, database)

    answer = await service.answer("Top 10 action movies?")

    assert answer.rows == ACTION_ROWS
    assert answer.failure is None


async def test_miss_and_hit_return_identical_rows_for_driver_types(service, database):
    database.rows = [{"Genre": "Action", "total": Decimal("17"), "released": date(2015, 5, 15)}]

    first = await service.answer("Total action movies per release date")
    second = await service.answer("Total action movies per release date")

    assert not first.cache_hit
    assert second.cache_hit
    assert first.rows == second.rows == [{"Genre": "Action", "total": 17.0, "released": "2015-05-15"}]
