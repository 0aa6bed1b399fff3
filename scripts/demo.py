#!/usr/bin/env python3
"""
Demo script for TalkToDB.

Loads a CSV into a local SQLite database, then asks a few questions twice
to show cache misses turning into semantic cache hits. Uses an in-memory
vector store, so only Ollama needs to be running:

    ollama pull embeddinggemma && ollama pull llama3.1
    python scripts/demo.py movies.csv
"""

import asyncio
import sys
import time

from talktodb.config import configure_logging
from talktodb.repositories import (
    InMemoryVectorStore,
    OllamaEmbeddingProvider,
    OllamaTextGenerator,
    SqlDatabase,
    load_csv,
)
from talktodb.services import QueryCompiler, QuestionService


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo(csv_file: str) -> None:
    database = SqlDatabase.create(database_url="sqlite+aiosqlite:///demo.db", table_name="movies")
    count = await load_csv(database.engine, csv_file, "movies")
    print(f"Loaded {count} rows from {csv_file}")

    embeddings = OllamaEmbeddingProvider.create()
    generator = OllamaTextGenerator.create()
    service = QuestionService.create(
        embedding_provider=embeddings,
        vector_store=InMemoryVectorStore(dimension=embeddings.dimension),
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
    )

    questions = [
        "Top 10 action movies?",
        "What are the ten best action movies?",
        "Top 5 comedies by rating",
    ]

    try:
        for round_name in ("First pass", "Second pass"):
            print_section(round_name)
            for question in questions:
                start = time.time()
                answer = await service.answer(question)
                duration = (time.time() - start) * 1000
                source = "HIT " if answer.cache_hit else "MISS"
                print(f"\n  [{source}] {question} ({duration:.0f}ms)")
                if answer.score is not None:
                    print(f"  Best similarity: {answer.score:.4f}")
                if answer.sql:
                    print(f"  SQL: {answer.sql}")
                if answer.failure:
                    print(f"  Degraded: {answer.failure.value}")
                for row in answer.rows[:5]:
                    print(f"    {row}")
    finally:
        await embeddings.close()
        await generator.close()
        await database.close()


def main() -> None:
    """Run the demo."""
    configure_logging("WARNING")
    csv_file = sys.argv[1] if len(sys.argv) > 1 else "movies.csv"
    try:
        asyncio.run(demo(csv_file))
    except (OSError, ValueError) as e:
        print(f"\nError: {e}")
        print("\nUsage: python scripts/demo.py path/to/movies.csv")


if __name__ == "__main__":
    main()
