"""Repository layer for data access.

This layer wraps external systems (Redis, Ollama, the SQL database) behind
the protocol interfaces in ``talktodb.protocols``. This enables:
- Easy swapping of implementations (Redis -> in-memory, Ollama -> local model, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Adapters translate library errors into the typed failures in ``talktodb.errors``.
"""

from .csv_loader import load_csv
from .local_embedding_provider import LocalEmbeddingProvider
from .memory_vector_store import InMemoryVectorStore
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .ollama_text_generator import OllamaTextGenerator
from .redis_vector_store import RedisVectorStore
from .sql_database import SqlDatabase

__all__ = [
    "InMemoryVectorStore",
    "LocalEmbeddingProvider",
    "OllamaEmbeddingProvider",
    "OllamaTextGenerator",
    "RedisVectorStore",
    "SqlDatabase",
    "load_csv",
]
