"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis -> in-memory, Ollama -> local model, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .embedding_provider import EmbeddingProvider
from .sql_database import QueryExecutor, SchemaSource
from .text_generator import TextGenerator
from .vector_store import VectorStore

__all__ = [
    "EmbeddingProvider",
    "QueryExecutor",
    "SchemaSource",
    "TextGenerator",
    "VectorStore",
]
