"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .answer import Answer
from .cache_entry import CacheEntry, deserialize_rows, new_entry_id, serialize_rows
from .schema import ColumnDescriptor, SchemaDescriptor
from .similarity_match import SimilarityMatch

__all__ = [
    "Answer",
    "CacheEntry",
    "ColumnDescriptor",
    "SchemaDescriptor",
    "SimilarityMatch",
    "deserialize_rows",
    "new_entry_id",
    "serialize_rows",
]
