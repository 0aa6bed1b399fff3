"""Cache entry domain entity."""

import json
import random
import string
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

ID_PREFIX = "Question"
_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_entry_id(prefix: str = ID_PREFIX) -> str:
    """Generate a fresh cache entry id.

    Format is ``<prefix>-<epoch ms>-<9 base36 chars>`` so two concurrent misses
    for the same question never share an id.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_rows(rows: list[dict[str, Any]]) -> str:
    """Serialize a row set, preserving row and column order."""
    return json.dumps(rows, default=_json_default)


def deserialize_rows(payload: str) -> list[dict[str, Any]]:
    """Inverse of serialize_rows.

    Raises:
        ValueError: If the payload is not a JSON list of objects
    """
    rows = json.loads(payload)
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValueError("Cached response is not a list of rows")
    return rows


@dataclass(frozen=True)
class CacheEntry:
    """Domain entity for a cached question and its row-set snapshot.

    Entries are created once on a cache miss and never updated in place.

    Attributes:
        id: Globally unique entry id
        embedding: The question embedding (exactly ``dimension`` floats)
        question: The original natural-language question
        generated_query: The SQL the question was compiled to
        response: Serialized row set captured at insertion time
    """

    id: str
    embedding: list[float]
    question: str
    generated_query: str
    response: str

    @property
    def metadata(self) -> dict[str, str]:
        """Metadata stored alongside the vector."""
        return {
            "question": self.question,
            "sqlQuery": self.generated_query,
            "response": self.response,
        }

    def rows(self) -> list[dict[str, Any]]:
        """Deserialize the cached row set."""
        return deserialize_rows(self.response)
