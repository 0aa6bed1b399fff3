"""Answer domain entity."""

from dataclasses import dataclass, field
from typing import Any

from talktodb.errors import ErrorKind


@dataclass(frozen=True)
class Answer:
    """Outcome of answering one question.

    Attributes:
        rows: The row set returned to the caller (possibly empty)
        cache_hit: True if rows came from the semantic cache
        sql: The SQL that produced the rows on a miss, if any
        failure: The step that degraded the answer, if any
        score: Similarity score of the best cache match, if a lookup succeeded
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    cache_hit: bool = False
    sql: str | None = None
    failure: ErrorKind | None = None
    score: float | None = None

    @classmethod
    def degraded(cls, failure: ErrorKind, score: float | None = None) -> "Answer":
        """Empty answer for a failed step."""
        return cls(failure=failure, score=score)
