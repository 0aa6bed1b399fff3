"""Typed failures raised by the question pipeline's collaborators.

Adapters translate library exceptions (httpx, redis, SQLAlchemy, timeouts)
into these types. Only the QuestionService decides how to degrade on them.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Which step of the pipeline failed."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    CACHE_UNAVAILABLE = "cache_unavailable"
    COMPILATION_EMPTY = "compilation_empty"
    EXECUTION_FAILURE = "execution_failure"


class TalkToDBError(Exception):
    """Base class for pipeline failures."""

    kind: ErrorKind


class ProviderUnavailable(TalkToDBError):
    """Embedding or generative model call failed or returned malformed data."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE


class CacheUnavailable(TalkToDBError):
    """Vector store search or upsert failed."""

    kind = ErrorKind.CACHE_UNAVAILABLE


class CompilationEmpty(TalkToDBError):
    """No usable SQL text could be produced for a question."""

    kind = ErrorKind.COMPILATION_EMPTY


class ExecutionFailure(TalkToDBError):
    """The relational store rejected or failed a statement."""

    kind = ErrorKind.EXECUTION_FAILURE
