"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic); the database is touched only for health reporting.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .question_handler import QuestionHandler

__all__ = [
    "QuestionHandler",
]
