"""Service layer for business logic.

This layer contains the core business logic and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from talktodb.services import QueryCompiler, QuestionService

    service = QuestionService(
        embedding_provider=provider,
        vector_store=store,
        compiler=QueryCompiler(generator),
        schema_source=database,
        executor=database,
    )
    answer = await service.answer("Top 10 action movies?")
    ```
"""

from .query_compiler import QueryCompiler, build_prompt, build_request, strip_code_fences
from .question_service import DEFAULT_SIMILARITY_THRESHOLD, QuestionService

__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "QueryCompiler",
    "QuestionService",
    "build_prompt",
    "build_request",
    "strip_code_fences",
]
