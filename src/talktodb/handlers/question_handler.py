"""HTTP handlers for question and schema operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes and error responses.
"""

import logging

from fastapi import HTTPException, status

from talktodb.dto import AskRequest, AskResponse, ColumnItem, HealthCheckResponse, SchemaResponse
from talktodb.errors import ExecutionFailure
from talktodb.repositories import SqlDatabase
from talktodb.services import QuestionService

logger = logging.getLogger(__name__)


class QuestionHandler:
    """HTTP handlers for the question pipeline.

    This handler delegates business logic to QuestionService and handles
    HTTP-specific concerns like:
    - Converting answers and schemas to DTOs
    - Setting appropriate status codes
    - Error handling and responses
    """

    def __init__(self, question_service: QuestionService, database: SqlDatabase) -> None:
        """Initialize the question handler.

        Args:
            question_service: The question service for business logic (required).
            database: The relational store, used for health reporting.
        """
        self._questions = question_service
        self._database = database

    async def ask(self, request: AskRequest) -> AskResponse:
        """Handle POST /ask requests.

        Pipeline failures already degrade to an empty result inside the
        service; only unexpected errors become a 500.
        """
        try:
            answer = await self._questions.answer(request.question)
        except Exception as e:
            logger.exception("Unexpected error answering question")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            ) from e

        return AskResponse(result=answer.rows)

    async def get_schema(self) -> SchemaResponse:
        """Handle GET /schema requests.

        An unreachable store yields an empty column list rather than an error.
        """
        try:
            schema = await self._questions.get_schema()
        except ExecutionFailure as e:
            logger.warning("Schema unavailable: %s", e)
            return SchemaResponse(table=self._database.table_name, schema_=[])
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch schema: {e}",
            ) from e

        return SchemaResponse(
            table=schema.table_name,
            schema_=[ColumnItem(name=col.name, type=col.type) for col in schema.columns],
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        checks = await self._questions.is_healthy()
        database_healthy = await self._database.health_check()
        is_healthy = all(checks.values()) and database_healthy

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=checks["cache_healthy"],
            embedding_healthy=checks["embedding_healthy"],
            database_healthy=database_healthy,
        )
