"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class AskResponse(BaseModel):
    """Response DTO for a question.

    An empty result means either that no rows matched or that a pipeline
    step failed; the two are not distinguished.
    """

    result: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Rows answering the question, in query order",
    )


class ColumnItem(BaseModel):
    """Single column of the table schema."""

    name: str = Field(..., description="Column name")
    type: str = Field(..., description="Upper-cased SQL type, e.g. TEXT or FLOAT")


class SchemaResponse(BaseModel):
    """Response DTO for the schema endpoint."""

    table: str = Field(..., description="Name of the queried table")
    schema_: list[ColumnItem] = Field(
        default_factory=list,
        alias="schema",
        serialization_alias="schema",
        description="Columns in ordinal order",
    )

    model_config = {"populate_by_name": True}


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the vector cache backend is reachable")
    embedding_healthy: bool = Field(..., description="Whether the embedding service is reachable")
    database_healthy: bool = Field(..., description="Whether the relational store is reachable")
