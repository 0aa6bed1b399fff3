"""Relational store protocols."""

from typing import Any, Protocol, runtime_checkable

from talktodb.entities import SchemaDescriptor


@runtime_checkable
class SchemaSource(Protocol):
    """Supplies the schema of the configured relation."""

    async def get_schema(self) -> SchemaDescriptor:
        """Return the current columns of the relation, in ordinal order.

        Raises:
            ExecutionFailure: If the store cannot be introspected
        """
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """Runs SQL text against the relational store."""

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        """Execute exactly the given text and return its rows.

        Raises:
            ExecutionFailure: If the store rejects or fails the statement
        """
        ...
