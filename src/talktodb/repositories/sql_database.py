"""SQLAlchemy implementation of SchemaSource and QueryExecutor.

Works with any async SQLAlchemy driver; the reference deployment uses MySQL
through aiomysql (``mysql+aiomysql://...``), tests use aiosqlite.
"""

import logging
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from talktodb.config import settings
from talktodb.entities import ColumnDescriptor, SchemaDescriptor
from talktodb.errors import ExecutionFailure

logger = logging.getLogger(__name__)


class SqlDatabase:
    """Relational store adapter bound to a single named table.

    This class satisfies both the SchemaSource and QueryExecutor protocols.
    Statements are sent to the driver exactly as given: no rewriting, no
    parameter binding, and no validation of what the statement does.
    """

    def __init__(self, engine: AsyncEngine, table_name: str) -> None:
        self._engine = engine
        self._table_name = table_name

    @classmethod
    def create(cls, database_url: str | None = None, table_name: str | None = None) -> "SqlDatabase":
        """Factory method to create SqlDatabase with defaults from settings."""
        engine = create_async_engine(database_url or settings.database_url, pool_pre_ping=True)
        return cls(engine=engine, table_name=table_name or settings.table_name)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def table_name(self) -> str:
        return self._table_name

    async def get_schema(self) -> SchemaDescriptor:
        """Introspect the table's columns in ordinal order.

        A missing table yields an empty descriptor.

        Raises:
            ExecutionFailure: If the store cannot be reached
        """

        def _columns(sync_conn) -> list[ColumnDescriptor]:
            inspector = inspect(sync_conn)
            if not inspector.has_table(self._table_name):
                return []
            return [
                ColumnDescriptor(
                    name=col["name"],
                    type=col["type"].compile(dialect=sync_conn.dialect).split("(")[0].upper(),
                )
                for col in inspector.get_columns(self._table_name)
            ]

        try:
            async with self._engine.connect() as conn:
                columns = await conn.run_sync(_columns)
        except SQLAlchemyError as e:
            raise ExecutionFailure(f"Failed to read schema of '{self._table_name}': {e}") from e

        return SchemaDescriptor(table_name=self._table_name, columns=tuple(columns))

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        """Run a statement and return its rows as column-name mappings.

        Statements that return no rows (DDL, DML) yield an empty list.

        Raises:
            ExecutionFailure: If the store rejects or fails the statement
        """
        logger.debug("Executing SQL: %s", sql)
        try:
            async with self._engine.connect() as conn:
                # no bind parameters: pyformat drivers would otherwise expand "%" in LIKE patterns
                result = await conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
                rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
                await conn.commit()
        except SQLAlchemyError as e:
            raise ExecutionFailure(f"Query failed: {e}") from e
        except (ValueError, TypeError) as e:
            # raised by drivers outside the DBAPI error hierarchy
            raise ExecutionFailure(f"Driver rejected query: {e}") from e
        return rows

    async def health_check(self) -> bool:
        """Check if the database accepts connections."""
        try:
            async with self._engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
            return True
        except SQLAlchemyError as e:
            logger.warning("Database health check failed: %s", e)
            return False

    async def close(self) -> None:
        await self._engine.dispose()
