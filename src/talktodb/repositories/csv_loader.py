"""CSV ingestion into the relational store.

Loads a flat file into a freshly created table. Column types are inferred from
the first data row: integers become INTEGER, other numbers FLOAT, everything
else TEXT. Empty cells are stored as NULL.
"""

import csv
import logging
from pathlib import Path

from sqlalchemy import Column, Float, Integer, MetaData, Table, Text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def infer_type(value: str) -> str:
    """Infer a SQL column type name from a sample cell."""
    if value == "":
        return "TEXT"
    try:
        number = float(value)
    except ValueError:
        return "TEXT"
    if number != number or number in (float("inf"), float("-inf")):
        return "TEXT"
    return "INTEGER" if number.is_integer() else "FLOAT"


_TYPES = {"INTEGER": Integer, "FLOAT": Float, "TEXT": Text}


def read_csv(path: str | Path) -> list[dict[str, str]]:
    """Read a CSV file with a header row, trimming every cell.

    Raises:
        ValueError: If the file has no data rows
    """
    with open(path, newline="", encoding="utf-8") as f:
        rows = [
            {key.strip(): (value or "").strip() for key, value in row.items() if key is not None}
            for row in csv.DictReader(f)
        ]
    if not rows:
        raise ValueError(f"CSV file is empty: {path}")
    return rows


def build_table(table_name: str, sample_row: dict[str, str]) -> Table:
    """Build the table definition for a sample row, preserving column order."""
    metadata = MetaData()
    return Table(
        table_name,
        metadata,
        *(Column(name, _TYPES[infer_type(value)]) for name, value in sample_row.items()),
    )


async def load_csv(engine: AsyncEngine, path: str | Path, table_name: str) -> int:
    """Replace ``table_name`` with the contents of a CSV file.

    Returns:
        Number of rows inserted
    """
    rows = read_csv(path)
    table = build_table(table_name, rows[0])
    values = [{key: (value if value != "" else None) for key, value in row.items()} for row in rows]

    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: table.drop(sync_conn, checkfirst=True))
        await conn.run_sync(lambda sync_conn: table.create(sync_conn))
        await conn.execute(table.insert(), values)

    schema = ", ".join(f"{col.name} {infer_type(rows[0][col.name])}" for col in table.columns)
    logger.info("Table '%s' created with schema: %s", table_name, schema)
    logger.info("Loaded %d rows into '%s'", len(values), table_name)
    return len(values)
