"""Natural-language to SQL compilation.

The compiler grounds a generative model in the table schema and sanitizes
whatever it returns into a bare SQL string. It performs no semantic or safety
validation: the text it returns is executed as-is by the QueryExecutor.
"""

import logging
import re

from talktodb.entities import SchemaDescriptor
from talktodb.errors import CompilationEmpty, ProviderUnavailable
from talktodb.protocols import TextGenerator

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:sql)?", re.IGNORECASE)


def build_prompt(schema: SchemaDescriptor) -> str:
    """Build the instruction prompt for a schema.

    Every column is listed with its type, in schema order. Pure function:
    the same schema always yields the same prompt.
    """
    lines = [
        "You are an expert in writing SQL queries for relational databases.",
        f"The database has a table named '{schema.table_name}' with the following schema:",
        "",
        "Columns:",
    ]
    lines.extend(f"- {col.name} ({col.type})" for col in schema.columns)
    lines.append("")
    lines.append(
        "Please generate a SQL query based on the following natural language question. "
        "ONLY return the SQL query with the desired select columns."
    )
    return "\n".join(lines)


def build_request(schema: SchemaDescriptor, question: str) -> str:
    """Full text sent to the generator: schema prompt followed by the question."""
    return f"{build_prompt(schema)}\n\nQuestion: {question}"


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markup and surrounding whitespace."""
    return _FENCE.sub("", text).strip()


class QueryCompiler:
    """Turns (schema, question) into a SQL string using a TextGenerator."""

    def __init__(self, generator: TextGenerator) -> None:
        self._generator = generator

    async def compile(self, schema: SchemaDescriptor, question: str) -> str:
        """Compile a question into SQL.

        Args:
            schema: Current schema of the queried table
            question: The natural-language question

        Returns:
            Best-effort SQL text, never empty

        Raises:
            CompilationEmpty: If the schema has no columns, the generator
                fails, or the sanitized answer is empty
        """
        if schema.is_empty:
            raise CompilationEmpty(f"No columns found for table '{schema.table_name}'")

        try:
            raw = await self._generator.generate(build_request(schema, question))
        except ProviderUnavailable as e:
            raise CompilationEmpty(f"Text generation failed: {e}") from e

        sql = strip_code_fences(raw)
        if not sql:
            raise CompilationEmpty("Generator returned no SQL text")

        logger.info("Generated SQL: %s", sql)
        return sql
