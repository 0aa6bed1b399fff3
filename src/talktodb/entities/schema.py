"""Relation schema domain entities."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ColumnDescriptor:
    """One column of the queried relation."""

    name: str
    type: str


@dataclass(frozen=True)
class SchemaDescriptor:
    """Ordered column list for a single named relation.

    Column order follows the store's ordinal order and is what the
    query compiler enumerates in its prompt.
    """

    table_name: str
    columns: tuple[ColumnDescriptor, ...] = ()

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.columns
