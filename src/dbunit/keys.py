"""Primary key lookup, caching and row key computation."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from dbunit.connection.base import Connection
from dbunit.types import Predicate, render_value

logger = logging.getLogger(__name__)


class PrimaryKeyCache:
    """
    Per-table primary key columns, resolved lazily from the live schema.

    Entries live until clear() is called; tests that alter a table's key
    mid-run must clear the cache.
    """

    def __init__(self):
        self._columns: dict[str, list[str]] = {}

    def get(self, table: str, connection: Connection) -> list[str]:
        """Return the primary key columns of ``table``, querying on first use."""
        if table not in self._columns:
            self._columns[table] = connection.primary_key_columns(table)
            logger.debug(f"Primary key of {table}: {self._columns[table] or 'none'}")
        return self._columns[table]

    def clear(self, table: str | None = None) -> None:
        if table is None:
            self._columns.clear()
        else:
            self._columns.pop(table, None)

    def __contains__(self, table: object) -> bool:
        return table in self._columns

    def __len__(self) -> int:
        return len(self._columns)


def primary_key_values(
    fields: Mapping[str, Any], primary_key: Sequence[str]
) -> dict[str, Any] | None:
    """
    Pick the primary key values out of a row.

    Returns:
        Key column -> value, or None when the table has no primary key or
        any key column is missing, NULL or a predicate
    """
    if not primary_key:
        return None

    values = {}
    for column in primary_key:
        value = fields.get(column)
        if value is None or isinstance(value, Predicate):
            return None
        values[column] = value
    return values


def primary_key_hash(fields: Mapping[str, Any], primary_key: Sequence[str]) -> str | None:
    """
    Build the row key used to match expected rows to live rows.

    Returns:
        Key values rendered and joined with ``#``, or None if the row has no
        usable primary key
    """
    values = primary_key_values(fields, primary_key)
    if values is None:
        return None
    return "#".join(render_value(values[column]) for column in primary_key)
