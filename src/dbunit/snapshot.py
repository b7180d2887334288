"""Live table snapshots used to verify datasets under the INSERT strategy."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from opentelemetry import trace

from dbunit.connection.base import Connection
from dbunit.keys import PrimaryKeyCache, primary_key_hash
from dbunit.sql import build_select
from dbunit.utils.tracing import trace_operation

logger = logging.getLogger(__name__)

Snapshot = dict[str, dict[str, Any]]


def expected_table_columns(
    rows: Iterable[tuple[str, Mapping[str, Any]]],
    primary_keys: PrimaryKeyCache | None = None,
    connection: Connection | None = None,
) -> dict[str, list[str]]:
    """
    Collect the columns to fetch for every table of an expected dataset.

    Args:
        rows: (table, scalar fields) pairs; rows of one table may differ in columns
        primary_keys: Cache used to add each table's key columns
        connection: Connection used to resolve keys; keys are skipped without it

    Returns:
        Table -> sorted union of its expected columns and primary key columns,
        in first-seen table order. Tables listed only with empty rows map to [].
    """
    columns: dict[str, set[str]] = {}
    for table, fields in rows:
        columns.setdefault(table, set()).update(fields)

    if connection is not None:
        primary_keys = primary_keys if primary_keys is not None else PrimaryKeyCache()
        for table, table_columns in columns.items():
            table_columns.update(primary_keys.get(table, connection))

    return {table: sorted(table_columns) for table, table_columns in columns.items()}


class TableSnapshotFetcher:
    """Reads whole tables into memory, keyed for matching against expected rows."""

    def __init__(self, connection: Connection, primary_keys: PrimaryKeyCache | None = None):
        self.connection = connection
        self.primary_keys = primary_keys if primary_keys is not None else PrimaryKeyCache()

    def fetch(self, tables: Mapping[str, Iterable[str]]) -> dict[str, Snapshot]:
        """
        Snapshot every table in ``tables``.

        Args:
            tables: Table -> columns to read (all columns when empty)

        Returns:
            Table -> snapshot
        """
        return {table: self.fetch_table(table, columns) for table, columns in tables.items()}

    def fetch_table(self, table: str, columns: Iterable[str] = ()) -> Snapshot:
        """
        Read all rows of one table.

        Rows are keyed by their primary key hash, or by ``__N`` (N being the
        row ordinal) when the table has no primary key or a key value is NULL.

        Returns:
            Row key -> row (lowercase column -> value)
        """
        primary_key = self.primary_keys.get(table, self.connection)
        sql, _ = build_select(table, columns, placeholder=self.connection.placeholder)

        with trace_operation(
            "dbunit.fetch_table",
            kind=trace.SpanKind.CLIENT,
            table=table,
            db_type=self.connection.db_type,
        ) as span:
            snapshot: Snapshot = {}
            for ordinal, row in enumerate(self.connection.query_cursor(sql)):
                key = primary_key_hash(row, primary_key) if primary_key else None
                snapshot[key if key is not None else f"__{ordinal}"] = row
            span.set_attribute("dbunit.rows", len(snapshot))

        logger.debug(f"Fetched {len(snapshot)} rows from {table}")
        return snapshot
