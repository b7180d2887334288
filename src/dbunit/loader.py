"""
Dataset loading: deletes planned tables, then writes each row.

INSERT writes every row with a plain INSERT. REFRESH merges: a row that
already exists (matched by primary key, or by all of its fields when it
carries no key values) is updated, otherwise inserted. LOB fields are
written after the scalar part of their row.
"""

import logging
from collections.abc import Mapping
from typing import Any

from dbunit.codec import split_row
from dbunit.connection.base import Connection
from dbunit.keys import PrimaryKeyCache, primary_key_values
from dbunit.planner import tables_to_delete
from dbunit.sql import build_delete, build_exists, build_insert, build_update
from dbunit.types import Dataset, LoadStrategy, LobRef
from dbunit.utils.metrics import ROWS_APPLIED_TOTAL
from dbunit.utils.tracing import add_span_attributes

logger = logging.getLogger(__name__)


class LoadApplier:
    """Applies a dataset to one connection."""

    def __init__(self, connection: Connection, primary_keys: PrimaryKeyCache | None = None):
        """
        Initialize the loader.

        Args:
            connection: Open connection to write to
            primary_keys: Shared primary key cache (a private one by default)
        """
        self.connection = connection
        self.primary_keys = primary_keys if primary_keys is not None else PrimaryKeyCache()

    def apply(self, dataset: Dataset, strategy: LoadStrategy | str) -> int:
        """
        Delete the planned tables, then write every row of ``dataset``.

        Rows without scalar fields are skipped; they only mark a table for
        deletion. LOB files are read before anything is deleted, so a
        missing file leaves the database untouched.

        Args:
            dataset: Ordered (table, row) pairs
            strategy: INSERT or REFRESH

        Returns:
            Number of rows written

        Raises:
            DatasetFileError: If a LOB file cannot be read
            SqlExecutionError: If any statement fails
        """
        strategy = LoadStrategy.parse(strategy)
        pairs = list(dataset)
        rows = [(table, *split_row(row)) for table, row in pairs]

        self.delete_tables(tables_to_delete(pairs, strategy))

        written = 0
        for table, fields, lobs in rows:
            if not fields:
                continue
            if strategy is LoadStrategy.INSERT:
                self.insert(table, fields)
            else:
                self.merge(table, fields)
            if lobs:
                self.write_lobs(table, fields, lobs)
            written += 1

        add_span_attributes(rows_written=written)
        logger.debug(f"Wrote {written} rows ({strategy.value})")
        return written

    def delete_tables(self, tables: list[str]) -> None:
        for table in tables:
            self.connection.execute(build_delete(table))
            ROWS_APPLIED_TOTAL.labels(table=table, action="delete").inc()
            logger.debug(f"Deleted all rows of {table}")

    def insert(self, table: str, fields: Mapping[str, Any]) -> None:
        sql, params = build_insert(table, fields, self.connection.placeholder)
        self.connection.execute(sql, *params)
        ROWS_APPLIED_TOTAL.labels(table=table, action="insert").inc()

    def merge(self, table: str, fields: Mapping[str, Any]) -> None:
        """
        Update the row if it exists, otherwise insert it.

        Existence is checked on the primary key values when the row carries
        all of them, otherwise on every field of the row. A row found that
        way in a table without a primary key is left alone.
        """
        primary_key = self.primary_keys.get(table, self.connection)
        key_values = primary_key_values(fields, primary_key)

        sql, params = build_exists(table, key_values or fields, self.connection.placeholder)
        exists = self.connection.query_one(sql, *params) is not None

        if exists and not primary_key:
            logger.debug(f"Row already present in {table}, no primary key to update by")
            return
        if exists:
            self.update(table, fields, key_values)
        else:
            self.insert(table, fields)

    def update(
        self,
        table: str,
        fields: Mapping[str, Any],
        key_values: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Update every field of the row identified by its primary key values.

        Without key values the row was matched on all its fields, so there is
        nothing to change.
        """
        if key_values is None:
            primary_key = self.primary_keys.get(table, self.connection)
            key_values = primary_key_values(fields, primary_key)
        if not key_values:
            return

        sql, params = build_update(table, fields, key_values, self.connection.placeholder)
        self.connection.execute(sql, *params)
        ROWS_APPLIED_TOTAL.labels(table=table, action="update").inc()

    def write_lobs(
        self, table: str, fields: Mapping[str, Any], lobs: Mapping[str, LobRef]
    ) -> None:
        """Store each LOB of a row, locating the row by primary key or by all its fields."""
        primary_key = self.primary_keys.get(table, self.connection)
        identifying_fields = primary_key_values(fields, primary_key) or dict(fields)

        for column, lob in lobs.items():
            self.connection.write_lob(
                table, column, lob.content, identifying_fields, lob.size_column
            )
            ROWS_APPLIED_TOTAL.labels(table=table, action="lob").inc()
