"""
Dataset verification: compares expected rows with live table contents.

Verification stops at the first difference and describes it in a single
message. Values are compared by their rendered string form (see
dbunit.types.render_value), so ``3``, ``"3"`` and ``3.0`` are equal while
``"3.00"`` and ``3`` are not, and ``0``, ``"0"`` and NULL all compare as
empty. Predicates are called with the live value instead.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from dbunit.codec import split_row
from dbunit.connection.base import Connection
from dbunit.keys import PrimaryKeyCache, primary_key_hash, primary_key_values
from dbunit.snapshot import Snapshot, TableSnapshotFetcher, expected_table_columns
from dbunit.sql import build_count, build_select
from dbunit.types import Dataset, LobRef, Predicate, render_value

logger = logging.getLogger(__name__)

__all__ = [
    "DatasetComparator",
    "compare_datasets",
    "format_values",
]


def format_values(row: Mapping[str, Any] | None, columns: Iterable[str]) -> str:
    """
    Format the given columns of a row for a difference message.

    Example:
        >>> format_values({"id": 1, "name": None}, ["id", "name"])
        "[ id => '1' name => '' ]"
    """
    row = row or {}
    rendered = " ".join(
        f"{column} => '{'' if row.get(column) is None else row[column]}'" for column in columns
    )
    return f"[ {rendered} ]"


def compare_datasets(
    live: Mapping[str, Any] | None,
    expected: Mapping[str, Any],
    table: str,
    columns: Sequence[str] | None = None,
) -> str | None:
    """
    Compare one live row with one expected row, column by column.

    Args:
        live: Live row (None compares as a row of NULLs)
        expected: Expected fields, possibly holding predicates
        table: Table name used in the message
        columns: Columns to compare (default: the expected row's columns)

    Returns:
        Description of the first differing column, or None if the rows match
    """
    live = live or {}
    columns = list(expected) if columns is None else list(columns)

    for column in columns:
        expected_value = expected.get(column)
        if isinstance(expected_value, Predicate):
            if not expected_value(live.get(column)):
                return f"found difference in {table} {column}:\n  {format_values(live, columns)}"
            continue
        if render_value(live.get(column)) != render_value(expected_value):
            return (
                f"found difference in {table} {column}:"
                f"\n  {format_values(expected, columns)}"
                f"\n  {format_values(live, columns)}"
            )
    return None


def _missing_entry(table: str, expected: Mapping[str, Any]) -> str:
    return f"found difference in {table} - missing entry: \n  {format_values(expected, list(expected))}"


def _scalar_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {column: value for column, value in fields.items() if not isinstance(value, Predicate)}


class DatasetComparator:
    """Verifies expected datasets against one connection."""

    def __init__(self, connection: Connection, primary_keys: PrimaryKeyCache | None = None):
        """
        Initialize the comparator.

        Args:
            connection: Open connection to read from
            primary_keys: Shared primary key cache (a private one by default)
        """
        self.connection = connection
        self.primary_keys = primary_keys if primary_keys is not None else PrimaryKeyCache()

    def verify_insert_strategy(self, dataset: Dataset) -> str | None:
        """
        Verify that each table holds exactly the expected rows.

        Every involved table is read once up front. Each expected row then
        consumes its matching live row; finally the row count of every
        table must equal the number of expected rows for it.

        Returns:
            The first difference found, or None
        """
        rows = [(table, *split_row(row)) for table, row in dataset]
        columns = expected_table_columns(
            [(table, fields) for table, fields, _ in rows], self.primary_keys, self.connection
        )
        snapshots = TableSnapshotFetcher(self.connection, self.primary_keys).fetch(columns)

        expected_counts = dict.fromkeys(columns, 0)
        for table, fields, lobs in rows:
            if not fields and not lobs:
                continue
            expected_counts[table] += 1
            primary_key = self.primary_keys.get(table, self.connection)
            result = self.compare_row(snapshots[table], fields, primary_key, table, lobs)
            if result:
                return result

        return self.validate_number_of_rows(expected_counts)

    def verify_refresh_strategy(self, dataset: Dataset) -> str | None:
        """
        Verify that each expected row exists with the expected values.

        Rows are queried one at a time; other live rows are ignored.

        Returns:
            The first difference found, or None
        """
        for table, row in dataset:
            fields, lobs = split_row(row)
            if not fields and not lobs:
                continue
            primary_key = self.primary_keys.get(table, self.connection)
            result = self.validate_expected_row(fields, primary_key, table, lobs)
            if result:
                return result
        return None

    def compare_row(
        self,
        snapshot: Snapshot,
        expected: Mapping[str, Any],
        primary_key: Sequence[str],
        table: str,
        lobs: Mapping[str, LobRef] | None = None,
    ) -> str | None:
        """
        Match an expected row against a table snapshot and compare it.

        With full primary key values the row is looked up by key. Otherwise
        the first live row whose non-predicate values render the same is
        taken (and its predicates must hold). A matched live row is removed
        from the snapshot so it cannot match twice.

        Returns:
            The first difference found, or None
        """
        if lobs:
            result = self.validate_lobs(lobs, table, primary_key, expected)
            if result:
                return result

        key = primary_key_hash(expected, primary_key)
        if key is not None:
            if key in snapshot:
                result = compare_datasets(snapshot[key], expected, table)
                if result:
                    return result
                del snapshot[key]
                return None
            return _missing_entry(table, expected)

        scalar_columns = list(_scalar_fields(expected))
        signature = [render_value(expected[column]) for column in scalar_columns]
        for row_key, live in snapshot.items():
            if [render_value(live.get(column)) for column in scalar_columns] != signature:
                continue
            if compare_datasets(live, expected, table) is None:
                del snapshot[row_key]
                return None
        return _missing_entry(table, expected)

    def validate_expected_row(
        self,
        expected: Mapping[str, Any],
        primary_key: Sequence[str],
        table: str,
        lobs: Mapping[str, LobRef] | None = None,
    ) -> str | None:
        """
        Query one expected row from the live table and compare it.

        The row is located by its primary key values, or by every
        non-predicate field when the table has no primary key. A row that
        leaves out part of its table's key cannot be located and is
        reported as a missing entry.
        """
        if primary_key:
            conditions = primary_key_values(expected, primary_key)
            if conditions is None:
                return _missing_entry(table, expected)
        else:
            conditions = _scalar_fields(expected)

        if lobs:
            result = self.validate_lobs(lobs, table, list(conditions), expected)
            if result:
                return result

        sql, params = build_select(table, expected, conditions, self.connection.placeholder)
        live = self.connection.query_one(sql, *params)
        if live and any(value is not None for value in live.values()):
            return compare_datasets(live, expected, table)
        return _missing_entry(table, expected)

    def validate_lobs(
        self,
        lobs: Mapping[str, LobRef],
        table: str,
        key_columns: Sequence[str],
        expected: Mapping[str, Any],
    ) -> str | None:
        """
        Compare expected LOB content with the stored content, by length then bytes.

        The row is identified by ``key_columns`` when given, otherwise by all
        non-predicate expected fields.
        """
        if key_columns:
            identifying_fields = {column: expected.get(column) for column in key_columns}
        else:
            identifying_fields = _scalar_fields(expected)

        for column, lob in lobs.items():
            content = self.connection.fetch_lob(table, column, identifying_fields, lob.size_column)
            expected_content = lob.content or b""
            content = content or b""
            if len(content) != len(expected_content) or content != expected_content:
                return (
                    f"found difference at LOB value {table}.{column}: "
                    f"{format_values(identifying_fields, list(identifying_fields))}"
                )
        return None

    def validate_number_of_rows(self, expected_counts: Mapping[str, int]) -> str | None:
        """Check the live row count of every table against the expected count."""
        for table, expected_count in expected_counts.items():
            row = self.connection.query_one(build_count(table))
            count = row["cnt"] if row else None
            if count is None or str(count) != str(expected_count):
                return (
                    f"found difference in number of the {table} rows - "
                    f"has {count} rows, should have {expected_count}"
                )
        return None
