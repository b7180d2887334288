"""
Database connection capability used by the dataset engine.

A Connection wraps one DB-API handle, opened lazily, and exposes the small
set of operations the loader and comparator need: statement execution,
single-row and streaming queries, primary key and object introspection,
sequence reset and large object (LOB) access. Driver errors are wrapped in
SqlExecutionError so callers never depend on a specific driver.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace

from dbunit.errors import SchemaIntrospectionError, SqlExecutionError
from dbunit.sql import build_lob_update, build_select
from dbunit.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


class Connection(ABC):
    """
    Base class for database connections.

    Subclasses implement _connect() and the introspection hooks; everything
    else is shared. The handle is opened on first use and stays open until
    close() is called.
    """

    placeholder: str = "?"
    db_type: str = "generic"
    driver_errors: tuple[type[BaseException], ...] = ()
    fetch_size: int = 500

    def __init__(self, name: str = "default"):
        self.name = name
        self._handle: Any = None

    @abstractmethod
    def _connect(self) -> Any:
        """Create and return a new DB-API connection in autocommit mode."""

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> Any:
        """
        Open the underlying handle if needed.

        Returns:
            The DB-API connection
        """
        if self._handle is None:
            with trace_operation(
                "dbunit.connect",
                kind=trace.SpanKind.CLIENT,
                db_type=self.db_type,
                connection_name=self.name,
            ):
                try:
                    self._handle = self._connect()
                except self.driver_errors as e:
                    raise SqlExecutionError(
                        f"Cannot connect '{self.name}' ({self.db_type}): {e}"
                    ) from e
            logger.debug(f"Opened {self.db_type} connection '{self.name}'")
        return self._handle

    def close(self) -> None:
        """Close the underlying handle, if open."""
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None
            logger.debug(f"Closed {self.db_type} connection '{self.name}'")

    def __enter__(self) -> "Connection":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @contextmanager
    def _cursor(self, sql: str, params: list[Any] | tuple[Any, ...] = ()) -> Iterator[Any]:
        """Execute ``sql`` and yield the cursor, closing it afterwards."""
        cursor = self.open().cursor()
        try:
            logger.debug(f"SQL: {sql} {list(params)}")
            try:
                if params:
                    cursor.execute(sql, list(params))
                else:
                    cursor.execute(sql)
            except self.driver_errors as e:
                raise SqlExecutionError(f"{e} (SQL: {sql})", sql=sql) from e
            yield cursor
        finally:
            cursor.close()

    @staticmethod
    def _column_names(cursor: Any) -> list[str]:
        return [column[0].lower() for column in cursor.description or ()]

    def execute(self, sql: str, *params: Any) -> None:
        """Execute a statement, discarding any result."""
        with self._cursor(sql, params):
            pass

    def query_one(self, sql: str, *params: Any) -> dict[str, Any] | None:
        """
        Run a query and return its first row.

        Returns:
            Row as a dict keyed by lowercase column name, or None if no rows
        """
        with self._cursor(sql, params) as cursor:
            try:
                row = cursor.fetchone()
            except self.driver_errors as e:
                raise SqlExecutionError(f"{e} (SQL: {sql})", sql=sql) from e
            if row is None:
                return None
            return dict(zip(self._column_names(cursor), row))

    def query_cursor(self, sql: str, *params: Any) -> Iterator[dict[str, Any]]:
        """
        Run a query and lazily yield its rows.

        The generator is forward-only; the cursor is released when it is
        exhausted or closed.
        """
        with self._cursor(sql, params) as cursor:
            columns = self._column_names(cursor)
            while True:
                try:
                    rows = cursor.fetchmany(self.fetch_size)
                except self.driver_errors as e:
                    raise SqlExecutionError(f"{e} (SQL: {sql})", sql=sql) from e
                if not rows:
                    break
                for row in rows:
                    yield dict(zip(columns, row))

    def primary_key_columns(self, table: str) -> list[str]:
        """Return the primary key columns of ``table`` in key order, lowercased."""
        try:
            return [column.lower() for column in self._primary_key_columns(table)]
        except SqlExecutionError as e:
            raise SchemaIntrospectionError(
                f"Cannot read primary key of {table}: {e}"
            ) from e

    def table_exists(self, name: str) -> bool:
        try:
            return self._table_exists(name)
        except SqlExecutionError as e:
            raise SchemaIntrospectionError(f"Cannot check table {name}: {e}") from e

    def sequence_exists(self, name: str) -> bool:
        try:
            return self._sequence_exists(name)
        except SqlExecutionError as e:
            raise SchemaIntrospectionError(f"Cannot check sequence {name}: {e}") from e

    @abstractmethod
    def _primary_key_columns(self, table: str) -> list[str]:
        pass

    @abstractmethod
    def _table_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def _sequence_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def reset_sequence(self, name: str) -> None:
        """Restart the named sequence (or identity counter) at 1."""

    def fetch_lob(
        self,
        table: str,
        column: str,
        identifying_fields: Mapping[str, Any],
        size_column: str | None = None,
    ) -> bytes | None:
        """
        Read LOB content stored inline in ``column``.

        Args:
            table: Table holding the LOB
            column: LOB column
            identifying_fields: Column -> value pairs locating the row
            size_column: Column holding the LOB size, if any (unused for inline LOBs)

        Returns:
            The content, or None if the row does not exist or the value is NULL
        """
        sql, params = build_select(table, [column], identifying_fields, self.placeholder)
        row = self.query_one(sql, *params)
        if row is None:
            return None
        return _as_bytes(row[column.lower()])

    def write_lob(
        self,
        table: str,
        column: str,
        content: bytes | None,
        identifying_fields: Mapping[str, Any],
        size_column: str | None = None,
    ) -> None:
        """Store LOB content inline in ``column``, updating ``size_column`` alongside."""
        content = content or b""
        sql, params = build_lob_update(
            table,
            column,
            content,
            identifying_fields,
            size_column=size_column,
            size=len(content),
            placeholder=self.placeholder,
        )
        self.execute(sql, *params)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _as_bytes(value: Any) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)
