"""SQLite connection, backed by the standard library driver."""

import sqlite3

from dbunit.connection.base import Connection
from dbunit.utils.sql_safety import validate_identifier, validate_schema_table


class SQLiteConnection(Connection):
    """
    Connection to a SQLite database file (or ``:memory:``).

    SQLite has no sequences; reset_sequence() restarts the AUTOINCREMENT
    counter of the named table instead. A ``:memory:`` database only lives
    as long as its handle, so open it before handing it to an engine that
    should keep its data between operations.
    """

    placeholder = "?"
    db_type = "sqlite"
    driver_errors = (sqlite3.Error,)

    def __init__(self, database: str = ":memory:", name: str = "default", timeout: float = 10.0):
        """
        Initialize SQLite connection.

        Args:
            database: Database file path, or ``:memory:``
            name: Logical connection name
            timeout: Seconds to wait on a locked database
        """
        super().__init__(name)
        self.database = database
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.database, timeout=self.timeout, isolation_level=None)

    def _primary_key_columns(self, table: str) -> list[str]:
        validate_schema_table(table)
        schema, _, name = table.rpartition(".")
        pragma = f"PRAGMA {schema}.table_info({name})" if schema else f"PRAGMA table_info({name})"
        columns = [row for row in self.query_cursor(pragma) if row["pk"]]
        return [row["name"] for row in sorted(columns, key=lambda row: row["pk"])]

    def _table_exists(self, name: str) -> bool:
        row = self.query_one(
            "SELECT 1 AS cnt FROM sqlite_master WHERE type = 'table' AND lower(name) = lower(?)",
            name,
        )
        return row is not None

    def _sequence_exists(self, name: str) -> bool:
        return False

    def reset_sequence(self, name: str) -> None:
        validate_identifier(name)
        if self.table_exists("sqlite_sequence"):
            self.execute("DELETE FROM sqlite_sequence WHERE lower(name) = lower(?)", name)
