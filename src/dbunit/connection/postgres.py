"""PostgreSQL connection, backed by psycopg2."""

from collections.abc import Mapping
from typing import Any

import psycopg2
import psycopg2.extensions

from dbunit.connection.base import Connection
from dbunit.errors import SqlExecutionError
from dbunit.sql import build_lob_update, build_select
from dbunit.utils.sql_safety import validate_schema_table


class PostgresConnection(Connection):
    """
    Connection to a PostgreSQL database.

    LOB columns hold large object oids; the content lives in
    pg_largeobject and is read and written through psycopg2 lobjects.
    """

    placeholder = "%s"
    db_type = "postgresql"
    driver_errors = (psycopg2.Error,)

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        name: str = "default",
        connect_timeout: int = 10,
    ):
        """
        Initialize PostgreSQL connection.

        Args:
            host: PostgreSQL host
            port: PostgreSQL port
            database: Database name
            user: Username
            password: Password
            name: Logical connection name
            connect_timeout: Seconds to wait for the server
        """
        super().__init__(name)
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.connect_timeout = connect_timeout

    def _connect(self) -> psycopg2.extensions.connection:
        conn = psycopg2.connect(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=self.connect_timeout,
        )
        conn.set_session(autocommit=True)
        return conn

    @staticmethod
    def _split_name(name: str) -> tuple[str, str]:
        validate_schema_table(name)
        schema, _, table = name.rpartition(".")
        return (schema or "public").lower(), table.lower()

    def _primary_key_columns(self, table: str) -> list[str]:
        schema, name = self._split_name(table)
        rows = self.query_cursor(
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
              ON tc.constraint_name = kcu.constraint_name
             AND tc.table_schema = kcu.table_schema
            WHERE tc.constraint_type = 'PRIMARY KEY'
              AND tc.table_schema = %s
              AND tc.table_name = %s
            ORDER BY kcu.ordinal_position
            """,
            schema,
            name,
        )
        return [row["column_name"] for row in rows]

    def _table_exists(self, name: str) -> bool:
        schema, table = self._split_name(name)
        row = self.query_one(
            "SELECT 1 AS cnt FROM information_schema.tables "
            "WHERE table_schema = %s AND table_name = %s",
            schema,
            table,
        )
        return row is not None

    def _sequence_exists(self, name: str) -> bool:
        schema, sequence = self._split_name(name)
        row = self.query_one(
            "SELECT 1 AS cnt FROM pg_class c JOIN pg_namespace n ON n.oid = c.relnamespace "
            "WHERE c.relkind = 'S' AND n.nspname = %s AND c.relname = %s",
            schema,
            sequence,
        )
        return row is not None

    def reset_sequence(self, name: str) -> None:
        validate_schema_table(name)
        self.execute(f"ALTER SEQUENCE {name} RESTART WITH 1")

    def fetch_lob(
        self,
        table: str,
        column: str,
        identifying_fields: Mapping[str, Any],
        size_column: str | None = None,
    ) -> bytes | None:
        """Read the large object whose oid is stored in ``column``."""
        sql, params = build_select(table, [column], identifying_fields, self.placeholder)
        row = self.query_one(sql, *params)
        if row is None or row[column.lower()] is None:
            return None
        oid = int(row[column.lower()])

        handle = self.open()
        handle.autocommit = False
        try:
            lob = handle.lobject(oid, "rb")
            try:
                content = lob.read()
            finally:
                lob.close()
            handle.commit()
        except psycopg2.Error as e:
            handle.rollback()
            raise SqlExecutionError(f"Cannot read large object {oid} of {table}.{column}: {e}") from e
        finally:
            handle.autocommit = True
        return content

    def write_lob(
        self,
        table: str,
        column: str,
        content: bytes | None,
        identifying_fields: Mapping[str, Any],
        size_column: str | None = None,
    ) -> None:
        """Store ``content`` as a new large object and record its oid and size on the row."""
        content = content or b""
        handle = self.open()
        handle.autocommit = False
        try:
            lob = handle.lobject(0, "wb")
            try:
                lob.write(content)
                oid = lob.oid
            finally:
                lob.close()
            handle.commit()
        except psycopg2.Error as e:
            handle.rollback()
            raise SqlExecutionError(f"Cannot write large object for {table}.{column}: {e}") from e
        finally:
            handle.autocommit = True

        sql, params = build_lob_update(
            table,
            column,
            oid,
            identifying_fields,
            size_column=size_column,
            size=len(content),
            placeholder=self.placeholder,
        )
        self.execute(sql, *params)
