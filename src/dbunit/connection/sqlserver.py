"""SQL Server connection, backed by pyodbc."""

import pyodbc

from dbunit.connection.base import Connection
from dbunit.utils.sql_safety import validate_schema_table


class SQLServerConnection(Connection):
    """Connection to a SQL Server database. LOBs are stored inline (varbinary)."""

    placeholder = "?"
    db_type = "sqlserver"
    driver_errors = (pyodbc.Error,)

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        driver: str = "ODBC Driver 18 for SQL Server",
        name: str = "default",
        timeout: int = 10,
    ):
        """
        Initialize SQL Server connection.

        Args:
            host: SQL Server host
            port: SQL Server port
            database: Database name
            user: Username
            password: Password
            driver: ODBC driver name
            name: Logical connection name
            timeout: Login timeout in seconds
        """
        super().__init__(name)
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.driver = driver
        self.timeout = timeout

    def connection_string(self) -> str:
        return (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.host},{self.port};"
            f"DATABASE={self.database};"
            f"UID={self.user};"
            f"PWD={self.password};"
            f"TrustServerCertificate=yes;"
            f"Encrypt=yes;"
        )

    def _connect(self) -> pyodbc.Connection:
        conn = pyodbc.connect(self.connection_string(), timeout=self.timeout)
        conn.autocommit = True
        return conn

    @staticmethod
    def _split_name(name: str) -> tuple[str, str]:
        validate_schema_table(name)
        schema, _, table = name.rpartition(".")
        return schema or "dbo", table

    def _primary_key_columns(self, table: str) -> list[str]:
        schema, name = self._split_name(table)
        rows = self.query_cursor(
            """
            SELECT kcu.COLUMN_NAME AS column_name
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
            JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
              ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
             AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
            WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
              AND tc.TABLE_SCHEMA = ?
              AND tc.TABLE_NAME = ?
            ORDER BY kcu.ORDINAL_POSITION
            """,
            schema,
            name,
        )
        return [row["column_name"] for row in rows]

    def _table_exists(self, name: str) -> bool:
        schema, table = self._split_name(name)
        row = self.query_one(
            "SELECT 1 AS cnt FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?",
            schema,
            table,
        )
        return row is not None

    def _sequence_exists(self, name: str) -> bool:
        schema, sequence = self._split_name(name)
        row = self.query_one(
            "SELECT 1 AS cnt FROM sys.sequences WHERE SCHEMA_NAME(schema_id) = ? AND name = ?",
            schema,
            sequence,
        )
        return row is not None

    def reset_sequence(self, name: str) -> None:
        validate_schema_table(name)
        self.execute(f"ALTER SEQUENCE {name} RESTART WITH 1")
