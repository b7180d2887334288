"""
Database test fixtures: load datasets into tables and verify table contents.

Typical use:
    from dbunit import DBUnit, SQLiteConnection, connections

    connections.register(SQLiteConnection("test.db", name="test"))
    dbunit = DBUnit("test")
    dbunit.load([("emp", {}), ("emp", {"empno": 1, "ename": "scott"})])
    assert dbunit.verify([("emp", {"empno": 1, "ename": "scott"})]) is None
"""

from dbunit.comparator import DatasetComparator, compare_datasets, format_values
from dbunit.connection import Connection, ConnectionRegistry, SQLiteConnection, connections
from dbunit.engine import DBUnit
from dbunit.errors import (
    ConfigurationError,
    DatasetFileError,
    DatasetFormatError,
    DBUnitError,
    SchemaIntrospectionError,
    SqlExecutionError,
)
from dbunit.types import LoadStrategy, LobRef, Predicate, render_value

__version__ = "1.0.0"

__all__ = [
    "DBUnit",
    "DatasetComparator",
    "compare_datasets",
    "format_values",
    "render_value",
    "Connection",
    "ConnectionRegistry",
    "SQLiteConnection",
    "connections",
    "LoadStrategy",
    "LobRef",
    "Predicate",
    "DBUnitError",
    "ConfigurationError",
    "DatasetFileError",
    "DatasetFormatError",
    "SchemaIntrospectionError",
    "SqlExecutionError",
]
