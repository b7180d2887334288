"""
Database connections for dataset loading and verification.

The PostgreSQL and SQL Server adapters live in their own modules and are
imported on demand, so their native drivers are only needed when used.
"""

from dbunit.connection.base import Connection
from dbunit.connection.registry import ConnectionRegistry, connections
from dbunit.connection.sqlite import SQLiteConnection

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "SQLiteConnection",
    "connections",
]
