"""
Exception hierarchy for dataset loading and verification.

Operational failures are raised; data mismatches found by verify() are
returned as a difference report instead.
"""


class DBUnitError(Exception):
    """Base exception for all dbunit errors."""

    pass


class ConfigurationError(DBUnitError):
    """Raised when a required setting or connection is missing or invalid."""

    pass


class DatasetFileError(DBUnitError, OSError):
    """Raised when a schema script, XML dataset or LOB source file cannot be read."""

    pass


class DatasetFormatError(DBUnitError, ValueError):
    """Raised when an XML dataset document is malformed."""

    pass


class SchemaIntrospectionError(DBUnitError):
    """Raised when the database cannot report key columns or object existence."""

    pass


class SqlExecutionError(DBUnitError):
    """Raised when a statement or query fails on the database."""

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql
