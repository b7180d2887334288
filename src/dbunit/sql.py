"""
SQL statement builders for dataset loading and verification.

Each builder validates the table and column names it interpolates and
returns the statement together with the parameters to bind, in order.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from dbunit.utils.sql_safety import validate_identifier, validate_identifiers, validate_schema_table


def build_where(
    fields: Mapping[str, Any],
    placeholder: str = "?",
    sort: bool = False,
) -> tuple[str, list[Any]]:
    """
    Build an equality WHERE clause (without the WHERE keyword).

    Args:
        fields: Column -> value pairs to match
        placeholder: Bind parameter marker of the target driver
        sort: Order conditions by column name instead of mapping order

    Returns:
        Tuple of (clause, params)

    Raises:
        ValueError: If there are no fields to match on
    """
    if not fields:
        raise ValueError("Cannot build a WHERE clause without columns")

    columns = sorted(fields) if sort else list(fields)
    validate_identifiers(columns)
    clause = " AND ".join(f"{column} = {placeholder}" for column in columns)
    return clause, [fields[column] for column in columns]


def build_insert(
    table: str, fields: Mapping[str, Any], placeholder: str = "?"
) -> tuple[str, list[Any]]:
    """Build a parameterized INSERT over every field of the row."""
    validate_schema_table(table)
    columns = validate_identifiers(fields)
    sql = "INSERT INTO {} ({}) VALUES ({})".format(
        table,
        ", ".join(columns),
        ", ".join([placeholder] * len(columns)),
    )
    return sql, [fields[column] for column in columns]


def build_update(
    table: str,
    fields: Mapping[str, Any],
    key_values: Mapping[str, Any],
    placeholder: str = "?",
) -> tuple[str, list[Any]]:
    """
    Build a parameterized UPDATE setting every field of the row.

    The row is identified by ``key_values``, matched in sorted column order.
    """
    validate_schema_table(table)
    columns = validate_identifiers(fields)
    set_clause = ", ".join(f"{column} = {placeholder}" for column in columns)
    where_clause, where_params = build_where(key_values, placeholder, sort=True)
    sql = f"UPDATE {table} SET {set_clause} WHERE {where_clause}"
    return sql, [fields[column] for column in columns] + where_params


def build_exists(
    table: str, fields: Mapping[str, Any], placeholder: str = "?"
) -> tuple[str, list[Any]]:
    """Build a query returning ``cnt = 1`` when a row matches every field."""
    validate_schema_table(table)
    where_clause, params = build_where(fields, placeholder, sort=True)
    return f"SELECT 1 AS cnt FROM {table} WHERE {where_clause}", params


def build_select(
    table: str,
    columns: Iterable[str] = (),
    conditions: Mapping[str, Any] | None = None,
    placeholder: str = "?",
) -> tuple[str, list[Any]]:
    """Build a SELECT of ``columns`` (all columns when empty), optionally filtered."""
    validate_schema_table(table)
    column_list = ", ".join(validate_identifiers(columns)) or "*"
    sql = f"SELECT {column_list} FROM {table}"
    if not conditions:
        return sql, []
    where_clause, params = build_where(conditions, placeholder)
    return f"{sql} WHERE {where_clause}", params


def build_count(table: str) -> str:
    """Build a row count query exposing the count as ``cnt``."""
    return f"SELECT COUNT(*) AS cnt FROM {validate_schema_table(table)}"


def build_delete(table: str) -> str:
    """Build an unfiltered DELETE for ``table``."""
    return f"DELETE FROM {validate_schema_table(table)}"


def build_lob_update(
    table: str,
    column: str,
    value: Any,
    identifying_fields: Mapping[str, Any],
    size_column: str | None = None,
    size: int = 0,
    placeholder: str = "?",
) -> tuple[str, list[Any]]:
    """Build the UPDATE storing a LOB value (and its size) on one row."""
    validate_schema_table(table)
    assignments = [f"{validate_identifier(column)} = {placeholder}"]
    params: list[Any] = [value]
    if size_column:
        assignments.append(f"{validate_identifier(size_column)} = {placeholder}")
        params.append(size)
    where_clause, where_params = build_where(identifying_fields, placeholder)
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {where_clause}"
    return sql, params + where_params
