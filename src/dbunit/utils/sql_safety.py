"""
SQL safety utilities for generated statements.

Table and column names from datasets are interpolated into SQL text, so
they are validated here; values are always bound as parameters.
"""

import re

# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$#]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_$#]*(\.[a-zA-Z_][a-zA-Z0-9_$#]*)?$"
)


def validate_identifier(identifier: str) -> str:
    """
    Validate a column or sequence name.

    Args:
        identifier: The identifier to validate

    Returns:
        The identifier, unchanged

    Raises:
        ValueError: If the identifier contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not VALID_IDENTIFIER.fullmatch(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, '_', '$' and '#' are allowed, "
            "and it must start with a letter or underscore."
        )
    return identifier


def validate_schema_table(schema_table: str) -> str:
    """
    Validate a table name with an optional schema prefix.

    Args:
        schema_table: Table name, e.g. "emp" or "hr.emp"

    Returns:
        The table name, unchanged

    Raises:
        ValueError: If the name format is invalid
    """
    if not schema_table:
        raise ValueError("Table name cannot be empty")

    if not VALID_SCHEMA_TABLE.fullmatch(schema_table):
        raise ValueError(
            f"Invalid table name: {schema_table!r}. "
            "Expected 'table' or 'schema.table' made of ASCII identifiers."
        )
    return schema_table


def validate_identifiers(identifiers) -> list[str]:
    """Validate every identifier of an iterable and return them as a list."""
    return [validate_identifier(identifier) for identifier in identifiers]
