"""
Dataset generation from live data.

Turns the results of SELECT statements into an XML dataset document or a
Python dataset literal, as a starting point for new test fixtures.

Example:
    >>> generator = DatasetGenerator(
    ...     connection,
    ...     datasets={"emp": "SELECT * FROM emp", "dept": "SELECT * FROM dept"},
    ...     datasets_order=["dept", "emp"],
    ... )
    >>> print(generator.xml())
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from lxml import etree

from dbunit.connection.base import Connection
from dbunit.types import render_value

logger = logging.getLogger(__name__)


class DatasetGenerator:
    """Builds datasets from named SELECT statements."""

    def __init__(
        self,
        connection: Connection,
        datasets: Mapping[str, str],
        datasets_order: Sequence[str] | None = None,
    ):
        """
        Initialize the generator.

        Args:
            connection: Connection to query
            datasets: Table name -> SELECT statement producing its rows
            datasets_order: Order of tables in the output (default: mapping order)
        """
        self.connection = connection
        self.datasets = dict(datasets)
        self.datasets_order = list(datasets_order or self.datasets)

    def select_dataset(self, name: str) -> list[dict[str, Any]]:
        """Run the statement registered as ``name`` and return its rows."""
        return list(self.connection.query_cursor(self.datasets[name]))

    def rows(self) -> list[tuple[str, dict[str, Any]]]:
        """Return every (table, row) pair in output order."""
        result = []
        for name in self.datasets_order:
            rows = self.select_dataset(name)
            logger.debug(f"Generated {len(rows)} rows for {name}")
            result.extend((name, row) for row in rows)
        return result

    def xml(self) -> str:
        """
        Render the datasets as an XML dataset document.

        NULL columns are left out; binary columns cannot be expressed as
        attributes and are skipped.
        """
        root = etree.Element("dataset")
        for table, row in self.rows():
            element = etree.SubElement(root, table)
            for column, value in row.items():
                if value is None or isinstance(value, (bytes, bytearray, memoryview)):
                    continue
                element.set(column, _text(value))

        return etree.tostring(
            root, xml_declaration=True, encoding="UTF-8", pretty_print=True
        ).decode("utf-8")

    def python(self) -> str:
        """Render the datasets as a Python ``dataset = [...]`` literal."""
        lines = ["dataset = ["]
        for table, row in self.rows():
            fields = ", ".join(f"{column!r}: {_literal(value)}" for column, value in row.items())
            lines.append(f"    ({table!r}, {{{fields}}}),")
        lines.append("]")
        return "\n".join(lines) + "\n"


def _text(value: Any) -> str:
    if isinstance(value, (float, Decimal)):
        return render_value(value) or "0"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat(sep=" ") if isinstance(value, datetime) else value.isoformat()
    return str(value)


def _literal(value: Any) -> str:
    if value is None or isinstance(value, (bool, int, str, bytes)):
        return repr(value)
    if isinstance(value, (bytearray, memoryview)):
        return repr(bytes(value))
    return repr(_text(value))
