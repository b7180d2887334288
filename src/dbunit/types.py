"""
Core value types for datasets.

A dataset is an ordered sequence of (table, row) pairs. Row values are
either plain scalars, predicates evaluated against the live value during
verification, or references to large objects (LOBs).
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class LoadStrategy(str, Enum):
    """
    Strategy used to load and verify datasets.

    INSERT deletes every table of the dataset before inserting its rows, and
    verification also checks the exact number of rows per table.
    REFRESH merges rows (update or insert) and verifies only listed rows.
    """

    INSERT = "INSERT"
    REFRESH = "REFRESH"

    @classmethod
    def parse(cls, name: "str | LoadStrategy") -> "LoadStrategy":
        """
        Parse a strategy name.

        Accepts INSERT, REFRESH and the long forms INSERT_LOAD_STRATEGY and
        REFRESH_LOAD_STRATEGY, case-insensitively.

        Raises:
            ValueError: If the name is not a known strategy
        """
        if isinstance(name, LoadStrategy):
            return name

        normalized = str(name).strip().upper()
        if normalized.endswith("_LOAD_STRATEGY"):
            normalized = normalized[: -len("_LOAD_STRATEGY")]

        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown load strategy: {name!r}") from None


@dataclass(frozen=True)
class Predicate:
    """Callable check applied to a live column value during verification."""

    func: Callable[[Any], Any]

    def __call__(self, value: Any) -> bool:
        return bool(self.func(value))


@dataclass
class LobRef:
    """
    Reference to large object content.

    Content is read from ``file`` when given, otherwise taken from
    ``content``. ``size_column`` names the column holding the LOB size.
    """

    file: str | None = None
    content: bytes | None = None
    size_column: str | None = None

    @classmethod
    def from_mapping(cls, attributes: Mapping[str, Any]) -> "LobRef":
        content = attributes.get("content")
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(
            file=attributes.get("file"),
            content=content,
            size_column=attributes.get("size_column"),
        )


RowSpec = Mapping[str, Any] | Iterable[tuple[str, Any]] | None
Dataset = Iterable[tuple[str, RowSpec]]


def render_value(value: Any) -> str:
    """
    Render a value to the string form used for comparison and row keys.

    Empty values (None, '', 0 and "0") render as ''. Integral floats
    render without a fraction (``3.0`` -> ``"3"``), other floats with 15
    significant digits. Decimals keep their scale, as drivers return
    NUMERIC columns (``Decimal("1250.50")`` -> ``"1250.50"``).
    """
    if isinstance(value, Decimal):
        value = str(value)
    if not value or value == "0":
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return "%.15g" % value
    return str(value)
