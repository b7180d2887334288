"""
Row decoding: splits a dataset row into scalar fields and LOB references.

Scalar fields include predicates (callables wrapped in Predicate). A value
is a LOB reference only when it is a LobRef or a mapping using the LobRef
keys (``file``, ``content``, ``size_column``). LOB files are read eagerly so
that a missing file aborts the operation before any row is written.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from dbunit.errors import DatasetFileError
from dbunit.types import LobRef, Predicate, RowSpec

logger = logging.getLogger(__name__)

LOB_KEYS = frozenset({"file", "content", "size_column"})


def normalize_row(row: RowSpec) -> dict[str, Any]:
    """
    Turn any accepted row shape into an ordered dict.

    Mappings keep their order; sequences of ``(column, value)`` pairs are
    folded in order, so a repeated column keeps its last value. None and
    empty containers yield an empty dict.
    """
    if not row:
        return {}
    if isinstance(row, Mapping):
        return dict(row)
    return dict(_pairs(row))


def _pairs(row: Iterable[Any]) -> Iterable[tuple[str, Any]]:
    for item in row:
        column, value = item
        yield column, value


def load_file_content(path: str | Path) -> bytes:
    """
    Read a LOB source file.

    Raises:
        DatasetFileError: If the file cannot be read
    """
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise DatasetFileError(f"Cannot open LOB file {path}: {e}") from e


def _is_lob_mapping(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and set(value) <= LOB_KEYS


def _as_lob(value: LobRef | Mapping[str, Any]) -> LobRef:
    lob = value if isinstance(value, LobRef) else LobRef.from_mapping(value)
    if lob.file is not None:
        content = load_file_content(lob.file)
        lob = LobRef(file=lob.file, content=content, size_column=lob.size_column)
    return lob


def split_row(row: RowSpec) -> tuple[dict[str, Any], dict[str, LobRef]]:
    """
    Split a row into scalar fields and LOB fields.

    Args:
        row: Row in any accepted shape

    Returns:
        Tuple of (fields, lobs); both keep the row's column order, with
        column names lowercased to match live rows. LOB references come
        back with their file content loaded.

    Raises:
        DatasetFileError: If a referenced LOB file cannot be read
    """
    fields: dict[str, Any] = {}
    lobs: dict[str, LobRef] = {}

    for column, value in normalize_row(row).items():
        column = column.lower()
        if isinstance(value, LobRef) or _is_lob_mapping(value):
            lobs[column] = _as_lob(value)
        elif isinstance(value, Predicate):
            fields[column] = value
        elif callable(value):
            fields[column] = Predicate(value)
        else:
            fields[column] = value

    return fields, lobs
