"""Deletion planning: which tables to clear before a dataset is loaded."""

from dbunit.codec import normalize_row
from dbunit.types import Dataset, LoadStrategy


def empty_tables_to_delete(dataset: Dataset) -> list[str]:
    """
    Return the tables marked for deletion by an empty row, in first-seen order.

    Example:
        >>> empty_tables_to_delete([("emp", {}), ("dept", {"deptno": 10}), ("emp", None)])
        ['emp']
    """
    tables: list[str] = []
    for table, row in dataset:
        if not normalize_row(row) and table not in tables:
            tables.append(table)
    return tables


def tables_to_delete(dataset: Dataset, strategy: LoadStrategy | str) -> list[str]:
    """
    Compute the ordered list of tables to clear before loading ``dataset``.

    Tables marked by an empty row always come first. REFRESH deletes only
    those; INSERT then adds every other table of the dataset in reverse
    order of its last occurrence, so child tables listed after their
    parents are cleared first.

    Args:
        dataset: Ordered (table, row) pairs
        strategy: Active load strategy

    Returns:
        Table names, each at most once

    Example:
        >>> tables_to_delete(
        ...     [("t1", {}), ("t5", {}), ("t1", {"a": 1}), ("t2", {"a": 1}), ("t5", {"a": 1})],
        ...     LoadStrategy.INSERT,
        ... )
        ['t1', 't5', 't2']
    """
    pairs = list(dataset)
    tables = empty_tables_to_delete(pairs)
    if LoadStrategy.parse(strategy) is LoadStrategy.REFRESH:
        return tables

    seen = set(tables)
    for table, _ in reversed(pairs):
        if table not in seen:
            seen.add(table)
            tables.append(table)
    return tables
