"""
Splitting of schema and data scripts into executable statements.

Scripts are split on semicolons. Procedural blocks (anything containing a
BEGIN word) are re-assembled until a piece ending in END, so their inner
statements stay together.
"""

import re

CREATE_LABEL = re.compile(r"create\s+(\w+\s+\w+)", re.IGNORECASE)
BLOCK_BEGIN = re.compile(r"\bbegin\b", re.IGNORECASE)
BLOCK_END = re.compile(r"\bend\s*$", re.IGNORECASE)
TABLE_LABEL = re.compile(r"^table\s+([\w.$#]+)$", re.IGNORECASE)
SEQUENCE_LABEL = re.compile(r"^sequence\s+([\w.$#]+)$", re.IGNORECASE)
WORD = re.compile(r"\w")
ROW_TERMINATOR = re.compile(r"\)\W*;")


def objects_to_create(sql: str) -> list[tuple[str | int, str]]:
    """
    Split a schema script into labelled statements.

    Args:
        sql: Script text

    Returns:
        (label, statement) pairs in script order. The label is the two words
        after CREATE (e.g. ``"TABLE emp"``, ``"SEQUENCE emp_seq"``), or an
        increasing integer for statements without one.

    Example:
        >>> objects_to_create("CREATE TABLE emp (id INT);\\nCREATE SEQUENCE emp_seq;")
        [('TABLE emp', 'CREATE TABLE emp (id INT)'), ('SEQUENCE emp_seq', 'CREATE SEQUENCE emp_seq')]
    """
    result: list[tuple[str | int, str]] = []
    ordinal = 0
    block: list[str] = []

    for piece in sql.split(";"):
        if not WORD.search(piece):
            continue

        if block:
            block.append(piece)
            if not BLOCK_END.search(piece):
                continue
            statement = ";".join(block) + ";"
            block = []
        elif BLOCK_BEGIN.search(piece) and not BLOCK_END.search(piece):
            block.append(piece)
            continue
        elif BLOCK_BEGIN.search(piece):
            statement = piece + ";"
        else:
            statement = piece

        statement = statement.lstrip()
        match = CREATE_LABEL.search(statement)
        if match:
            label: str | int = " ".join(match.group(1).split())
        else:
            label = ordinal
            ordinal += 1
        result.append((label, statement))

    return result


def drop_statement(label: str | int) -> tuple[str, str, str] | None:
    """
    Describe how to drop a labelled object.

    Returns:
        (kind, name, DROP statement) for ``TABLE``/``SEQUENCE`` labels, None otherwise
    """
    if isinstance(label, int):
        return None
    match = TABLE_LABEL.match(label)
    if match:
        return "table", match.group(1), f"DROP {label}"
    match = SEQUENCE_LABEL.match(label)
    if match:
        return "sequence", match.group(1), f"DROP {label}"
    return None


def rows_to_insert(sql: str) -> list[str]:
    """
    Split a data script into statements ending in ``)``.

    Example:
        >>> rows_to_insert("INSERT INTO dept VALUES (10, 'HR');\\nINSERT INTO dept VALUES (20, 'IT');")
        ["INSERT INTO dept VALUES (10, 'HR')", "INSERT INTO dept VALUES (20, 'IT')"]
    """
    return [piece.strip() + ")" for piece in ROW_TERMINATOR.split(sql) if WORD.search(piece)]
