"""
XML dataset documents.

A document holds one element per row, in order, under a ``dataset`` root:

    <dataset load_strategy="INSERT_LOAD_STRATEGY" reset_sequences="emp_seq">
        <emp empno="1" ename="scott" deptno="10" />
        <bonus />
        <image id="1" name="moon">
            <blob_content file="moon.bin" size_column="doc_size" />
        </image>
    </dataset>

Attributes become column values; nested elements are LOB references; an
element with neither marks its table for deletion. LOB file paths are
resolved relative to the document.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from lxml import etree

from dbunit.errors import DatasetFileError, DatasetFormatError
from dbunit.types import LoadStrategy, LobRef

logger = logging.getLogger(__name__)

ROOT_TAG = "dataset"
ROOT_ATTRIBUTES = {"load_strategy": "INSERT_LOAD_STRATEGY", "reset_sequences": None}
LOB_ATTRIBUTES = frozenset({"file", "size_column"})


@dataclass
class XmlDataset:
    """Parsed dataset document: root properties plus ordered (table, row) pairs."""

    properties: dict[str, Any] = field(default_factory=dict)
    dataset: list[tuple[str, list[tuple[str, Any]]]] = field(default_factory=list)

    @property
    def load_strategy(self) -> LoadStrategy:
        return LoadStrategy.parse(self.properties.get("load_strategy") or "INSERT")

    @property
    def reset_sequences(self) -> list[str]:
        value = self.properties.get("reset_sequences") or ""
        return [name.strip() for name in value.split(",") if name.strip()]


def _lob_reference(element: etree._Element, table: str, base_dir: Path | None) -> LobRef:
    unknown = set(element.attrib) - LOB_ATTRIBUTES
    if unknown:
        raise DatasetFormatError(
            f"Unknown attribute(s) {sorted(unknown)} on LOB element {table}.{element.tag}"
        )

    file = element.get("file")
    if file is not None and base_dir is not None and not Path(file).is_absolute():
        file = str(base_dir / file)

    text = (element.text or "").strip()
    return LobRef(
        file=file,
        content=text.encode("utf-8") if text and file is None else None,
        size_column=element.get("size_column"),
    )


def _parse_root(root: etree._Element, base_dir: Path | None) -> XmlDataset:
    if root.tag != ROOT_TAG:
        raise DatasetFormatError(f"Expected <{ROOT_TAG}> root element, found <{root.tag}>")

    unknown = set(root.attrib) - set(ROOT_ATTRIBUTES)
    if unknown:
        raise DatasetFormatError(f"Unknown attribute(s) on <{ROOT_TAG}>: {sorted(unknown)}")

    properties = {name: root.get(name, default) for name, default in ROOT_ATTRIBUTES.items()}
    try:
        LoadStrategy.parse(properties["load_strategy"])
    except ValueError as e:
        raise DatasetFormatError(str(e)) from e

    dataset = []
    for element in root.iterchildren(tag=etree.Element):
        table = element.tag
        row: list[tuple[str, Any]] = [(name, element.get(name)) for name in sorted(element.attrib)]
        for child in element.iterchildren(tag=etree.Element):
            row.append((child.tag, _lob_reference(child, table, base_dir)))
        dataset.append((table, row))

    return XmlDataset(properties=properties, dataset=dataset)


def parse_dataset(content: str | bytes, base_dir: str | Path | None = None) -> XmlDataset:
    """
    Parse a dataset document.

    Args:
        content: Document text or bytes
        base_dir: Directory relative LOB file paths are resolved against

    Returns:
        Parsed dataset

    Raises:
        DatasetFormatError: If the document is not a well-formed dataset
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as e:
        raise DatasetFormatError(f"Malformed dataset document: {e}") from e
    return _parse_root(root, Path(base_dir) if base_dir is not None else None)


def parse_dataset_file(path: str | Path) -> XmlDataset:
    """
    Parse a dataset document from a file.

    Raises:
        DatasetFileError: If the file cannot be read
        DatasetFormatError: If the document is not a well-formed dataset
    """
    path = Path(path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise DatasetFileError(f"Cannot open dataset file {path}: {e}") from e

    logger.debug(f"Parsing dataset file {path}")
    return parse_dataset(content, base_dir=path.parent)
