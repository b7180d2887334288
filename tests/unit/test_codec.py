"""
Unit tests for row decoding.

Tests row normalization, scalar/LOB splitting and eager LOB file loading.
"""

from pathlib import Path

import pytest

from dbunit.codec import load_file_content, normalize_row, split_row
from dbunit.errors import DatasetFileError
from dbunit.types import LobRef, Predicate


class TestNormalizeRow:
    """Test normalize_row with the accepted row shapes."""

    def test_mapping_keeps_order(self):
        """Test that mappings keep their column order."""
        assert list(normalize_row({"b": 1, "a": 2})) == ["b", "a"]

    def test_pairs_later_duplicate_wins(self):
        """Test that a repeated column keeps its last value."""
        row = normalize_row([("ename", "scott"), ("job", "clerk"), ("ename", "john")])

        assert row == {"ename": "john", "job": "clerk"}
        assert list(row) == ["ename", "job"]

    @pytest.mark.parametrize("row", [None, {}, [], ()])
    def test_empty_rows(self, row):
        """Test that empty shapes normalize to an empty dict."""
        assert normalize_row(row) == {}


class TestSplitRow:
    """Test split_row."""

    def test_scalars_only(self):
        """Test a row without LOBs."""
        fields, lobs = split_row({"empno": 1, "ename": "scott", "comm": None})

        assert fields == {"empno": 1, "ename": "scott", "comm": None}
        assert lobs == {}

    def test_column_names_are_lowercased(self):
        """Test that column names match the lowercase live row keys."""
        fields, _ = split_row({"EMPNO": 1, "Ename": "scott"})

        assert list(fields) == ["empno", "ename"]

    def test_callable_becomes_predicate(self):
        """Test that bare callables are wrapped."""
        fields, lobs = split_row({"job": lambda value: value == "clerk"})

        assert isinstance(fields["job"], Predicate)
        assert fields["job"]("clerk") is True
        assert lobs == {}

    def test_predicate_passes_through(self):
        """Test that Predicate instances are kept as they are."""
        predicate = Predicate(bool)
        fields, _ = split_row({"job": predicate})

        assert fields["job"] is predicate

    def test_inline_lob_content(self):
        """Test LobRef with in-memory content."""
        fields, lobs = split_row(
            {"id": 1, "blob_content": LobRef(content=b"abc", size_column="doc_size")}
        )

        assert fields == {"id": 1}
        assert lobs["blob_content"].content == b"abc"
        assert lobs["blob_content"].size_column == "doc_size"

    def test_lob_mapping_loads_file(self, data_dir: Path):
        """Test that a {file, size_column} mapping is read eagerly."""
        path = data_dir / "moon.bin"
        _, lobs = split_row(
            [("id", 1), ("blob_content", {"file": str(path), "size_column": "doc_size"})]
        )

        assert lobs["blob_content"].content == path.read_bytes()
        assert lobs["blob_content"].file == str(path)

    def test_plain_mapping_value_is_not_a_lob(self):
        """Test that mappings with other keys stay scalar values."""
        fields, lobs = split_row({"payload": {"kind": "json"}})

        assert fields == {"payload": {"kind": "json"}}
        assert lobs == {}

    def test_missing_lob_file_raises(self, tmp_path: Path):
        """Test that an unreadable LOB file aborts the split."""
        with pytest.raises(DatasetFileError, match="Cannot open LOB file"):
            split_row({"blob_content": LobRef(file=str(tmp_path / "missing.bin"))})


class TestLoadFileContent:
    """Test load_file_content."""

    def test_reads_bytes(self, tmp_path: Path):
        """Test reading a binary file."""
        path = tmp_path / "chart.bin"
        path.write_bytes(b"\x00\x01\x02")

        assert load_file_content(path) == b"\x00\x01\x02"

    def test_error_is_oserror(self, tmp_path: Path):
        """Test that DatasetFileError is also an OSError."""
        with pytest.raises(OSError):
            load_file_content(tmp_path / "missing.bin")
