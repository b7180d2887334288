"""
Unit tests for dataset verification.

Tests field comparison and formatting, snapshot matching by primary key
and by value signature, LOB checks and row count checks.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from dbunit.comparator import DatasetComparator, compare_datasets, format_values
from dbunit.connection.base import Connection
from dbunit.types import LobRef, Predicate


def make_connection(primary_keys: dict[str, list[str]] | None = None) -> MagicMock:
    connection = MagicMock(spec=Connection)
    connection.placeholder = "?"
    connection.db_type = "sqlite"
    keys = primary_keys or {}
    connection.primary_key_columns.side_effect = lambda table: keys.get(table, [])
    return connection


class TestFormatValues:
    """Test format_values."""

    def test_format(self):
        """Test the bracketed key => 'value' form."""
        assert format_values({"key1": 1, "key2": 3}, ["key1", "key2"]) == "[ key1 => '1' key2 => '3' ]"

    def test_missing_and_null_render_empty(self):
        """Test that absent and NULL values render as ''."""
        assert format_values({"key1": None}, ["key1", "key2"]) == "[ key1 => '' key2 => '' ]"

    def test_no_row(self):
        """Test formatting against no row at all."""
        assert format_values(None, ["a"]) == "[ a => '' ]"


class TestCompareDatasets:
    """Test compare_datasets."""

    def test_identical_rows(self):
        """Test that equal rows match."""
        row = {"key1": 1, "key2": "abc"}

        assert compare_datasets(dict(row), row, "t") is None

    def test_missing_live_column(self):
        """Test a column absent from the live row."""
        result = compare_datasets({"key1": 1}, {"key1": 1, "key2": 3}, "t")

        assert result == (
            "found difference in t key2:\n"
            "  [ key1 => '1' key2 => '3' ]\n"
            "  [ key1 => '1' key2 => '' ]"
        )

    def test_integral_float_equals_int(self):
        """Test that 3.0 and 3 render alike."""
        assert compare_datasets({"key1": 1, "key2": 3}, {"key1": 1, "key2": 3.0}, "t") is None

    def test_numeric_string_equals_number(self):
        """Test that '3' and 3 render alike."""
        assert compare_datasets({"key2": 3}, {"key2": "3"}, "t") is None

    def test_differently_formatted_strings_differ(self):
        """Test that '3.00' and 3 do not match."""
        assert compare_datasets({"key2": 3}, {"key2": "3.00"}, "t") is not None

    def test_null_equals_empty_string(self):
        """Test that NULL and '' are equal after normalization."""
        assert compare_datasets({"comm": None}, {"comm": ""}, "t") is None

    @pytest.mark.parametrize("live", [0, 0.0, Decimal(0), None])
    def test_zero_string_equals_zero(self, live):
        """Test that a '0' read from a dataset matches a zero or NULL column."""
        assert compare_datasets({"deptno": live}, {"deptno": "0"}, "t") is None

    def test_decimal_keeps_scale(self):
        """Test that NUMERIC values compare with their scale."""
        assert compare_datasets({"sal": Decimal("1250.50")}, {"sal": "1250.50"}, "t") is None
        assert compare_datasets({"sal": Decimal("1250.50")}, {"sal": "1250.5"}, "t") is not None

    def test_first_difference_only(self):
        """Test that only the first differing column is reported."""
        result = compare_datasets({"a": 1, "b": 1}, {"a": 2, "b": 2}, "t")

        assert result.startswith("found difference in t a:")

    def test_failing_predicate_reports_live_row(self):
        """Test predicate failures show the live row only."""
        expected = {"ename": "mark", "job": Predicate(lambda value: "sales" in (value or ""))}
        live = {"ename": "mark", "job": "engineer"}

        result = compare_datasets(live, expected, "emp")

        assert result == "found difference in emp job:\n  [ ename => 'mark' job => 'engineer' ]"

    def test_passing_predicate(self):
        """Test predicate receiving the live value."""
        expected = {"job": Predicate(lambda value: value.lower() == "sales assistant")}

        assert compare_datasets({"job": "Sales Assistant"}, expected, "emp") is None

    def test_columns_argument(self):
        """Test comparing a subset of columns."""
        assert compare_datasets({"a": 1, "b": 5}, {"a": 1, "b": 2}, "t", ["a"]) is None


class TestCompareRow:
    """Test DatasetComparator.compare_row against a snapshot."""

    def setup_method(self):
        """Set up test fixtures."""
        self.connection = make_connection()
        self.comparator = DatasetComparator(self.connection)

    def test_match_by_primary_key_consumes_row(self):
        """Test key match removes the live row."""
        snapshot = {"1": {"empno": 1, "ename": "scott"}, "2": {"empno": 2, "ename": "john"}}

        result = self.comparator.compare_row(snapshot, {"empno": "1", "ename": "scott"}, ["empno"], "emp")

        assert result is None
        assert list(snapshot) == ["2"]

    def test_key_match_with_difference(self):
        """Test that a key match with different values is reported and kept."""
        snapshot = {"1": {"empno": 1, "ename": "scott"}}

        result = self.comparator.compare_row(snapshot, {"empno": 1, "ename": "Scott"}, ["empno"], "emp")

        assert result.startswith("found difference in emp ename:")
        assert "1" in snapshot

    def test_missing_key(self):
        """Test a key absent from the snapshot."""
        result = self.comparator.compare_row({}, {"empno": 9, "ename": "x"}, ["empno"], "emp")

        assert result == "found difference in emp - missing entry: \n  [ empno => '9' ename => 'x' ]"

    def test_match_by_values_without_key(self):
        """Test value signature matching for keyless tables."""
        snapshot = {
            "__0": {"ename": "scott", "sal": 20},
            "__1": {"ename": "john", "sal": 30},
        }

        assert self.comparator.compare_row(snapshot, {"ename": "john", "sal": "30"}, [], "bonus") is None
        assert list(snapshot) == ["__0"]

    def test_value_match_cannot_be_reused(self):
        """Test that one live row cannot satisfy two expected rows."""
        snapshot = {"__0": {"ename": "scott"}}

        assert self.comparator.compare_row(snapshot, {"ename": "scott"}, [], "bonus") is None
        result = self.comparator.compare_row(snapshot, {"ename": "scott"}, [], "bonus")

        assert "missing entry" in result

    def test_value_match_checks_predicates(self):
        """Test that predicates must hold on a signature match."""
        snapshot = {
            "__0": {"ename": "mark", "job": "engineer"},
            "__1": {"ename": "mark", "job": "sales"},
        }
        expected = {"ename": "mark", "job": Predicate(lambda value: value == "sales")}

        assert self.comparator.compare_row(snapshot, expected, [], "emp") is None
        assert list(snapshot) == ["__0"]

    def test_incomplete_key_falls_back_to_values(self):
        """Test composite key with a missing value uses signature matching."""
        snapshot = {"1#2": {"empno": 1, "projno": 2, "leader": "Y"}}

        result = self.comparator.compare_row(
            snapshot, {"empno": 1, "leader": "Y"}, ["empno", "projno"], "emp_project"
        )

        assert result is None
        assert snapshot == {}

    def test_lob_difference_checked_first(self):
        """Test that a LOB difference is reported before scalar checks."""
        self.connection.fetch_lob.return_value = b"abd"
        snapshot = {"1": {"id": 1, "name": "other"}}
        lobs = {"blob_content": LobRef(content=b"abc", size_column="doc_size")}

        result = self.comparator.compare_row(snapshot, {"id": 1, "name": "moon"}, ["id"], "image", lobs)

        assert result == "found difference at LOB value image.blob_content: [ id => '1' ]"
        self.connection.fetch_lob.assert_called_once_with("image", "blob_content", {"id": 1}, "doc_size")

    def test_lob_length_difference(self):
        """Test LOB content of a different length."""
        self.connection.fetch_lob.return_value = b"abcd"
        lobs = {"blob_content": LobRef(content=b"abc")}

        result = self.comparator.compare_row({"1": {"id": 1}}, {"id": 1}, ["id"], "image", lobs)

        assert result.startswith("found difference at LOB value image.blob_content")

    def test_lob_equal(self):
        """Test identical LOB content."""
        self.connection.fetch_lob.return_value = b"abc"
        lobs = {"blob_content": LobRef(content=b"abc")}

        assert self.comparator.compare_row({"1": {"id": 1}}, {"id": 1}, ["id"], "image", lobs) is None


class TestValidateExpectedRow:
    """Test DatasetComparator.validate_expected_row (REFRESH strategy)."""

    def setup_method(self):
        """Set up test fixtures."""
        self.connection = make_connection()
        self.comparator = DatasetComparator(self.connection)

    def test_queries_by_primary_key(self):
        """Test the single-row query by key."""
        self.connection.query_one.return_value = {"empno": 1, "ename": "scott"}

        result = self.comparator.validate_expected_row({"empno": 1, "ename": "scott"}, ["empno"], "emp")

        assert result is None
        self.connection.query_one.assert_called_once_with(
            "SELECT empno, ename FROM emp WHERE empno = ?", 1
        )

    def test_queries_by_non_predicate_fields_without_key(self):
        """Test the condition columns of a keyless table."""
        self.connection.query_one.return_value = {"ename": "mark", "job": "sales"}
        expected = {"ename": "mark", "job": Predicate(lambda value: value == "sales")}

        result = self.comparator.validate_expected_row(expected, [], "bonus")

        assert result is None
        self.connection.query_one.assert_called_once_with(
            "SELECT ename, job FROM bonus WHERE ename = ?", "mark"
        )

    @pytest.mark.parametrize("live", [None, {"empno": None, "ename": None}])
    def test_missing_row(self, live):
        """Test no row, or a row of NULLs, is a missing entry."""
        self.connection.query_one.return_value = live

        result = self.comparator.validate_expected_row({"empno": 5}, ["empno"], "emp")

        assert result == "found difference in emp - missing entry: \n  [ empno => '5' ]"

    def test_row_without_key_values_is_missing(self):
        """Test that a keyed table is not searched by other fields."""
        self.connection.query_one.return_value = {"ename": "scott", "job": "analyst"}

        result = self.comparator.validate_expected_row(
            {"ename": "scott", "job": "analyst"}, ["empno"], "emp"
        )

        assert result == (
            "found difference in emp - missing entry: \n  [ ename => 'scott' job => 'analyst' ]"
        )
        self.connection.query_one.assert_not_called()

    def test_zero_primary_key(self):
        """Test a zero key given as a string locates the row."""
        self.connection.query_one.return_value = {"empno": 0, "ename": "scott"}

        result = self.comparator.validate_expected_row({"empno": "0", "ename": "scott"}, ["empno"], "emp")

        assert result is None
        self.connection.query_one.assert_called_once_with(
            "SELECT empno, ename FROM emp WHERE empno = ?", "0"
        )

    def test_value_difference(self):
        """Test a differing column."""
        self.connection.query_one.return_value = {"empno": 1, "ename": "john"}

        result = self.comparator.validate_expected_row({"empno": 1, "ename": "scott"}, ["empno"], "emp")

        assert result == (
            "found difference in emp ename:\n"
            "  [ empno => '1' ename => 'scott' ]\n"
            "  [ empno => '1' ename => 'john' ]"
        )


class TestVerifyStrategies:
    """Test whole-dataset verification against a mocked connection."""

    def test_insert_strategy_row_count(self):
        """Test that extra live rows are reported as a count difference."""
        connection = make_connection({"emp": ["empno"]})
        connection.query_cursor.return_value = iter(
            [{"empno": 1, "ename": "scott"}, {"empno": 2, "ename": "john"}]
        )
        connection.query_one.return_value = {"cnt": 2}

        result = DatasetComparator(connection).verify_insert_strategy(
            [("emp", {"empno": 1, "ename": "scott"})]
        )

        assert result == "found difference in number of the emp rows - has 2 rows, should have 1"
        connection.query_cursor.assert_called_once_with("SELECT empno, ename FROM emp")
        connection.query_one.assert_called_once_with("SELECT COUNT(*) AS cnt FROM emp")

    def test_insert_strategy_empty_table_expected(self):
        """Test that a table listed only with an empty row must be empty."""
        connection = make_connection()
        connection.query_cursor.return_value = iter([])
        connection.query_one.return_value = {"cnt": 0}

        assert DatasetComparator(connection).verify_insert_strategy([("bonus", {})]) is None
        connection.query_cursor.assert_called_once_with("SELECT * FROM bonus")

    def test_insert_strategy_row_failure_skips_count(self):
        """Test that a row difference short-circuits the count check."""
        connection = make_connection({"emp": ["empno"]})
        connection.query_cursor.return_value = iter([])

        result = DatasetComparator(connection).verify_insert_strategy([("emp", {"empno": 1})])

        assert "missing entry" in result
        connection.query_one.assert_not_called()

    def test_refresh_strategy_skips_empty_rows(self):
        """Test that delete markers are not verified under REFRESH."""
        connection = make_connection()

        assert DatasetComparator(connection).verify_refresh_strategy([("emp", {})]) is None
        connection.query_one.assert_not_called()

    def test_validate_number_of_rows(self):
        """Test count check message."""
        connection = make_connection()
        connection.query_one.return_value = {"cnt": 3}

        result = DatasetComparator(connection).validate_number_of_rows({"emp": 2})

        assert result == "found difference in number of the emp rows - has 3 rows, should have 2"


class TestPublicNames:
    """Test the names exported by dbunit.comparator."""

    def test_all(self):
        """Test that only comparison helpers are exported."""
        import dbunit.comparator

        assert sorted(dbunit.comparator.__all__) == [
            "DatasetComparator",
            "compare_datasets",
            "format_values",
        ]
