"""
Unit tests for dataset value types.

Tests load strategy parsing, predicates, LOB references and value rendering.
"""

from datetime import date
from decimal import Decimal

import pytest

from dbunit.types import LoadStrategy, LobRef, Predicate, render_value


class TestLoadStrategy:
    """Test LoadStrategy parsing."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("INSERT", LoadStrategy.INSERT),
            ("refresh", LoadStrategy.REFRESH),
            ("INSERT_LOAD_STRATEGY", LoadStrategy.INSERT),
            ("refresh_load_strategy", LoadStrategy.REFRESH),
            ("  Insert ", LoadStrategy.INSERT),
        ],
    )
    def test_parse_names(self, name, expected):
        """Test short, long and mixed-case names."""
        assert LoadStrategy.parse(name) is expected

    def test_parse_passes_members_through(self):
        """Test that members are returned unchanged."""
        assert LoadStrategy.parse(LoadStrategy.REFRESH) is LoadStrategy.REFRESH

    def test_parse_unknown_raises(self):
        """Test that unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown load strategy"):
            LoadStrategy.parse("UPSERT")

    def test_members_compare_as_strings(self):
        """Test str mixin behaviour."""
        assert LoadStrategy.INSERT == "INSERT"


class TestPredicate:
    """Test Predicate wrapper."""

    def test_call_returns_bool(self):
        """Test that truthy results are coerced to bool."""
        predicate = Predicate(lambda value: value and "sales" in value)

        assert predicate("sales assistant") is True
        assert predicate("engineer") is False
        assert predicate(None) is False


class TestLobRef:
    """Test LobRef construction."""

    def test_from_mapping_encodes_text_content(self):
        """Test that str content is UTF-8 encoded."""
        lob = LobRef.from_mapping({"content": "zażółć", "size_column": "doc_size"})

        assert lob.content == "zażółć".encode("utf-8")
        assert lob.size_column == "doc_size"
        assert lob.file is None

    def test_from_mapping_keeps_file(self):
        """Test file reference."""
        lob = LobRef.from_mapping({"file": "data/moon.bin"})

        assert lob.file == "data/moon.bin"
        assert lob.content is None


class TestRenderValue:
    """Test the string form used for comparison."""

    @pytest.mark.parametrize("value", [None, "", 0, "0", 0.0, Decimal(0), False])
    def test_falsy_values_render_empty(self, value):
        """Test that empty values, zero included, render as empty string."""
        assert render_value(value) == ""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (3, "3"),
            ("3", "3"),
            (3.0, "3"),
            (3.5, "3.5"),
            (Decimal("3.00"), "3.00"),
            (Decimal("1250.50"), "1250.50"),
            (Decimal("0.00"), "0.00"),
            (Decimal("100"), "100"),
            ("3.00", "3.00"),
            (date(2024, 1, 31), "2024-01-31"),
        ],
    )
    def test_values(self, value, expected):
        """Test rendering of numbers, strings and dates."""
        assert render_value(value) == expected

    def test_float_noise_is_rounded(self):
        """Test that binary float noise does not leak into the string form."""
        assert render_value(0.1 + 0.2) == "0.3"
