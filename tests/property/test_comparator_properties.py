"""
Property-based tests for row comparison using Hypothesis.

Tests invariants that should hold for all rows:
- Comparing a row with itself finds no difference
- Presence of a difference does not depend on argument order
- Numbers compare equal to their integral float and string forms
- Keyless rows match regardless of expected row order
"""

from decimal import Decimal
from unittest.mock import MagicMock

from hypothesis import given, strategies as st

from dbunit.comparator import DatasetComparator, compare_datasets
from dbunit.connection.base import Connection
from dbunit.types import render_value

columns = st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True)
values = st.one_of(
    st.none(),
    st.integers(),
    st.text(max_size=10),
    st.floats(allow_nan=False, allow_infinity=False),
    st.decimals(allow_nan=False, allow_infinity=False, places=2),
)
rows = st.dictionaries(columns, values, max_size=6)


@given(row=rows)
def test_compare_is_reflexive(row):
    """A row never differs from itself."""
    assert compare_datasets(dict(row), row, "t") is None


@given(data=st.data(), row_columns=st.lists(columns, min_size=1, max_size=5, unique=True))
def test_difference_presence_is_symmetric(data, row_columns):
    """Swapping live and expected rows keeps the difference presence."""
    first = {column: data.draw(values) for column in row_columns}
    second = {column: data.draw(values) for column in row_columns}

    forward = compare_datasets(first, second, "t")
    backward = compare_datasets(second, first, "t")

    assert (forward is None) == (backward is None)


@given(number=st.integers(min_value=-(10**15), max_value=10**15))
def test_numeric_forms_render_alike(number):
    """Integers, integral floats, numeric strings and Decimals agree."""
    rendered = render_value(number)

    assert render_value(float(number)) == rendered
    assert render_value(str(number)) == rendered
    assert render_value(Decimal(number)) == rendered


@given(
    data=st.data(),
    table_rows=st.lists(
        st.fixed_dictionaries({"ename": st.sampled_from(["scott", "john"]), "sal": st.integers(0, 3)}),
        max_size=8,
    ),
)
def test_keyless_rows_match_in_any_order(data, table_rows):
    """Every live row is consumed exactly once whatever the expected order."""
    comparator = DatasetComparator(MagicMock(spec=Connection))
    snapshot = {f"__{ordinal}": dict(row) for ordinal, row in enumerate(table_rows)}
    expected_rows = data.draw(st.permutations(table_rows))

    for expected in expected_rows:
        assert comparator.compare_row(snapshot, expected, [], "bonus") is None

    assert snapshot == {}
