"""
Property-based tests using Hypothesis.

Tests invariants that should hold for all inputs:
- Comparison result size and status consistency
- Sort permutation and index map bijection, for mixed value types too
- Duplicate and name group structure
- Combined column pass-through
"""

import datetime as dt

from hypothesis import given, settings, strategies as st

from vinzy_tablediff import (
    CombinedColumnDef,
    ComparisonStatus,
    Side,
    SortOrder,
    SortSpec,
    analyze_rows,
    compare_rows,
    resolve_value,
    sort_rows,
)
from vinzy_tablediff.quality import signature_of
from vinzy_tablediff.values import canonicalize, is_null


COLUMNS = ['a', 'b', 'c']

cell_values = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-5, max_value=5),
    st.text(alphabet='abXY 1', max_size=3),
)
rows_strategy = st.lists(
    st.fixed_dictionaries({col: cell_values for col in COLUMNS}),
    max_size=12,
)
sortable_rows = st.lists(
    st.fixed_dictionaries({'n': st.one_of(st.none(), st.integers(min_value=-50, max_value=50))}),
    max_size=20,
)
orders = st.sampled_from(list(SortOrder))


# Property: one entry per position of the longer side
@given(left=rows_strategy, right=rows_strategy)
def test_comparison_result_size(left, right):
    """Result covers every position of the longer side."""
    result = compare_rows(left, right, COLUMNS)

    assert len(result) == max(len(left), len(right))
    assert sorted(result) == list(range(len(result)))


# Property: status and diff columns agree
@given(left=rows_strategy, right=rows_strategy)
def test_comparison_status_consistency(left, right):
    """Statuses follow alignment and diff columns."""
    result = compare_rows(left, right, COLUMNS)
    shared = min(len(left), len(right))

    for position, entry in result.items():
        if position < shared:
            assert entry.status in (ComparisonStatus.SAME, ComparisonStatus.DIFFERENT)
            assert (entry.status is ComparisonStatus.SAME) == (entry.diff_columns == [])
            assert set(entry.diff_columns) <= set(COLUMNS)
        elif position < len(left):
            assert entry.status is ComparisonStatus.LEFT_ONLY
            assert entry.diff_columns == []
        else:
            assert entry.status is ComparisonStatus.RIGHT_ONLY
            assert entry.diff_columns == []

    assert result.summary['difference_count'] == result.difference_count


# Property: comparing rows against themselves finds nothing
@given(rows=rows_strategy)
def test_comparison_reflexive(rows):
    """Every table is identical to a copy of itself."""
    result = compare_rows(rows, [dict(row) for row in rows], COLUMNS)
    assert not result.has_differences()


# Property: sorting is a permutation with a bijective index map
@given(rows=sortable_rows, order=orders)
def test_sort_is_permutation(rows, order):
    """Sorted rows are the input rows, and the maps are inverses."""
    result = sort_rows(rows, [SortSpec('n', order)])

    assert sorted(result.sorted_to_original) == list(range(len(rows)))
    assert sorted(result.original_to_sorted_index_map) == list(range(len(rows)))
    for position, original in enumerate(result.sorted_to_original):
        assert result.original_to_sorted_index_map[original] == position
        assert result.sorted_rows[position] is rows[original]


# Property: nulls last, values ordered, ties in original order
@given(rows=sortable_rows, order=orders)
def test_sort_order(rows, order):
    """Non-null values are monotonic and NULLs trail in original order."""
    result = sort_rows(rows, [SortSpec('n', order)])
    values = [row['n'] for row in result.sorted_rows]
    present = [v for v in values if v is not None]

    assert values[:len(present)] == present
    assert present == sorted(present, reverse=order.descending)

    for first, second in zip(result.sorted_to_original, result.sorted_to_original[1:]):
        if rows[first]['n'] == rows[second]['n']:
            assert first < second


# Property: sorting sorted rows changes nothing
@given(rows=sortable_rows, order=orders)
def test_sort_idempotent(rows, order):
    """A second sort keeps the first sort's order."""
    once = sort_rows(rows, [SortSpec('n', order)])
    twice = sort_rows(once.sorted_rows, [SortSpec('n', order)])
    assert twice.is_identity


# Property: duplicate groups partition the duplicated rows
@settings(max_examples=50)
@given(rows=rows_strategy)
def test_duplicate_groups_structure(rows):
    """Groups are disjoint, share a signature, and leave unique rows alone."""
    report = analyze_rows(rows, COLUMNS)

    seen = set()
    for group in report.duplicate_groups:
        assert len(group.indices) > 1
        assert group.indices == sorted(group.indices)
        assert seen.isdisjoint(group.indices)
        seen.update(group.indices)
        signatures = {signature_of(rows[i], COLUMNS) for i in group.indices}
        assert signatures == {group.signature}

    assert seen == report.duplicate_index_set
    outside = [signature_of(rows[i], COLUMNS) for i in range(len(rows)) if i not in seen]
    assert len(outside) == len(set(outside))
    assert not set(outside) & {group.signature for group in report.duplicate_groups}


# Property: every redundant column repeats its earlier column exactly
@settings(max_examples=50)
@given(rows=rows_strategy)
def test_redundant_columns_match(rows):
    """Redundant columns equal their source column in every row."""
    report = analyze_rows(rows, COLUMNS)

    for col, original in report.redundant_column_map.items():
        assert COLUMNS.index(original) < COLUMNS.index(col)
        for row in rows:
            assert canonicalize(row[col]) == canonicalize(row[original])
    assert report.redundant_columns == [col for col in COLUMNS if col in report.redundant_column_map]


# Property: non-combined columns read straight from the row
@given(row=st.fixed_dictionaries({col: cell_values for col in COLUMNS}), column=st.sampled_from(COLUMNS + ['zz']))
def test_resolver_pass_through(row, column):
    """Columns without a combined definition resolve to the raw value."""
    definition = CombinedColumnDef('c1', 'combo', ('a', 'b'), Side.LEFT)
    assert resolve_value(row, column, [definition]) == row.get(column)


# Property: combined values never contain NULL parts
@given(row=st.fixed_dictionaries({col: cell_values for col in COLUMNS}))
def test_resolver_skips_nulls(row):
    """Combined values are None only when every source is NULL or empty."""
    definition = CombinedColumnDef('c1', 'combo', ('a', 'b', 'c'), Side.LEFT)
    value = resolve_value(row, 'combo', [definition])
    usable = [row[col] for col in COLUMNS if not is_null(row[col]) and row[col] != '']

    assert (value is None) == (not usable)


mixed_sort_values = st.one_of(
    st.none(),
    st.integers(min_value=-1000, max_value=1000),
    st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False),
    st.integers(min_value=-99, max_value=99).map(str),
    st.dates(min_value=dt.date(1990, 1, 1), max_value=dt.date(2035, 12, 31)),
    st.dates(min_value=dt.date(1990, 1, 1), max_value=dt.date(2035, 12, 31)).map(dt.date.isoformat),
    st.dates(min_value=dt.date(1990, 1, 1), max_value=dt.date(2035, 12, 31)).map(
        lambda d: f"{d.month}/{d.day}/{d.year}"
    ),
    st.text(alphabet='abzÉé 12', max_size=5),
)
mixed_rows = st.lists(
    st.fixed_dictionaries({'v': mixed_sort_values, 'w': mixed_sort_values}),
    max_size=15,
)


# Property: mixed-type sorting is a deterministic permutation
@settings(max_examples=75, deadline=1000)
@given(rows=mixed_rows, first=orders, second=orders)
def test_mixed_sort_permutation_and_determinism(rows, first, second):
    """Dates, numbers and text sort into a bijection, the same way every time."""
    specs = [SortSpec('v', first), SortSpec('w', second)]
    result = sort_rows(rows, specs)
    again = sort_rows(list(rows), specs)

    assert sorted(result.sorted_to_original) == list(range(len(rows)))
    for position, original in enumerate(result.sorted_to_original):
        assert result.original_to_sorted_index_map[original] == position
        assert result.sorted_rows[position] is rows[original]
    assert again.sorted_to_original == result.sorted_to_original


# Property: rows in one name group share identical canonical name values
@settings(max_examples=50)
@given(rows=rows_strategy)
def test_name_groups_share_canonical_values(rows):
    """Name groups obey the same signature rule as full-row groups."""
    report = analyze_rows(rows, ['c'], name_columns=['a', 'b'])

    for group in report.name_duplicate_groups:
        assert len(group.indices) > 1
        values = {tuple(canonicalize(rows[i][col]) for col in ('a', 'b')) for i in group.indices}
        assert len(values) == 1
        assert {signature_of(rows[i], ['a', 'b']) for i in group.indices} == {group.signature}
