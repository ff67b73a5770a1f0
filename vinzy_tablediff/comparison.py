"""
Row-for-row comparison of two tables.

Features:
- Positional alignment (row i of the left table against row i of the right)
- Per-cell differences for a chosen set of columns
- Configurable equality (case, whitespace, numerical tolerance, NULL handling)
- Summary counts and export to dict, JSON and DataFrame
"""

import json
import logging
import warnings
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .values import binary_bytes, canonical_text, is_binary, is_null


logger = logging.getLogger(__name__)


class ComparisonStatus(Enum):
    """Verdict for one aligned row position"""
    SAME = "same"
    DIFFERENT = "different"
    LEFT_ONLY = "left-only"
    RIGHT_ONLY = "right-only"


@dataclass
class ComparisonEntry:
    """Comparison verdict for a single row position"""
    status: ComparisonStatus
    diff_columns: List[str] = field(default_factory=list)
    left_row: Optional[Mapping[str, Any]] = None
    right_row: Optional[Mapping[str, Any]] = None

    def __str__(self) -> str:
        if self.diff_columns:
            return f"ComparisonEntry({self.status.value}: {', '.join(self.diff_columns)})"
        return f"ComparisonEntry({self.status.value})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'status': self.status.value,
            'diff_columns': list(self.diff_columns),
        }


@dataclass
class ComparisonResult(MappingABC):
    """
    Result of a positional comparison, readable as ``{position: ComparisonEntry}``.

    Attributes:
        entries: Entry per row position, one for every position of the longer side
        columns_compared: Columns that were compared
        total_rows_left: Number of left rows
        total_rows_right: Number of right rows
    """
    entries: Dict[int, ComparisonEntry] = field(default_factory=dict)
    columns_compared: List[str] = field(default_factory=list)
    total_rows_left: int = 0
    total_rows_right: int = 0

    def __getitem__(self, position: int) -> ComparisonEntry:
        return self.entries[position]

    def __iter__(self) -> Iterator[int]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __str__(self) -> str:
        summary = self.summary
        return (f"ComparisonResult(same: {summary['same_rows']}, different: {summary['different_rows']}, "
                f"left-only: {summary['left_only_rows']}, right-only: {summary['right_only_rows']})")

    def positions_with_status(self, status: ComparisonStatus) -> List[int]:
        """Get row positions with the given status"""
        return [position for position, entry in self.entries.items() if entry.status is status]

    @property
    def difference_count(self) -> int:
        """Number of positions whose status is not ``same``"""
        return sum(1 for entry in self.entries.values() if entry.status is not ComparisonStatus.SAME)

    @property
    def summary(self) -> Dict[str, Any]:
        """Counts per status plus overall flags"""
        counts = {status: 0 for status in ComparisonStatus}
        cell_differences = 0
        for entry in self.entries.values():
            counts[entry.status] += 1
            cell_differences += len(entry.diff_columns)
        return {
            'total_rows_left': self.total_rows_left,
            'total_rows_right': self.total_rows_right,
            'same_rows': counts[ComparisonStatus.SAME],
            'different_rows': counts[ComparisonStatus.DIFFERENT],
            'left_only_rows': counts[ComparisonStatus.LEFT_ONLY],
            'right_only_rows': counts[ComparisonStatus.RIGHT_ONLY],
            'difference_count': len(self.entries) - counts[ComparisonStatus.SAME],
            'total_cell_differences': cell_differences,
            'identical': len(self.entries) == counts[ComparisonStatus.SAME],
        }

    def has_differences(self) -> bool:
        """Check if any position is not ``same``"""
        return self.difference_count > 0

    def diff_column_counts(self) -> Dict[str, int]:
        """How many positions differ in each compared column"""
        counts = {col: 0 for col in self.columns_compared}
        for entry in self.entries.values():
            for col in entry.diff_columns:
                counts[col] = counts.get(col, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entire result to a dictionary"""
        return {
            'summary': self.summary,
            'columns_compared': list(self.columns_compared),
            'entries': {position: entry.to_dict() for position, entry in self.entries.items()},
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert the entire result to a JSON string"""
        return json.dumps(self.to_dict(), indent=indent)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per position with its status and differing columns"""
        if not self.entries:
            return pd.DataFrame(columns=['position', 'status', 'diff_columns'])
        return pd.DataFrame([
            {
                'position': position,
                'status': entry.status.value,
                'diff_columns': ", ".join(entry.diff_columns),
            }
            for position, entry in self.entries.items()
        ])


def _validate_rows(rows, label: str) -> None:
    if not isinstance(rows, (list, tuple)):
        raise TypeError(f"{label} must be a list or tuple of mappings, got {type(rows).__name__}")
    for row in rows:
        if not isinstance(row, MappingABC):
            raise TypeError(f"{label} must contain mappings, got {type(row).__name__}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal, np.number)) and not isinstance(value, (bool, np.bool_))


class ComparisonEngine:
    """
    Main class for comparing two row sequences position by position.

    Features:
        - Positional alignment; surplus rows on either side are reported
          as left-only / right-only
        - Per-cell differences over the compared columns
        - Numerical tolerance support
        - Case and whitespace insensitive string comparison

    Example:
        >>> engine = ComparisonEngine()
        >>> result = engine.compare(left_rows, right_rows, ['Name'])
        >>> result[1].status
        <ComparisonStatus.DIFFERENT: 'different'>
    """

    def __init__(
        self,
        case_sensitive: bool = True,
        ignore_whitespace: bool = False,
        treat_null_as_equal: bool = True,
        tolerance: float = 0.0
    ):
        """
        Initialize ComparisonEngine

        Args:
            case_sensitive: If True, string comparisons are case-sensitive
            ignore_whitespace: If True, strip whitespace from strings before comparing
            treat_null_as_equal: If True, NULL values on both sides are considered equal
            tolerance: Tolerance for numerical comparisons (relative and absolute)
        """
        if tolerance < 0:
            raise ValueError("tolerance cannot be negative")
        self.case_sensitive = case_sensitive
        self.ignore_whitespace = ignore_whitespace
        self.treat_null_as_equal = treat_null_as_equal
        self.tolerance = tolerance

    def compare(
        self,
        left_rows: Sequence[Mapping[str, Any]],
        right_rows: Sequence[Mapping[str, Any]],
        columns_to_compare: Optional[Sequence[str]] = None,
    ) -> ComparisonResult:
        """
        Compare two row sequences position by position

        Args:
            left_rows: Rows of the left table, in display order
            right_rows: Rows of the right table, in display order
            columns_to_compare: Columns to compare. If None, compare the sorted
                union of all row keys on both sides.

        Returns:
            ComparisonResult with one entry per position of the longer side

        Raises:
            TypeError: If rows are not lists/tuples of mappings, or
                columns_to_compare is not a list/tuple
        """
        _validate_rows(left_rows, 'left_rows')
        _validate_rows(right_rows, 'right_rows')
        columns = self._columns_to_compare(left_rows, right_rows, columns_to_compare)

        entries: Dict[int, ComparisonEntry] = {}
        shared = min(len(left_rows), len(right_rows))
        for position in range(max(len(left_rows), len(right_rows))):
            if position < shared:
                entries[position] = self.compare_rows(left_rows[position], right_rows[position], columns)
            elif position < len(left_rows):
                entries[position] = ComparisonEntry(ComparisonStatus.LEFT_ONLY, left_row=left_rows[position])
            else:
                entries[position] = ComparisonEntry(ComparisonStatus.RIGHT_ONLY, right_row=right_rows[position])

        result = ComparisonResult(
            entries=entries,
            columns_compared=columns,
            total_rows_left=len(left_rows),
            total_rows_right=len(right_rows),
        )
        logger.debug("Compared %d/%d rows over %d columns: %d differences",
                     len(left_rows), len(right_rows), len(columns), result.difference_count)
        return result

    def compare_rows(
        self,
        left_row: Mapping[str, Any],
        right_row: Mapping[str, Any],
        columns: Sequence[str],
    ) -> ComparisonEntry:
        """Compare two aligned rows over ``columns``"""
        diff_columns = [
            col for col in columns
            if not self.values_equal(left_row.get(col), right_row.get(col))
        ]
        return ComparisonEntry(
            status=ComparisonStatus.DIFFERENT if diff_columns else ComparisonStatus.SAME,
            diff_columns=diff_columns,
            left_row=left_row,
            right_row=right_row,
        )

    def values_equal(self, val1: Any, val2: Any) -> bool:
        """Check if two individual cell values are equal"""
        val1_null = is_null(val1)
        val2_null = is_null(val2)

        if val1_null and val2_null:
            return self.treat_null_as_equal
        if val1_null or val2_null:
            return False

        # Booleans only match booleans
        val1_bool = isinstance(val1, (bool, np.bool_))
        val2_bool = isinstance(val2, (bool, np.bool_))
        if val1_bool or val2_bool:
            return val1_bool and val2_bool and bool(val1) == bool(val2)

        # Numeric comparison with tolerance
        if _is_number(val1) and _is_number(val2):
            if self.tolerance > 0:
                return bool(np.isclose(float(val1), float(val2), rtol=self.tolerance, atol=self.tolerance))
            return val1 == val2

        if isinstance(val1, str) and isinstance(val2, str):
            return self._normalize_string(val1) == self._normalize_string(val2)
        if isinstance(val1, str) or isinstance(val2, str):
            return False

        if is_binary(val1) or is_binary(val2):
            return is_binary(val1) and is_binary(val2) and binary_bytes(val1) == binary_bytes(val2)

        if isinstance(val1, MappingABC) and isinstance(val2, MappingABC):
            if set(val1.keys()) != set(val2.keys()):
                return False
            return all(self.values_equal(val1[key], val2[key]) for key in val1)

        if isinstance(val1, (list, tuple)) and isinstance(val2, (list, tuple)):
            if len(val1) != len(val2):
                return False
            return all(self.values_equal(a, b) for a, b in zip(val1, val2))

        # Direct comparison for other types
        try:
            return bool(val1 == val2)
        except (ValueError, TypeError):
            return canonical_text(val1) == canonical_text(val2)

    def _normalize_string(self, value: str) -> str:
        if self.ignore_whitespace:
            value = value.strip()
        if not self.case_sensitive:
            value = value.casefold()
        return value

    def _columns_to_compare(self, left_rows, right_rows, columns_to_compare) -> List[str]:
        if columns_to_compare is None:
            names = set()
            for row in list(left_rows) + list(right_rows):
                names.update(str(key) for key in row.keys())
            return sorted(names)

        if not isinstance(columns_to_compare, (list, tuple)):
            raise TypeError("columns_to_compare must be a list or tuple of column names")

        columns = list(dict.fromkeys(columns_to_compare))
        if left_rows or right_rows:
            missing = [
                col for col in columns
                if not any(col in row for row in left_rows) and not any(col in row for row in right_rows)
            ]
            if missing:
                warnings.warn(f"Compare columns {missing} not found in any row of either side; "
                              "they will compare as NULL")
        return columns


# Convenience functions for quick comparisons
def compare_rows(
    left_rows: Sequence[Mapping[str, Any]],
    right_rows: Sequence[Mapping[str, Any]],
    columns_to_compare: Optional[Sequence[str]] = None,
    **kwargs
) -> ComparisonResult:
    """
    Convenience function to compare two row sequences.

    Args:
        left_rows: Rows of the left table
        right_rows: Rows of the right table
        columns_to_compare: Columns to compare (None for all)
        **kwargs: Additional arguments passed to ComparisonEngine

    Returns:
        ComparisonResult object with comparison results

    Example:
        >>> result = compare_rows(left, right, ['Name'])
        >>> result.summary['different_rows']
        1
    """
    engine = ComparisonEngine(**kwargs)
    return engine.compare(left_rows, right_rows, columns_to_compare)


def count_differences(
    left_rows: Sequence[Mapping[str, Any]],
    right_rows: Sequence[Mapping[str, Any]],
    columns_to_compare: Optional[Sequence[str]] = None,
    **kwargs
) -> int:
    """Number of positions that are not ``same``"""
    return compare_rows(left_rows, right_rows, columns_to_compare, **kwargs).difference_count


def rows_identical(
    left_rows: Sequence[Mapping[str, Any]],
    right_rows: Sequence[Mapping[str, Any]],
    columns_to_compare: Optional[Sequence[str]] = None,
    **kwargs
) -> bool:
    """Check if both sides hold the same rows in the same order"""
    return compare_rows(left_rows, right_rows, columns_to_compare, **kwargs).summary['identical']
