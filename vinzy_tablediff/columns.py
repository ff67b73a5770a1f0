"""
Column bookkeeping for side-by-side table views.

Column names coming back from two different databases rarely agree on case or
surrounding whitespace, so every helper here matches names on their
normalized (trimmed, lower-cased) form while returning the original spelling.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence


DEFAULT_HIDDEN_COLUMNS = ('HinhAnh',)
DEFAULT_HIDDEN_PATTERNS = ('_OriginalId',)


class Side(Enum):
    """Which table of a comparison a row or column belongs to"""
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value) -> "Side":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Side must be 'left' or 'right', got {value!r}") from None


class ColumnKind(Enum):
    """Whether a column is native to a table or a virtual combined column"""
    REAL = "real"
    COMBINED = "combined"


@dataclass(frozen=True)
class Column:
    """A named column tagged with its kind"""
    name: str
    kind: ColumnKind = ColumnKind.REAL

    @property
    def is_combined(self) -> bool:
        return self.kind is ColumnKind.COMBINED


@dataclass
class ColumnCategories:
    """Columns split by which side of a comparison they appear on"""
    left_only: List[str] = field(default_factory=list)
    right_only: List[str] = field(default_factory=list)
    both: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            'left_only': list(self.left_only),
            'right_only': list(self.right_only),
            'both': list(self.both),
        }


def normalize_column_name(column) -> str:
    """Normalize a column name for matching (trim and lowercase)"""
    return str(column).strip().lower()


def categorize_columns(left_columns: Sequence, right_columns: Sequence) -> ColumnCategories:
    """
    Split two column lists into left-only, right-only and shared columns.

    Matching ignores case and surrounding whitespace. Shared columns are
    reported under their left-side spelling, in left-side order.
    """
    left_normalized = {normalize_column_name(col) for col in left_columns}
    right_normalized = {normalize_column_name(col) for col in right_columns}

    categories = ColumnCategories()
    seen_both = set()
    for col in left_columns:
        normalized = normalize_column_name(col)
        if normalized in right_normalized:
            if normalized not in seen_both:
                seen_both.add(normalized)
                categories.both.append(str(col))
        elif str(col) not in categories.left_only:
            categories.left_only.append(str(col))

    for col in right_columns:
        if normalize_column_name(col) not in left_normalized and str(col) not in categories.right_only:
            categories.right_only.append(str(col))

    return categories


def columns_to_display(table_columns: Sequence, selected_columns: Optional[Iterable[str]]) -> List[str]:
    """
    Filter a table's columns by a selection, preserving table order.

    An empty or missing selection shows every column.
    """
    if not table_columns:
        return []
    selected = {normalize_column_name(col) for col in (selected_columns or ())}
    if not selected:
        return [str(col) for col in table_columns]
    return [str(col) for col in table_columns if normalize_column_name(col) in selected]


def filter_hidden_columns(
    columns: Optional[Sequence],
    hidden: Sequence[str] = DEFAULT_HIDDEN_COLUMNS,
    patterns: Sequence[str] = DEFAULT_HIDDEN_PATTERNS,
) -> List[str]:
    """Drop columns hidden by exact name (case-insensitive) or by suffix pattern"""
    if not columns:
        return []
    hidden_lower = {name.lower() for name in hidden}
    visible = []
    for col in columns:
        name = str(col).strip()
        if name.lower() in hidden_lower:
            continue
        if any(name.endswith(pattern) for pattern in patterns):
            continue
        visible.append(str(col))
    return visible


def all_columns(left_columns: Sequence, right_columns: Sequence) -> List[str]:
    """Sorted union of both sides' (trimmed) column names"""
    names = {str(col).strip() for col in left_columns}
    names.update(str(col).strip() for col in right_columns)
    return sorted(names)
