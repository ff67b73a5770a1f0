"""
Comparison session state.

A :class:`ComparisonSession` is created when the user opens two tables side by
side and discarded when the comparison closes; it is never persisted. It holds
the user's choices (combined columns, selected columns, sort keys) and passes
them explicitly into the pure engines. Results are memoized on the identity of
the input row lists, so hosts can call freely on every render.

While a comparison is active, per-side sorting is forced off: comparison aligns
rows by position and sorting either side would pair up unrelated rows.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .columns import Column, ColumnKind, Side, all_columns, columns_to_display
from .combined import (
    CombinedColumnDef,
    CombinedColumnResolver,
    columns_for_side,
    make_combined_column,
)
from .comparison import ComparisonEngine, ComparisonResult
from .providers import ForeignKey, TablePage
from .quality import DataQualityAnalyzer, DataQualityReport
from .sorting import (
    MultiColumnSorter,
    SortResult,
    SortSpec,
    remove_sort,
    set_sort_order,
    toggle_sort,
)


logger = logging.getLogger(__name__)


@dataclass
class ComparisonStats:
    """Headline numbers for a comparison view"""
    left_rows: int = 0
    right_rows: int = 0
    left_columns: int = 0
    right_columns: int = 0
    difference_count: int = 0
    compared_columns: int = 0
    total_columns: int = 0
    relationship_count: int = 0
    left_duplicates: int = 0
    right_duplicates: int = 0
    left_redundant_columns: int = 0
    right_redundant_columns: int = 0
    left_name_duplicates: int = 0
    right_name_duplicates: int = 0

    def to_dict(self) -> Dict[str, int]:
        return dict(self.__dict__)


class _Memo:
    """Single-slot cache keyed on input identity plus a hashable state key"""

    def __init__(self):
        self._inputs: Tuple = ()
        self._state = None
        self._value = None
        self._filled = False

    def get(self, inputs: Tuple, state):
        if (
            self._filled
            and len(inputs) == len(self._inputs)
            and all(a is b for a, b in zip(inputs, self._inputs))
            and state == self._state
        ):
            return True, self._value
        return False, None

    def put(self, inputs: Tuple, state, value) -> None:
        self._inputs = inputs
        self._state = state
        self._value = value
        self._filled = True


@dataclass
class ComparisonSession:
    """
    Explicit state for one side-by-side comparison.

    Attributes:
        left_columns: Real columns of the left table
        right_columns: Real columns of the right table
        combined_columns: Combined column definitions for both sides
        selected_columns: Columns chosen for comparison/display; None selects all
        sort_specs: Sort keys per side, used only while comparison is inactive
        comparison_active: Whether rows are being compared row-for-row
        name_columns: Identity-like columns for name duplicate detection
    """
    left_columns: List[str] = field(default_factory=list)
    right_columns: List[str] = field(default_factory=list)
    combined_columns: List[CombinedColumnDef] = field(default_factory=list)
    selected_columns: Optional[Set[str]] = None
    sort_specs: Dict[Side, List[SortSpec]] = field(default_factory=lambda: {Side.LEFT: [], Side.RIGHT: []})
    comparison_active: bool = True
    name_columns: Tuple[str, ...] = ()
    engine: ComparisonEngine = field(default_factory=ComparisonEngine)
    resolver: CombinedColumnResolver = field(default_factory=CombinedColumnResolver)
    analyzer: DataQualityAnalyzer = field(default_factory=DataQualityAnalyzer)
    sorter: MultiColumnSorter = field(default_factory=MultiColumnSorter)

    def __post_init__(self):
        self.left_columns = [str(col) for col in self.left_columns]
        self.right_columns = [str(col) for col in self.right_columns]
        self.name_columns = tuple(self.name_columns)
        if self.selected_columns is not None:
            self.selected_columns = set(self.selected_columns)
        self._memos: Dict[str, _Memo] = {}

    @classmethod
    def from_pages(cls, left: TablePage, right: TablePage, **kwargs) -> "ComparisonSession":
        """Start a session for two fetched pages"""
        return cls(left_columns=list(left.columns), right_columns=list(right.columns), **kwargs)

    def _memo(self, name: str) -> _Memo:
        return self._memos.setdefault(name, _Memo())

    def real_columns(self, side) -> List[str]:
        side = Side.parse(side)
        return self.left_columns if side is Side.LEFT else self.right_columns

    # Combined columns

    def valid_combined_columns(self, side) -> List[CombinedColumnDef]:
        """Definitions for ``side`` whose source columns exist on that side"""
        side = Side.parse(side)
        side_defs = [d for d in self.combined_columns if d.side is side]
        return self.resolver.validate(side_defs, self.real_columns(side)).valid

    def add_combined_column(self, side, name: str, source_columns: Sequence[str]) -> Optional[CombinedColumnDef]:
        """
        Define a new combined column on ``side``.

        Returns:
            The new definition, or None if a source column is not a real
            column of that side
        """
        definition = make_combined_column(name, source_columns, side)
        if not self.resolver.validate([definition], self.real_columns(definition.side)).valid:
            return None
        self.combined_columns = self.combined_columns + [definition]
        if self.selected_columns is not None:
            self.selected_columns = self.selected_columns | {definition.name}
        return definition

    def remove_combined_column(self, definition_id: str) -> bool:
        """Remove a combined column and drop it from the selection"""
        removed = [d for d in self.combined_columns if d.id == definition_id]
        if not removed:
            return False
        self.combined_columns = [d for d in self.combined_columns if d.id != definition_id]
        if self.selected_columns is not None:
            self.selected_columns = self.selected_columns - {d.name for d in removed}
        return True

    # Columns

    def columns_for_side(self, side) -> List[str]:
        """Real columns plus valid combined columns of ``side``"""
        side = Side.parse(side)
        return columns_for_side(self.real_columns(side), self.valid_combined_columns(side), side)

    def tagged_columns(self, side) -> List[Column]:
        """Columns of ``side`` tagged real or combined"""
        side = Side.parse(side)
        real = set(self.real_columns(side))
        return [
            Column(name, ColumnKind.REAL if name in real else ColumnKind.COMBINED)
            for name in self.columns_for_side(side)
        ]

    def all_columns(self) -> List[str]:
        """Sorted union of both sides' columns, combined columns included"""
        return all_columns(self.columns_for_side(Side.LEFT), self.columns_for_side(Side.RIGHT))

    def columns_to_compare(self) -> List[str]:
        columns = self.all_columns()
        if self.selected_columns is None:
            return columns
        return [col for col in columns if col in self.selected_columns]

    def columns_to_display(self, side) -> List[str]:
        return columns_to_display(self.columns_for_side(side), self.selected_columns)

    def select_columns(self, columns: Optional[Sequence[str]]) -> None:
        """Replace the selection; None selects every column"""
        self.selected_columns = None if columns is None else set(columns)

    # Sorting

    def toggle_sort(self, side, column: str) -> List[SortSpec]:
        side = Side.parse(side)
        self.sort_specs[side] = toggle_sort(self.sort_specs.get(side, []), column)
        return self.sort_specs[side]

    def set_sort_order(self, side, column: str, order) -> List[SortSpec]:
        side = Side.parse(side)
        self.sort_specs[side] = set_sort_order(self.sort_specs.get(side, []), column, order)
        return self.sort_specs[side]

    def remove_sort(self, side, column: str) -> List[SortSpec]:
        side = Side.parse(side)
        self.sort_specs[side] = remove_sort(self.sort_specs.get(side, []), column)
        return self.sort_specs[side]

    def effective_sort_specs(self, side) -> List[SortSpec]:
        """Sort keys actually applied to ``side``; none while comparing"""
        if self.comparison_active:
            return []
        return list(self.sort_specs.get(Side.parse(side), []))

    # Engines

    def resolve_rows(self, side, rows: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Copies of ``rows`` with the side's valid combined columns filled in"""
        side = Side.parse(side)
        defs = tuple(self.valid_combined_columns(side))
        memo = self._memo(f"resolve:{side.value}")
        hit, value = memo.get((rows,), defs)
        if hit:
            return value
        value = self.resolver.resolve_rows(rows, defs, side)
        memo.put((rows,), defs, value)
        return value

    def sort_rows(self, side, rows: Sequence[Mapping[str, Any]]) -> SortResult:
        """
        Sort a side's rows by its keys, or keep them in place while comparing.

        Rows are resolved first, so sort keys may name combined columns and
        ``sorted_rows`` carries the combined values.
        """
        side = Side.parse(side)
        specs = tuple(self.effective_sort_specs(side))
        if self.comparison_active and self.sort_specs.get(side):
            logger.debug("Ignoring %d sort keys on %s side while comparison is active",
                         len(self.sort_specs[side]), side.value)
        memo = self._memo(f"sort:{side.value}")
        state = (specs, tuple(self.valid_combined_columns(side)))
        hit, value = memo.get((rows,), state)
        if hit:
            return value
        value = self.sorter.sort(self.resolve_rows(side, rows), list(specs))
        memo.put((rows,), state, value)
        return value

    def analyze(self, side, rows: Sequence[Mapping[str, Any]]) -> DataQualityReport:
        """Data quality report for a side over its displayed columns"""
        side = Side.parse(side)
        columns = tuple(self.columns_to_display(side))
        memo = self._memo(f"analyze:{side.value}")
        state = (columns, self.name_columns, tuple(self.valid_combined_columns(side)))
        hit, value = memo.get((rows,), state)
        if hit:
            return value
        resolved = self.resolve_rows(side, rows)
        value = self.analyzer.analyze(resolved, list(columns), name_columns=self.name_columns)
        memo.put((rows,), state, value)
        return value

    def compare(
        self,
        left_rows: Sequence[Mapping[str, Any]],
        right_rows: Sequence[Mapping[str, Any]],
    ) -> ComparisonResult:
        """Compare both sides row-for-row over the selected columns"""
        columns = tuple(self.columns_to_compare())
        defs = tuple(self.combined_columns)
        memo = self._memo("compare")
        state = (columns, defs)
        hit, value = memo.get((left_rows, right_rows), state)
        if hit:
            logger.debug("Reusing comparison of %d/%d rows", len(left_rows), len(right_rows))
            return value
        value = self.engine.compare(
            self.resolve_rows(Side.LEFT, left_rows),
            self.resolve_rows(Side.RIGHT, right_rows),
            list(columns),
        )
        memo.put((left_rows, right_rows), state, value)
        return value

    def stats(
        self,
        left_page: Optional[TablePage] = None,
        right_page: Optional[TablePage] = None,
        comparison: Optional[ComparisonResult] = None,
        left_report: Optional[DataQualityReport] = None,
        right_report: Optional[DataQualityReport] = None,
        relationships: Sequence[ForeignKey] = (),
    ) -> ComparisonStats:
        """Collect the headline numbers shown above a comparison"""
        left_report = left_report or DataQualityReport()
        right_report = right_report or DataQualityReport()
        return ComparisonStats(
            left_rows=left_page.total_rows if left_page else 0,
            right_rows=right_page.total_rows if right_page else 0,
            left_columns=len(left_page.columns) if left_page else len(self.left_columns),
            right_columns=len(right_page.columns) if right_page else len(self.right_columns),
            difference_count=comparison.difference_count if comparison is not None else 0,
            compared_columns=len(self.columns_to_compare()),
            total_columns=len(self.all_columns()),
            relationship_count=len(relationships),
            left_duplicates=len(left_report.duplicate_index_set),
            right_duplicates=len(right_report.duplicate_index_set),
            left_redundant_columns=len(left_report.redundant_columns),
            right_redundant_columns=len(right_report.redundant_columns),
            left_name_duplicates=len(left_report.name_duplicate_index_set),
            right_name_duplicates=len(right_report.name_duplicate_index_set),
        )
