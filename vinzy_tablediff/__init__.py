"""
Vinzy TableDiff - side-by-side reconciliation of two SQL tables

This library compares two pages of table rows position by position, flags
per-cell differences, detects duplicate rows and redundant columns within
each side, resolves user-defined combined columns and sorts rows with
type-aware multi-column rules.

Basic Usage:
    >>> from vinzy_tablediff import ComparisonEngine, compare_rows
    >>>
    >>> # Quick comparison
    >>> result = compare_rows(left_rows, right_rows, ['Name', 'City'])
    >>> print(result.summary)
    >>>
    >>> # Class-based usage with options
    >>> engine = ComparisonEngine(case_sensitive=False, tolerance=0.01)
    >>> result = engine.compare(left_rows, right_rows)
    >>> result[3].diff_columns
    >>>
    >>> # Data quality of one side
    >>> report = analyze_rows(left_rows, ['Name', 'City'], name_columns=['Oid'])
    >>> report.duplicate_index_set
    >>>
    >>> # Whole comparison with session state
    >>> session = ComparisonSession(left_columns=['First', 'Last'], right_columns=['FullName'])
    >>> session.add_combined_column('left', 'FullName', ['First', 'Last'])
    >>> result = session.compare(left_rows, right_rows)
"""

import logging

from .columns import (
    Column,
    ColumnCategories,
    ColumnKind,
    Side,
    all_columns,
    categorize_columns,
    columns_to_display,
    filter_hidden_columns,
    normalize_column_name,
)
from .combined import (
    CombinedColumnDef,
    CombinedColumnResolver,
    CombinedValidation,
    column_mapping,
    columns_for_side,
    make_combined_column,
    resolve_value,
    validate_combined_columns,
)
from .comparison import (
    ComparisonEngine,
    ComparisonEntry,
    ComparisonResult,
    ComparisonStatus,
    compare_rows,
    count_differences,
    rows_identical,
)
from .providers import (
    ForeignKey,
    RelationshipProvider,
    TableDataProvider,
    TablePage,
    TableRef,
    fetch_page_pair,
    fetch_relationships,
)
from .quality import (
    DataQualityAnalyzer,
    DataQualityReport,
    DuplicateGroup,
    analyze_rows,
)
from .session import ComparisonSession, ComparisonStats
from .sorting import (
    MultiColumnSorter,
    SortOrder,
    SortResult,
    SortSpec,
    remove_sort,
    set_sort_order,
    sort_rows,
    toggle_sort,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Main classes
    "ComparisonEngine",
    "ComparisonResult",
    "ComparisonEntry",
    "ComparisonStatus",
    "DataQualityAnalyzer",
    "DataQualityReport",
    "DuplicateGroup",
    "MultiColumnSorter",
    "SortOrder",
    "SortSpec",
    "SortResult",
    "CombinedColumnResolver",
    "CombinedColumnDef",
    "CombinedValidation",
    "ComparisonSession",
    "ComparisonStats",

    # Columns
    "Column",
    "ColumnKind",
    "ColumnCategories",
    "Side",
    "all_columns",
    "categorize_columns",
    "columns_to_display",
    "filter_hidden_columns",
    "normalize_column_name",

    # Providers
    "ForeignKey",
    "TableRef",
    "TablePage",
    "TableDataProvider",
    "RelationshipProvider",
    "fetch_page_pair",
    "fetch_relationships",

    # Convenience functions
    "compare_rows",
    "count_differences",
    "rows_identical",
    "analyze_rows",
    "sort_rows",
    "toggle_sort",
    "set_sort_order",
    "remove_sort",
    "make_combined_column",
    "resolve_value",
    "validate_combined_columns",
    "column_mapping",
    "columns_for_side",

    # Version
    "__version__",
]
