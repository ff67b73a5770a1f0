"""
Data quality checks for a single page of rows.

Detects:
- rows that are exact duplicates over the displayed columns
- rows that share the same "name" over a narrower identity subset
- columns that duplicate an earlier column value-for-value (redundant)
- columns holding a single value in every row (constant)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

import pandas as pd

from .values import (
    NULL_TOKEN,
    SIGNATURE_SEPARATOR,
    canonicalize,
    format_cell_value,
    split_display_name,
)


logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    """A set of row positions sharing one value signature"""
    signature: str
    indices: List[int]
    sample_row: Dict[str, Any] = field(default_factory=dict)
    columns: List[str] = field(default_factory=list)
    display_value: Optional[str] = None

    def __len__(self) -> int:
        return len(self.indices)

    def describe(self) -> str:
        """One-line description like ``"Name: Ada, Age: NULL"``"""
        if self.display_value:
            return self.display_value
        return ", ".join(f"{key}: {format_cell_value(value)}" for key, value in self.sample_row.items())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signature': self.signature,
            'indices': list(self.indices),
            'sample_row': dict(self.sample_row),
            'columns': list(self.columns),
            'display_value': self.display_value,
        }


@dataclass
class DataQualityReport:
    """Everything the analyzer found for one side"""
    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    duplicate_index_set: Set[int] = field(default_factory=set)
    redundant_columns: List[str] = field(default_factory=list)
    name_duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    name_duplicate_index_set: Set[int] = field(default_factory=set)
    redundant_column_map: Dict[str, str] = field(default_factory=dict)
    constant_columns: List[str] = field(default_factory=list)

    def has_warnings(self) -> bool:
        """Check if anything worth flagging to the user was found"""
        return bool(self.duplicate_groups or self.name_duplicate_groups or self.redundant_columns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duplicate_groups': [g.to_dict() for g in self.duplicate_groups],
            'duplicate_index_set': sorted(self.duplicate_index_set),
            'redundant_columns': list(self.redundant_columns),
            'name_duplicate_groups': [g.to_dict() for g in self.name_duplicate_groups],
            'name_duplicate_index_set': sorted(self.name_duplicate_index_set),
            'redundant_column_map': dict(self.redundant_column_map),
            'constant_columns': list(self.constant_columns),
        }


def _unique(columns: Sequence[str]) -> List[str]:
    seen = set()
    ordered = []
    for col in columns:
        if col not in seen:
            seen.add(col)
            ordered.append(col)
    return ordered


class DataQualityAnalyzer:
    """
    Finds duplicate rows and redundant columns in a page of rows.

    Example:
        >>> analyzer = DataQualityAnalyzer()
        >>> report = analyzer.analyze(rows, ['Name', 'City'], name_columns=['Oid'])
        >>> report.duplicate_index_set
        {0, 3}
    """

    def __init__(self, normalize_text: bool = False, sample_size: int = 3, display_names: bool = False):
        """
        Initialize DataQualityAnalyzer

        Args:
            normalize_text: If True, strings are compared leniently: reference
                suffixes ``(ID: ...)`` are dropped, whitespace is collapsed,
                blank strings count as NULL and non-numeric text ignores case.
            sample_size: Number of leading columns copied into each group's
                sample row
            display_names: If True, name columns are grouped on their display
                part only (text before a newline or ``(ID`` marker, case-folded),
                so ``"Ada\\n(ID: 1)"`` and ``"ada (ID: 2)"`` share a group.
                Otherwise name groups use the same canonical values as
                full-row duplicates.
        """
        self.normalize_text = normalize_text
        self.sample_size = sample_size
        self.display_names = display_names

    def analyze(
        self,
        rows: Sequence[Mapping[str, Any]],
        columns: Sequence[str],
        name_columns: Optional[Sequence[str]] = None,
    ) -> DataQualityReport:
        """
        Analyze rows over the given columns.

        Args:
            rows: Row mappings in their original order
            columns: Columns to analyze, in display order
            name_columns: Identity-like subset used for name duplicate detection;
                read from the rows whether or not they are among ``columns``

        Returns:
            DataQualityReport; empty for zero rows or zero columns
        """
        if not isinstance(rows, (list, tuple)):
            raise TypeError(f"rows must be a list or tuple of mappings, got {type(rows).__name__}")
        columns = _unique(columns)
        if not rows or not columns:
            return DataQualityReport()

        canonical = self._canonical_frame(rows, columns)
        report = DataQualityReport()

        report.duplicate_groups = self._duplicate_groups(rows, canonical, columns)
        for group in report.duplicate_groups:
            report.duplicate_index_set.update(group.indices)

        name_columns = _unique(name_columns or ())
        if name_columns:
            report.name_duplicate_groups = self._name_duplicate_groups(rows, columns, name_columns)
            for group in report.name_duplicate_groups:
                report.name_duplicate_index_set.update(group.indices)

        report.redundant_column_map = self._redundant_columns(canonical, columns)
        report.redundant_columns = [col for col in columns if col in report.redundant_column_map]
        report.constant_columns = [col for col in columns if canonical[col].nunique(dropna=False) <= 1]

        logger.debug(
            "Analyzed %d rows x %d columns: %d duplicate groups, %d name groups, %d redundant columns",
            len(rows), len(columns), len(report.duplicate_groups),
            len(report.name_duplicate_groups), len(report.redundant_columns),
        )
        return report

    def _canonical_frame(self, rows, columns: List[str]) -> pd.DataFrame:
        data = {
            col: [canonicalize(row.get(col), self.normalize_text) for row in rows]
            for col in columns
        }
        return pd.DataFrame(data, columns=columns, dtype=object)

    def _sample_row(self, row: Mapping[str, Any], columns: List[str]) -> Dict[str, Any]:
        return {col: row.get(col) for col in columns[:self.sample_size]}

    def _duplicate_groups(self, rows, canonical: pd.DataFrame, columns: List[str]) -> List[DuplicateGroup]:
        signatures = pd.Series(
            [SIGNATURE_SEPARATOR.join(values) for values in canonical.itertuples(index=False, name=None)],
            dtype=object,
        )
        duplicated = signatures[signatures.duplicated(keep=False)]

        grouped: Dict[str, List[int]] = {}
        for position, signature in duplicated.items():
            grouped.setdefault(signature, []).append(int(position))

        return [
            DuplicateGroup(
                signature=signature,
                indices=indices,
                sample_row=self._sample_row(rows[indices[0]], columns),
                columns=list(columns),
            )
            for signature, indices in grouped.items()
        ]

    def _name_duplicate_groups(self, rows, columns: List[str], name_columns: List[str]) -> List[DuplicateGroup]:
        grouped: Dict[str, List[int]] = {}
        displays: Dict[str, str] = {}
        for position, row in enumerate(rows):
            parts = [split_display_name(row.get(col)) for col in name_columns]
            if self.display_names:
                if not any(normalized for normalized, _ in parts):
                    continue
                keys = [canonicalize(normalized or None) for normalized, _ in parts]
            else:
                keys = [canonicalize(row.get(col), self.normalize_text) for col in name_columns]
                if all(key == NULL_TOKEN or not key.strip() for key in keys):
                    continue
            signature = SIGNATURE_SEPARATOR.join(keys)
            if signature not in grouped:
                grouped[signature] = []
                displays[signature] = " / ".join(original for _, original in parts if original)
            grouped[signature].append(position)

        groups = []
        for signature, indices in grouped.items():
            if len(indices) < 2:
                continue
            sample = {'DisplayName': displays[signature]}
            sample.update(self._sample_row(rows[indices[0]], columns))
            groups.append(DuplicateGroup(
                signature=signature,
                indices=indices,
                sample_row=sample,
                columns=list(name_columns),
                display_value=displays[signature],
            ))
        return groups

    def _redundant_columns(self, canonical: pd.DataFrame, columns: List[str]) -> Dict[str, str]:
        """Map each column equal value-for-value to an earlier column onto that column"""
        first_with_values: Dict[tuple, str] = {}
        redundant: Dict[str, str] = {}
        for col in columns:
            values = tuple(canonical[col])
            original = first_with_values.get(values)
            if original is None:
                first_with_values[values] = col
            else:
                redundant[col] = original
        return redundant


def analyze_rows(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    name_columns: Optional[Sequence[str]] = None,
    **kwargs,
) -> DataQualityReport:
    """
    Convenience function to analyze rows with a default analyzer.

    Args:
        rows: Row mappings
        columns: Columns to analyze
        name_columns: Identity-like subset for name duplicate detection
        **kwargs: Additional arguments passed to DataQualityAnalyzer
    """
    return DataQualityAnalyzer(**kwargs).analyze(rows, columns, name_columns=name_columns)


def signature_of(row: Mapping[str, Any], columns: Sequence[str], normalize_text: bool = False) -> str:
    """Signature of one row over ``columns``, as used for duplicate grouping"""
    return SIGNATURE_SEPARATOR.join(canonicalize(row.get(col), normalize_text) for col in columns)


__all__ = [
    'DuplicateGroup',
    'DataQualityReport',
    'DataQualityAnalyzer',
    'analyze_rows',
    'signature_of',
]
