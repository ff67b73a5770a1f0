"""
Combined (virtual) columns.

A combined column concatenates one or more real columns of one side of a
comparison, e.g. ``FullName = FirstName + LastName``. Definitions are built
interactively and only live for the duration of a comparison session.
Definitions that point at columns the table does not have are never an
error: they are filtered out and simply not offered as columns.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .columns import Side
from .values import canonical_text, is_null


logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = " "


@dataclass(frozen=True)
class CombinedColumnDef:
    """Definition of a virtual column built from real source columns"""
    id: str
    name: str
    source_columns: Tuple[str, ...]
    side: Side

    def __post_init__(self):
        object.__setattr__(self, 'source_columns', tuple(self.source_columns))
        object.__setattr__(self, 'side', Side.parse(self.side))

    def applies_to(self, side: Optional[Side]) -> bool:
        return side is None or self.side is Side.parse(side)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'source_columns': list(self.source_columns),
            'side': self.side.value,
        }


@dataclass
class CombinedValidation:
    """Result of validating definitions against a table's columns"""
    valid: List[CombinedColumnDef] = field(default_factory=list)
    invalid: List[CombinedColumnDef] = field(default_factory=list)


def make_combined_column(name: str, source_columns: Sequence[str], side) -> CombinedColumnDef:
    """
    Build a new combined column definition with a generated id.

    Raises:
        ValueError: If name is blank or no source columns are given
    """
    if not name or not str(name).strip():
        raise ValueError("Combined column name cannot be empty")
    if not source_columns:
        raise ValueError("Combined column needs at least one source column")
    side = Side.parse(side)
    return CombinedColumnDef(
        id=f"combined_{side.value}_{uuid.uuid4().hex[:12]}",
        name=str(name).strip(),
        source_columns=tuple(source_columns),
        side=side,
    )


class CombinedColumnResolver:
    """
    Resolves values of combined columns.

    Source values are joined in declared order with ``separator``; NULL and
    empty-string values are skipped. When every source value is skipped the
    combined value is None.

    Example:
        >>> full_name = make_combined_column('FullName', ['First', 'Last'], 'left')
        >>> resolver = CombinedColumnResolver()
        >>> resolver.resolve_value({'First': 'Ada', 'Last': 'Lovelace'}, 'FullName', [full_name])
        'Ada Lovelace'
    """

    def __init__(self, separator: str = DEFAULT_SEPARATOR):
        self.separator = separator

    def find(
        self,
        column_name: str,
        defs: Iterable[CombinedColumnDef],
        side: Optional[Side] = None,
    ) -> Optional[CombinedColumnDef]:
        """Return the definition named ``column_name`` for ``side``, if any"""
        for definition in defs:
            if definition.name == column_name and definition.applies_to(side):
                return definition
        return None

    def combine(self, row: Mapping[str, Any], definition: CombinedColumnDef) -> Optional[str]:
        """Join a row's source values for one definition"""
        parts = []
        for source in definition.source_columns:
            value = row.get(source)
            if is_null(value):
                continue
            text = canonical_text(value)
            if text == "":
                continue
            parts.append(text)
        if not parts:
            return None
        return self.separator.join(parts)

    def resolve_value(
        self,
        row: Mapping[str, Any],
        column_name: str,
        defs: Iterable[CombinedColumnDef],
        side: Optional[Side] = None,
    ) -> Any:
        """
        Get the value of a column for a row.

        Args:
            row: Row mapping
            column_name: Real or combined column name
            defs: Combined column definitions in effect
            side: Side the row belongs to; None accepts definitions of any side

        Returns:
            The joined value for a combined column, otherwise ``row[column_name]``
            unchanged (None when the row has no such key).
        """
        definition = self.find(column_name, defs, side)
        if definition is None:
            return row.get(column_name)
        return self.combine(row, definition)

    def validate(
        self,
        defs: Iterable[CombinedColumnDef],
        available_columns: Iterable[str],
    ) -> CombinedValidation:
        """Split definitions into those whose source columns all exist and the rest"""
        available = set(available_columns)
        result = CombinedValidation()
        for definition in defs:
            if all(source in available for source in definition.source_columns):
                result.valid.append(definition)
            else:
                missing = [s for s in definition.source_columns if s not in available]
                logger.debug(
                    "Dropping combined column %r (%s): missing source columns %s",
                    definition.name, definition.side.value, missing,
                )
                result.invalid.append(definition)
        return result

    def resolve_rows(
        self,
        rows: Sequence[Mapping[str, Any]],
        defs: Iterable[CombinedColumnDef],
        side: Optional[Side] = None,
    ) -> List[Dict[str, Any]]:
        """
        Materialize combined columns into copies of ``rows``.

        Input rows are never mutated.
        """
        applicable = [d for d in defs if d.applies_to(side)]
        if not applicable:
            return [dict(row) for row in rows]
        resolved = []
        for row in rows:
            new_row = dict(row)
            for definition in applicable:
                new_row[definition.name] = self.combine(row, definition)
            resolved.append(new_row)
        return resolved


def columns_for_side(
    real_columns: Sequence[str],
    defs: Iterable[CombinedColumnDef],
    side,
) -> List[str]:
    """Real columns followed by the combined column names of ``side``"""
    side = Side.parse(side)
    names = list(real_columns)
    names.extend(d.name for d in defs if d.side is side and d.name not in names)
    return names


def column_mapping(
    real_columns: Sequence[str],
    defs: Iterable[CombinedColumnDef],
) -> Dict[str, List[str]]:
    """Map each display column to the real columns it reads from"""
    mapping = {col: [col] for col in real_columns}
    for definition in defs:
        mapping[definition.name] = list(definition.source_columns)
    return mapping


def resolve_value(
    row: Mapping[str, Any],
    column_name: str,
    defs: Iterable[CombinedColumnDef],
    side: Optional[Side] = None,
) -> Any:
    """Convenience wrapper around :meth:`CombinedColumnResolver.resolve_value`"""
    return CombinedColumnResolver().resolve_value(row, column_name, defs, side)


def validate_combined_columns(
    defs: Iterable[CombinedColumnDef],
    available_columns: Iterable[str],
) -> CombinedValidation:
    """Convenience wrapper around :meth:`CombinedColumnResolver.validate`"""
    return CombinedColumnResolver().validate(defs, available_columns)
