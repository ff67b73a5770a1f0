"""
Boundary with the outside world.

The comparison core never talks to a database. Hosts plug in a table data
provider (paged, filtered row fetches) and a relationship provider (foreign
key metadata); this module defines those seams and the plain records that
cross them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableRef:
    """Fully qualified table name"""
    database: str
    schema: str
    table: str

    def __str__(self) -> str:
        return f"{self.database}.{self.schema}.{self.table}"


@dataclass(frozen=True)
class ForeignKey:
    """One foreign key column pair"""
    FK_NAME: str
    FK_SCHEMA: str
    FK_TABLE: str
    FK_COLUMN: str
    PK_SCHEMA: str
    PK_TABLE: str
    PK_COLUMN: str

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ForeignKey":
        """Build from a provider record, tolerating missing fields"""
        return cls(**{name: str(record.get(name) or '') for name in cls.__dataclass_fields__})

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass
class TablePage:
    """One page of rows as returned by a table data provider"""
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    has_more: bool = False
    filtered_row_count: Optional[int] = None
    relationships: List[ForeignKey] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        """Rows matching the active filters, falling back to rows on this page"""
        if self.filtered_row_count is not None:
            return self.filtered_row_count
        return len(self.rows)

    @classmethod
    def from_response(cls, payload: Mapping[str, Any]) -> "TablePage":
        """
        Build a page from a provider response.

        Accepts either the response envelope ``{"success", "data", "error"}``
        or the bare ``data`` mapping, with camelCase keys.

        Raises:
            ValueError: If the envelope reports ``success: false``
        """
        if not isinstance(payload, Mapping):
            raise TypeError(f"payload must be a mapping, got {type(payload).__name__}")
        data = payload
        if 'success' in payload or 'data' in payload:
            if payload.get('success') is False:
                message = payload.get('error') or payload.get('message') or 'unknown error'
                raise ValueError(f"Table data request failed: {message}")
            data = payload.get('data') or {}

        rows = [dict(row) for row in data.get('rows') or []]
        filtered = data.get('filteredRowCount')
        return cls(
            columns=[str(col) for col in data.get('columns') or []],
            rows=rows,
            total_rows=int(data.get('totalRows') or 0),
            has_more=bool(data.get('hasMore', False)),
            filtered_row_count=int(filtered) if filtered is not None else None,
            relationships=[ForeignKey.from_record(r) for r in data.get('relationships') or []],
        )


class TableDataProvider(Protocol):
    """Fetches a filtered page of rows for one table"""

    def fetch_rows(
        self,
        database: str,
        schema: str,
        table: str,
        limit: int,
        offset: int,
        include_references: bool = False,
        filters: Optional[Mapping[str, str]] = None,
    ) -> TablePage:
        ...


class RelationshipProvider(Protocol):
    """Fetches foreign key metadata for one table"""

    def fetch_foreign_keys(self, database: str, schema: str, table: str) -> List[ForeignKey]:
        ...


def active_filters(filters: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Drop blank filter values"""
    return {col: val for col, val in (filters or {}).items() if val is not None and str(val).strip()}


def fetch_page_pair(
    provider: TableDataProvider,
    left: TableRef,
    right: TableRef,
    limit: int,
    offset: int = 0,
    include_references: bool = False,
    left_filters: Optional[Mapping[str, str]] = None,
    right_filters: Optional[Mapping[str, str]] = None,
) -> Tuple[TablePage, TablePage]:
    """
    Fetch the same page window for both sides of a comparison.

    Provider errors propagate unchanged.

    Raises:
        ValueError: If limit is not positive or offset is negative
    """
    if limit <= 0:
        raise ValueError("limit must be positive")
    if offset < 0:
        raise ValueError("offset cannot be negative")
    pages = []
    for ref, filters in ((left, left_filters), (right, right_filters)):
        page = provider.fetch_rows(
            ref.database, ref.schema, ref.table, limit, offset,
            include_references, active_filters(filters),
        )
        logger.debug("Fetched %d rows from %s (offset %d, limit %d)", len(page.rows), ref, offset, limit)
        pages.append(page)
    return pages[0], pages[1]


def fetch_relationships(provider: RelationshipProvider, *tables: TableRef) -> List[ForeignKey]:
    """Foreign keys of every given table, duplicates removed, in fetch order"""
    seen = set()
    relationships = []
    for ref in tables:
        for fk in provider.fetch_foreign_keys(ref.database, ref.schema, ref.table):
            if not isinstance(fk, ForeignKey):
                fk = ForeignKey.from_record(fk)
            if fk not in seen:
                seen.add(fk)
                relationships.append(fk)
    logger.debug("Fetched %d relationships for %d tables", len(relationships), len(tables))
    return relationships
