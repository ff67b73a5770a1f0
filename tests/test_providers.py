"""
Tests for the provider boundary
"""

from typing import List

import pytest

from vinzy_tablediff import (
    ForeignKey,
    TablePage,
    TableRef,
    fetch_page_pair,
    fetch_relationships,
)


FK_RECORD = {
    'FK_NAME': 'FK_Orders_Customers',
    'FK_SCHEMA': 'dbo',
    'FK_TABLE': 'Orders',
    'FK_COLUMN': 'CustomerId',
    'PK_SCHEMA': 'dbo',
    'PK_TABLE': 'Customers',
    'PK_COLUMN': 'Id',
}


class FakeProvider:
    """In-memory provider recording every call"""

    def __init__(self, pages=None, foreign_keys=None):
        self.pages = pages or {}
        self.foreign_keys = foreign_keys or {}
        self.calls = []

    def fetch_rows(self, database, schema, table, limit, offset, include_references=False, filters=None):
        self.calls.append((database, schema, table, limit, offset, include_references, filters))
        return self.pages.get(table, TablePage())

    def fetch_foreign_keys(self, database, schema, table) -> List[ForeignKey]:
        return self.foreign_keys.get(table, [])


class TestTablePage:
    """Tests for parsing provider responses"""

    def test_from_envelope(self):
        page = TablePage.from_response({
            'success': True,
            'data': {
                'columns': ['Id', 'Name'],
                'rows': [{'Id': 1, 'Name': 'Ada'}],
                'totalRows': 10,
                'hasMore': True,
                'filteredRowCount': 5,
                'relationships': [FK_RECORD],
            },
        })

        assert page.columns == ['Id', 'Name']
        assert page.rows == [{'Id': 1, 'Name': 'Ada'}]
        assert page.total_rows == 10
        assert page.has_more is True
        assert page.row_count == 5
        assert page.relationships == [ForeignKey(**FK_RECORD)]

    def test_from_bare_data(self):
        page = TablePage.from_response({'columns': ['Id'], 'rows': [{'Id': 1}, {'Id': 2}], 'totalRows': 2})

        assert page.total_rows == 2
        assert page.has_more is False
        assert page.filtered_row_count is None
        assert page.row_count == 2

    def test_failed_envelope_raises(self):
        with pytest.raises(ValueError, match="Table data request failed: timeout"):
            TablePage.from_response({'success': False, 'error': 'timeout'})

    def test_payload_must_be_mapping(self):
        with pytest.raises(TypeError, match="payload must be a mapping"):
            TablePage.from_response([])


class TestForeignKey:
    """Tests for foreign key records"""

    def test_from_record_tolerates_missing_fields(self):
        fk = ForeignKey.from_record({'FK_NAME': 'fk', 'FK_TABLE': 'Orders'})

        assert fk.FK_NAME == 'fk'
        assert fk.PK_TABLE == ''

    def test_to_dict(self):
        assert ForeignKey.from_record(FK_RECORD).to_dict() == FK_RECORD


class TestFetching:
    """Tests for paired fetches"""

    @pytest.fixture
    def refs(self):
        return TableRef('db1', 'dbo', 'Orders'), TableRef('db2', 'sales', 'OrdersCopy')

    def test_table_ref_str(self, refs):
        assert str(refs[0]) == 'db1.dbo.Orders'

    def test_fetch_page_pair(self, refs):
        left_page = TablePage(columns=['Id'], rows=[{'Id': 1}], total_rows=1)
        right_page = TablePage(columns=['Id'], rows=[], total_rows=0)
        provider = FakeProvider(pages={'Orders': left_page, 'OrdersCopy': right_page})

        left, right = fetch_page_pair(
            provider, *refs, limit=50, offset=100,
            left_filters={'Name': 'Ada', 'City': '  '},
        )

        assert left is left_page
        assert right is right_page
        assert provider.calls == [
            ('db1', 'dbo', 'Orders', 50, 100, False, {'Name': 'Ada'}),
            ('db2', 'sales', 'OrdersCopy', 50, 100, False, {}),
        ]

    @pytest.mark.parametrize('limit,offset', [(0, 0), (10, -1)])
    def test_invalid_window(self, refs, limit, offset):
        with pytest.raises(ValueError):
            fetch_page_pair(FakeProvider(), *refs, limit=limit, offset=offset)

    def test_provider_errors_propagate(self, refs):
        class BrokenProvider(FakeProvider):
            def fetch_rows(self, *args, **kwargs):
                raise ConnectionError("database unavailable")

        with pytest.raises(ConnectionError):
            fetch_page_pair(BrokenProvider(), *refs, limit=10)

    def test_fetch_relationships(self, refs):
        fk = ForeignKey(**FK_RECORD)
        provider = FakeProvider(foreign_keys={'Orders': [fk], 'OrdersCopy': [FK_RECORD]})

        assert fetch_relationships(provider, *refs) == [fk]


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
