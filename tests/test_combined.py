"""
Tests for combined columns
"""

import pytest

from vinzy_tablediff import (
    CombinedColumnDef,
    CombinedColumnResolver,
    Side,
    column_mapping,
    columns_for_side,
    make_combined_column,
    resolve_value,
    validate_combined_columns,
)


class TestMakeCombinedColumn:
    """Tests for building definitions"""

    def test_generated_id(self):
        definition = make_combined_column(' FullName ', ['First', 'Last'], 'left')

        assert definition.id.startswith('combined_left_')
        assert definition.name == 'FullName'
        assert definition.source_columns == ('First', 'Last')
        assert definition.side is Side.LEFT

    def test_ids_are_unique(self):
        first = make_combined_column('A', ['x'], Side.RIGHT)
        second = make_combined_column('A', ['x'], Side.RIGHT)
        assert first.id != second.id

    def test_blank_name_raises(self):
        with pytest.raises(ValueError, match="name cannot be empty"):
            make_combined_column('  ', ['First'], 'left')

    def test_no_sources_raises(self):
        with pytest.raises(ValueError, match="at least one source column"):
            make_combined_column('Name', [], 'left')

    def test_to_dict(self):
        definition = CombinedColumnDef('c1', 'FullName', ['First', 'Last'], 'right')
        assert definition.to_dict() == {
            'id': 'c1',
            'name': 'FullName',
            'source_columns': ['First', 'Last'],
            'side': 'right',
        }


class TestCombinedColumnResolver:
    """Tests for resolving combined values"""

    @pytest.fixture
    def full_name(self):
        """Left-side FullName = First + Last"""
        return CombinedColumnDef('c1', 'FullName', ('First', 'Last'), Side.LEFT)

    def test_join_in_declared_order(self, full_name):
        row = {'First': 'Ada', 'Last': 'Lovelace'}
        assert resolve_value(row, 'FullName', [full_name]) == 'Ada Lovelace'

    def test_nulls_and_empty_strings_skipped(self, full_name):
        resolver = CombinedColumnResolver()
        assert resolver.resolve_value({'First': None, 'Last': 'Turing'}, 'FullName', [full_name]) == 'Turing'
        assert resolver.resolve_value({'First': 'Alan', 'Last': ''}, 'FullName', [full_name]) == 'Alan'

    def test_all_sources_skipped_gives_none(self, full_name):
        assert resolve_value({'First': None, 'Last': ''}, 'FullName', [full_name]) is None
        assert resolve_value({}, 'FullName', [full_name]) is None

    def test_non_string_values_use_canonical_text(self):
        definition = CombinedColumnDef('c2', 'Combo', ('A', 'B'), Side.LEFT)
        assert resolve_value({'A': 2.0, 'B': True}, 'Combo', [definition]) == '2 true'

    def test_custom_separator(self, full_name):
        resolver = CombinedColumnResolver(separator=', ')
        assert resolver.resolve_value({'First': 'Ada', 'Last': 'L'}, 'FullName', [full_name]) == 'Ada, L'

    def test_pass_through(self, full_name):
        """Non-combined columns return the raw value"""
        row = {'First': 'Ada', 'Last': 'Lovelace'}
        assert resolve_value(row, 'First', [full_name]) == 'Ada'
        assert resolve_value(row, 'Missing', [full_name]) is None

    def test_side_filter(self, full_name):
        """A definition only applies to rows of its own side"""
        row = {'First': 'Ada', 'Last': 'Lovelace', 'FullName': 'raw'}
        assert resolve_value(row, 'FullName', [full_name], Side.RIGHT) == 'raw'
        assert resolve_value(row, 'FullName', [full_name], Side.LEFT) == 'Ada Lovelace'

    def test_validate(self, full_name):
        broken = CombinedColumnDef('c3', 'Broken', ('First', 'Nope'), Side.LEFT)
        validation = validate_combined_columns([full_name, broken], ['First', 'Last'])

        assert validation.valid == [full_name]
        assert validation.invalid == [broken]

    def test_resolve_rows_does_not_mutate(self, full_name):
        rows = [{'First': 'Ada', 'Last': 'Lovelace'}]
        resolved = CombinedColumnResolver().resolve_rows(rows, [full_name], Side.LEFT)

        assert resolved == [{'First': 'Ada', 'Last': 'Lovelace', 'FullName': 'Ada Lovelace'}]
        assert 'FullName' not in rows[0]
        assert resolved[0] is not rows[0]

    def test_resolve_rows_other_side(self, full_name):
        rows = [{'First': 'Ada'}]
        assert CombinedColumnResolver().resolve_rows(rows, [full_name], Side.RIGHT) == [{'First': 'Ada'}]


class TestColumnListing:
    """Tests for column lists that include combined columns"""

    def test_columns_for_side(self):
        left = CombinedColumnDef('c1', 'FullName', ('First', 'Last'), Side.LEFT)
        right = CombinedColumnDef('c2', 'Other', ('X',), Side.RIGHT)

        assert columns_for_side(['First', 'Last'], [left, right], 'left') == ['First', 'Last', 'FullName']
        assert columns_for_side(['X'], [left, right], 'right') == ['X', 'Other']

    def test_column_mapping(self):
        definition = CombinedColumnDef('c1', 'FullName', ('First', 'Last'), Side.LEFT)
        assert column_mapping(['Id'], [definition]) == {'Id': ['Id'], 'FullName': ['First', 'Last']}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
