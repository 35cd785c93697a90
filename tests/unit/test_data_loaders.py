import pandas as pd
from pgquery.options import iterdict_data_loader, pandas_data_loader
from pgquery.options import records_data_loader
from pgquery.types import NOTHING, Column, Value

from tests.fixtures.mocks import describe


def make_columns(*specs):
    return [Column.from_cursor_description(describe(name, type_name)) for name, type_name in specs]


def make_records():
    return [
        {'name': Value.string('Alice'), 'age': Value.integer(30), 'amount': NOTHING},
        {'name': Value.string('Bob'), 'age': Value.integer(25), 'amount': NOTHING},
    ]


def test_records_data_loader():
    """Test the default loader returns the records unchanged"""
    records = make_records()
    columns = make_columns(('name', 'text'), ('age', 'int4'), ('amount', 'numeric'))
    assert records_data_loader(records, columns) is records


def test_iterdict_data_loader():
    """Test iterdict_data_loader turns values into plain Python objects"""
    columns = make_columns(('name', 'text'), ('age', 'int4'), ('amount', 'numeric'))
    result = iterdict_data_loader(make_records(), columns)
    assert result == [
        {'name': 'Alice', 'age': 30, 'amount': None},
        {'name': 'Bob', 'age': 25, 'amount': None},
    ]


def test_pandas_data_loader():
    """Test pandas_data_loader function"""
    columns = make_columns(('name', 'text'), ('age', 'int4'), ('amount', 'numeric'))

    result = pandas_data_loader(make_records(), columns)
    assert isinstance(result, pd.DataFrame)
    assert list(result.columns) == Column.get_names(columns)
    assert len(result) == 2
    assert result.iloc[0]['name'] == 'Alice'
    assert result.iloc[1]['age'] == 25
    assert result.attrs['column_types']['amount']['type_name'] == 'numeric'
    assert result.attrs['column_types']['age']['kind'] == 'int'


def test_pandas_data_loader_empty_result():
    """Test an empty result keeps its columns"""
    columns = make_columns(('id', 'int4'), ('name', 'text'))
    result = pandas_data_loader([], columns)
    assert isinstance(result, pd.DataFrame)
    assert result.empty
    assert list(result.columns) == ['id', 'name']


def test_pandas_data_loader_duplicate_names():
    """Duplicate column names collapse like the records do"""
    columns = make_columns(('a', 'int4'), ('a', 'int4'))
    result = pandas_data_loader([{'a': Value.integer(2)}], columns)
    assert list(result.columns) == ['a']
    assert result.iloc[0]['a'] == 2


if __name__ == '__main__':
    __import__('pytest').main([__file__])
