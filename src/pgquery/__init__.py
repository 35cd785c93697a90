"""
Run a parameterless PostgreSQL query and return generic records.

Each row becomes a `dict[str, Value]` keyed by column name, where every
`Value` is one of a small closed set of kinds: string, int, float, bool,
binary or nothing. Column types without a generic kind give nothing.

    records = pgquery.select('host=localhost user=postgres', 'SELECT 1 AS one')
    records[0]['one'].to_python()  # 1
"""
__version__ = '0.1.0'

from pgquery.connection import ConnectionSupervisor, connect, connection
from pgquery.cursor import execute
from pgquery.exceptions import ConnectionError, DatabaseError, ExecutionError
from pgquery.exceptions import PrepareError, ValidationError
from pgquery.options import QueryOptions, iterdict_data_loader
from pgquery.options import pandas_data_loader, records_data_loader
from pgquery.query import psql, select, select_async
from pgquery.row import coerce, map_row, map_rows
from pgquery.types import NOTHING, Column, Record, Value, ValueKind

__all__ = [
    'connect',
    'connection',
    'ConnectionSupervisor',
    'execute',
    'select',
    'select_async',
    'psql',
    'map_rows',
    'map_row',
    'coerce',
    'QueryOptions',
    'records_data_loader',
    'iterdict_data_loader',
    'pandas_data_loader',
    'Column',
    'Record',
    'Value',
    'ValueKind',
    'NOTHING',
    'DatabaseError',
    'ConnectionError',
    'PrepareError',
    'ExecutionError',
    'ValidationError',
]
