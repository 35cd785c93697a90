"""Row mapping from decoded result rows to generic records."""
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pgquery.types import INT64_MAX, INT64_MIN, NOTHING, Column, Record
from pgquery.types import Value, ValueKind

logger = logging.getLogger(__name__)


def _to_string(value: Any) -> Value:
    if isinstance(value, str):
        return Value.string(str(value))
    return NOTHING


def _to_integer(value: Any) -> Value:
    # bool is an int subclass
    if isinstance(value, int) and not isinstance(value, bool):
        if INT64_MIN <= value <= INT64_MAX:
            return Value.integer(int(value))
    return NOTHING


def _to_float(value: Any) -> Value:
    if isinstance(value, float):
        return Value.floating(float(value))
    return NOTHING


def _to_boolean(value: Any) -> Value:
    if isinstance(value, bool):
        return Value.boolean(value)
    return NOTHING


def _to_binary(value: Any) -> Value:
    if isinstance(value, bytes | bytearray | memoryview):
        return Value.binary(bytes(value))
    return NOTHING


HANDLERS = {
    ValueKind.STRING: _to_string,
    ValueKind.INTEGER: _to_integer,
    ValueKind.FLOAT: _to_float,
    ValueKind.BOOLEAN: _to_boolean,
    ValueKind.BINARY: _to_binary,
}


def coerce(column: Column, value: Any) -> Value:
    """Coerce one decoded cell to a generic value.

    NULL cells, unsupported column types, undecodable cells and values whose
    Python type does not match the column kind all give nothing.

    >>> from pgquery.types import resolve_kind
    >>> coerce(Column('id', 23, resolve_kind(23)), 7)
    Value(kind=<ValueKind.INTEGER: 'int'>, payload=7)
    >>> coerce(Column('amount', 1700), b'12.50').is_nothing
    True
    """
    if value is None or column.kind is None:
        return NOTHING
    return HANDLERS[column.kind](value)


def map_row(columns: Sequence[Column], row: Sequence[Any]) -> Record:
    """Convert one row to a record keyed by column name.

    Fields follow column order. A repeated column name keeps the last value
    at the position of its first occurrence.
    """
    record: Record = {}
    for column, value in zip(columns, row, strict=True):
        record[column.name] = coerce(column, value)
    return record


def map_rows(columns: Sequence[Column], rows: Iterable[Sequence[Any]]) -> list[Record]:
    """Convert rows to records, preserving row order.
    """
    records = [map_row(columns, row) for row in rows]
    skipped = [c.name for c in columns if c.kind is None]
    if skipped and records:
        logger.debug(f'Columns without a generic value kind mapped to nothing: {skipped}')
    return records


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
