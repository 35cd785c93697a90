"""
Consolidated type handling for query results.

This module provides:
- ValueKind / Value: the generic value model handed to the host
- POSTGRES_TYPE_KINDS: the wire type dispatch table (type OID -> ValueKind)
- resolve_kind: resolve a PostgreSQL type code to a ValueKind
- Column: column metadata from cursor descriptions
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Self

from psycopg.postgres import types as pg_types

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueKind(enum.Enum):
    """Closed set of generic value kinds."""

    STRING = 'string'
    INTEGER = 'int'
    FLOAT = 'float'
    BOOLEAN = 'bool'
    BINARY = 'binary'
    NOTHING = 'nothing'


@dataclass(frozen=True)
class Value:
    """Tagged generic value, exactly one kind per instance.

    Build instances with the kind constructors, which check the payload:

    >>> Value.integer(7)
    Value(kind=<ValueKind.INTEGER: 'int'>, payload=7)
    >>> Value.string('alice').to_python()
    'alice'
    >>> Value.nothing().is_nothing
    True
    """
    kind: ValueKind
    payload: Any = None

    def __post_init__(self):
        expected = _PAYLOAD_TYPES[self.kind]
        if expected is None:
            if self.payload is not None:
                raise TypeError('nothing value carries no payload')
            return
        if type(self.payload) is not expected:
            raise TypeError(f'{self.kind.name} value needs {expected.__name__}, '
                            f'got {type(self.payload).__name__}')
        if self.kind is ValueKind.INTEGER and not INT64_MIN <= self.payload <= INT64_MAX:
            raise ValueError(f'integer out of 64-bit range: {self.payload}')

    @classmethod
    def string(cls, value: str) -> Self:
        return cls(ValueKind.STRING, value)

    @classmethod
    def integer(cls, value: int) -> Self:
        return cls(ValueKind.INTEGER, value)

    @classmethod
    def floating(cls, value: float) -> Self:
        return cls(ValueKind.FLOAT, value)

    @classmethod
    def boolean(cls, value: bool) -> Self:
        return cls(ValueKind.BOOLEAN, value)

    @classmethod
    def binary(cls, value: bytes) -> Self:
        return cls(ValueKind.BINARY, value)

    @classmethod
    def nothing(cls) -> Self:
        return NOTHING

    @property
    def is_nothing(self) -> bool:
        return self.kind is ValueKind.NOTHING

    def to_python(self) -> Any:
        """Unwrap to the plain payload, None for nothing."""
        return self.payload


_PAYLOAD_TYPES: dict[ValueKind, type | None] = {
    ValueKind.STRING: str,
    ValueKind.INTEGER: int,
    ValueKind.FLOAT: float,
    ValueKind.BOOLEAN: bool,
    ValueKind.BINARY: bytes,
    ValueKind.NOTHING: None,
}

NOTHING = Value(ValueKind.NOTHING)

Record = dict[str, Value]


# Type Resolution - PostgreSQL type codes -> value kinds

_oid = lambda x: pg_types.get(x).oid

POSTGRES_TYPE_KINDS: dict[int, ValueKind] = {}

for v in [_oid('text'), _oid('varchar'), _oid('bpchar'), _oid('name')]:
    POSTGRES_TYPE_KINDS[v] = ValueKind.STRING

for v in [_oid('int2'), _oid('int4'), _oid('int8')]:
    POSTGRES_TYPE_KINDS[v] = ValueKind.INTEGER

for v in [_oid('float4'), _oid('float8')]:
    POSTGRES_TYPE_KINDS[v] = ValueKind.FLOAT

POSTGRES_TYPE_KINDS[_oid('bool')] = ValueKind.BOOLEAN
POSTGRES_TYPE_KINDS[_oid('bytea')] = ValueKind.BINARY


def resolve_kind(type_code: Any) -> ValueKind | None:
    """Resolve a PostgreSQL type OID to a value kind.

    Returns None for wire types without a generic value kind; cells of such
    columns always map to nothing.

    >>> resolve_kind(23)
    <ValueKind.INTEGER: 'int'>
    >>> resolve_kind(1700) is None
    True
    """
    return POSTGRES_TYPE_KINDS.get(type_code)


def type_name(type_code: Any) -> str | None:
    """Name of a builtin PostgreSQL type, None when unknown."""
    info = pg_types.get(type_code) if isinstance(type_code, int) else None
    return info.name if info is not None else None


# Column - Metadata from cursor descriptions

class Column:
    """Result column metadata."""

    def __init__(self, name: str, type_code: Any, kind: ValueKind | None = None):
        self.name = name
        self.type_code = type_code
        self.kind = kind

    @classmethod
    def from_cursor_description(cls, description_item: Any) -> Self:
        """Create a Column from a psycopg cursor description item."""
        name = getattr(description_item, 'name', None)
        type_code = getattr(description_item, 'type_code', None)
        return cls(name, type_code, resolve_kind(type_code))

    @property
    def supported(self) -> bool:
        return self.kind is not None

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, type_code={self.type_code!r}, '
                f'kind={self.kind.name if self.kind else None})')

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return (self.name, self.type_code, self.kind) == (other.name, other.type_code, other.kind)

    def __hash__(self) -> int:
        return hash((self.name, self.type_code, self.kind))

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'type_code': self.type_code,
            'type_name': type_name(self.type_code),
            'kind': self.kind.value if self.kind else None,
        }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name for col in columns]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict]:
        return {col.name: col.to_dict() for col in columns}


def columns_from_cursor_description(cursor: Any) -> list[Column]:
    """Create Column objects from cursor description."""
    if cursor.description is None:
        return []
    return [Column.from_cursor_description(desc) for desc in cursor.description]


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
