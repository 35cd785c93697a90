"""
Result loaders registered on each PostgreSQL connection.

psycopg decodes every cell with the loader registered for the column's type
OID, and a decoding failure aborts the whole fetch. This module makes
decoding failures local to one cell:

1. Types with a generic value kind keep their psycopg loader, wrapped in a
   SafeLoader that returns UNDECODABLE instead of raising
2. Every other type (and the fallback loader used for unknown OIDs) gets a
   raw loader that keeps the wire bytes without decoding them

Usage:
    conn = await psycopg.AsyncConnection.connect(...)
    register_loaders(conn.adapters)
"""
import logging
from typing import Any

from psycopg import adapt, pq
from psycopg.postgres import types as pg_types

from pgquery.types import POSTGRES_TYPE_KINDS

logger = logging.getLogger(__name__)

INVALID_OID = 0
FORMATS = (pq.Format.TEXT, pq.Format.BINARY)


class Undecodable:
    """Marker for a cell the driver could not decode."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNDECODABLE'

    def __bool__(self) -> bool:
        return False


UNDECODABLE = Undecodable()


class SafeLoader(adapt.Loader):
    """Delegate to another loader, turning its failures into UNDECODABLE.
    """

    inner: type[adapt.Loader]

    def __init__(self, oid: int, context: Any = None) -> None:
        super().__init__(oid, context)
        self._inner = self.inner(oid, context)

    def load(self, data: Any) -> Any:
        try:
            return self._inner.load(data)
        except Exception as e:
            logger.debug(f'Could not decode value of type oid {self.oid}: {e}')
            return UNDECODABLE


def create_safe_loader(loader_cls: type[adapt.Loader],
                       format: pq.Format) -> type[SafeLoader]:
    """Factory for SafeLoader classes wrapping `loader_cls`.

    Args:
        loader_cls: psycopg loader class to delegate to
        format: Wire format the wrapped loader decodes

    Returns
        A SafeLoader subclass registrable with psycopg
    """
    class WrappedLoader(SafeLoader):
        inner = loader_cls

    WrappedLoader.format = format
    WrappedLoader.__name__ = f'Safe{loader_cls.__name__}'
    WrappedLoader.__qualname__ = WrappedLoader.__name__
    return WrappedLoader


class RawTextLoader(adapt.Loader):
    """Keep text-format wire data as bytes."""

    format = pq.Format.TEXT

    def load(self, data: Any) -> bytes:
        return bytes(data)


class RawBinaryLoader(RawTextLoader):
    """Keep binary-format wire data as bytes."""

    format = pq.Format.BINARY


def _raw_oids() -> set[int]:
    """OIDs of builtin types, and their arrays, without a generic value kind."""
    oids = {INVALID_OID}
    for info in pg_types:
        for oid in (info.oid, getattr(info, 'array_oid', 0)):
            if oid and oid not in POSTGRES_TYPE_KINDS:
                oids.add(oid)
    return oids


def register_loaders(adapters: adapt.AdaptersMap) -> None:
    """Register safe and raw loaders on an adapters map.

    Args:
        adapters: Connection (or cursor) adapters map to update
    """
    wrapped = 0
    for oid in POSTGRES_TYPE_KINDS:
        for fmt in FORMATS:
            loader_cls = adapters.get_loader(oid, fmt)
            if loader_cls is None or issubclass(loader_cls, SafeLoader):
                continue
            adapters.register_loader(oid, create_safe_loader(loader_cls, fmt))
            wrapped += 1

    raw_oids = _raw_oids()
    for oid in raw_oids:
        adapters.register_loader(oid, RawTextLoader)
        adapters.register_loader(oid, RawBinaryLoader)

    logger.debug(f'Registered {wrapped} safe loaders and raw loaders for {len(raw_oids)} types')
