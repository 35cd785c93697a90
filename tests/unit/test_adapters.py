"""
Tests for the per-cell result loaders registered on connections.
"""
import psycopg
import pytest
from pgquery.adapters import INVALID_OID, UNDECODABLE, RawBinaryLoader
from pgquery.adapters import RawTextLoader, SafeLoader, create_safe_loader
from pgquery.adapters import register_loaders
from psycopg import pq
from psycopg.adapt import AdaptersMap

from tests.fixtures.mocks import oid


@pytest.fixture
def adapters():
    adapters = AdaptersMap(psycopg.adapters)
    register_loaders(adapters)
    return adapters


def text_loader(adapters, type_name):
    type_oid = oid(type_name)
    return adapters.get_loader(type_oid, pq.Format.TEXT)(type_oid)


@pytest.mark.parametrize('type_name', [
    'text', 'varchar', 'bpchar', 'name', 'int2', 'int4', 'int8',
    'float4', 'float8', 'bool', 'bytea',
])
def test_supported_types_get_safe_loaders(adapters, type_name):
    loader_cls = adapters.get_loader(oid(type_name), pq.Format.TEXT)
    assert issubclass(loader_cls, SafeLoader)
    assert loader_cls.format == pq.Format.TEXT


@pytest.mark.parametrize('type_name', ['text', 'int4', 'float8', 'bool', 'bytea'])
def test_binary_loaders_are_wrapped_too(adapters, type_name):
    loader_cls = adapters.get_loader(oid(type_name), pq.Format.BINARY)
    assert issubclass(loader_cls, SafeLoader)
    assert loader_cls.format == pq.Format.BINARY


@pytest.mark.parametrize('type_name', ['numeric', 'date', 'timestamp', 'timestamptz', 'jsonb', 'uuid'])
def test_unsupported_types_get_raw_loaders(adapters, type_name):
    assert adapters.get_loader(oid(type_name), pq.Format.TEXT) is RawTextLoader
    assert adapters.get_loader(oid(type_name), pq.Format.BINARY) is RawBinaryLoader


def test_arrays_and_unknown_oids_get_raw_loaders(adapters):
    int4_array = psycopg.postgres.types.get('int4').array_oid
    assert adapters.get_loader(int4_array, pq.Format.TEXT) is RawTextLoader
    assert adapters.get_loader(INVALID_OID, pq.Format.TEXT) is RawTextLoader


def test_safe_loaders_decode_valid_data(adapters):
    assert text_loader(adapters, 'int4').load(b'42') == 42
    assert text_loader(adapters, 'int8').load(b'-9223372036854775808') == -9223372036854775808
    assert text_loader(adapters, 'float8').load(b'1.5') == 1.5
    assert text_loader(adapters, 'bool').load(b't') is True
    assert text_loader(adapters, 'text').load(b'hello') == 'hello'
    assert text_loader(adapters, 'bytea').load(b'\\x0102') == b'\x01\x02'


def test_safe_loaders_turn_failures_into_undecodable(adapters):
    """An undecodable cell does not raise"""
    assert text_loader(adapters, 'int4').load(b'forty-two') is UNDECODABLE
    assert text_loader(adapters, 'float8').load(b'pi') is UNDECODABLE
    assert text_loader(adapters, 'text').load(b'\xff\xfe') is UNDECODABLE


def test_raw_loaders_keep_wire_bytes(adapters):
    assert text_loader(adapters, 'date').load(b'infinity') == b'infinity'
    assert text_loader(adapters, 'numeric').load(memoryview(b'12.50')) == b'12.50'


def test_register_loaders_twice_does_not_rewrap(adapters):
    before = adapters.get_loader(oid('int4'), pq.Format.TEXT)
    register_loaders(adapters)
    assert adapters.get_loader(oid('int4'), pq.Format.TEXT) is before


def test_create_safe_loader_names_the_wrapper():
    class BrokenLoader(psycopg.adapt.Loader):
        def load(self, data):
            raise ValueError('boom')

    loader_cls = create_safe_loader(BrokenLoader, pq.Format.TEXT)
    assert loader_cls.__name__ == 'SafeBrokenLoader'
    assert loader_cls(0).load(b'x') is UNDECODABLE


def test_undecodable_is_a_falsy_singleton():
    assert UNDECODABLE is type(UNDECODABLE)()
    assert not UNDECODABLE
    assert repr(UNDECODABLE) == 'UNDECODABLE'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
