import logging

import pytest


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    """Capture pgquery debug logs so failing tests show the SQL they ran."""
    caplog.set_level(logging.DEBUG, logger='pgquery')
    yield


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
    'tests.fixtures.postgres',
]
