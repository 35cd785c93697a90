"""
PostgreSQL connection handling.

This module provides:
1. The `connect()` coroutine opening one connection per invocation
2. The `ConnectionSupervisor` background task watching that connection
3. The `connection()` async context manager that always tears both down

Connections are never pooled, retried or reused.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import psycopg

from pgquery.adapters import register_loaders
from pgquery.exceptions import ConnectionError, error_detail
from pgquery.options import QueryOptions, load_options

__all__ = [
    'ConnectionSupervisor',
    'connect',
    'close',
    'connection',
]

logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """Background task supervising a connection for its lifetime.

    The task checks the connection every `poll_interval` seconds and stores a
    ConnectionError in `error` when it finds it broken. Server notices are
    logged as they arrive. Failures are captured, never raised from the task.
    """

    def __init__(self, connection: psycopg.AsyncConnection, poll_interval: float = 1.0) -> None:
        self.connection = connection
        self.poll_interval = poll_interval
        self.error: ConnectionError | None = None
        self._stopped = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the supervising task on the running event loop.
        """
        self.connection.add_notice_handler(self._on_notice)
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name='pgquery-connection-supervisor')
        self._task.add_done_callback(self._on_done)

    async def stop(self) -> None:
        """Stop supervising and wait for the task to finish.

        A captured error is left in `error`; it is reported, not raised.
        """
        self._stopped.set()
        if self._task is not None:
            await asyncio.wait([self._task])
            self._task = None
            self.connection.remove_notice_handler(self._on_notice)

    def check(self) -> None:
        """Raise the error captured by the task, if any.

        A connection found broken since the last poll is reported too.
        """
        if self.error is None and self.connection.broken:
            self._fail('connection to server was lost')
        if self.error is not None:
            raise self.error

    async def _run(self) -> None:
        while not self._stopped.is_set():
            if self.connection.broken or self.connection.closed:
                self._fail('connection to server was lost')
                return
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.poll_interval)
            except TimeoutError:
                pass

    def _fail(self, detail: str) -> None:
        self.error = ConnectionError(detail)
        logger.error(f'connection error: {detail}')

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug('Connection supervisor cancelled')
            return
        exc = task.exception()
        if exc is not None:
            self._fail(f'supervisor failed: {exc}')

    def _on_notice(self, diag: psycopg.errors.Diagnostic) -> None:
        severity = diag.severity_nonlocalized or diag.severity or 'NOTICE'
        level = logging.WARNING if severity == 'WARNING' else logging.INFO
        logger.log(level, f'Server {severity}: {diag.message_primary}')


async def connect(descriptor: str, options: QueryOptions | dict[str, Any] | None = None,
                  **kw: Any) -> tuple[psycopg.AsyncConnection, ConnectionSupervisor]:
    """Open one connection and start supervising it.

    Args:
        descriptor: libpq connection string or URI, passed through verbatim
        options: QueryOptions, a dict of options, or None for defaults
        **kw: Option overrides

    Returns
        The live connection and its running supervisor

    Raises
        ConnectionError: the server is unreachable, rejects the descriptor or
        the credentials, or `connect_timeout` elapses
    """
    options = load_options(options, **kw)
    try:
        conn = await psycopg.AsyncConnection.connect(
            descriptor, autocommit=True, **options.connect_kwargs())
    except psycopg.Error as e:
        logger.debug(f'Connection attempt failed: {e}')
        raise ConnectionError(error_detail(e)) from e

    register_loaders(conn.adapters)
    supervisor = ConnectionSupervisor(conn, options.poll_interval)
    supervisor.start()
    logger.debug(f'Connected to {conn.info.host}:{conn.info.port} as {conn.info.user}')
    return conn, supervisor


async def close(conn: psycopg.AsyncConnection, supervisor: ConnectionSupervisor) -> None:
    """Stop supervision and close the connection.
    """
    await supervisor.stop()
    if supervisor.error is not None:
        logger.warning(f'Connection reported an error during the invocation: {supervisor.error}')
    if not conn.closed:
        await conn.close()
    logger.debug('Connection closed')


@asynccontextmanager
async def connection(descriptor: str, options: QueryOptions | dict[str, Any] | None = None,
                     **kw: Any) -> AsyncIterator[tuple[psycopg.AsyncConnection, ConnectionSupervisor]]:
    """Async context manager around `connect()` and `close()`.

    >>> async def main():                                      # doctest: +SKIP
    ...     async with connection('host=localhost') as (conn, supervisor):
    ...         ...
    """
    conn, supervisor = await connect(descriptor, options, **kw)
    try:
        yield conn, supervisor
    finally:
        await close(conn, supervisor)
