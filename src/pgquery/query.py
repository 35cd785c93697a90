"""
Query operations for the host.

One invocation opens a connection, runs one parameterless query, maps the
buffered rows to generic records and closes the connection. Any fatal error
surfaces as a single DatabaseError with a labeled message; no partial result
is ever returned.
"""
import asyncio
import logging
from typing import Any

from pgquery.connection import ConnectionSupervisor, connection
from pgquery.cursor import execute
from pgquery.exceptions import ExecutionError, ValidationError
from pgquery.options import QueryOptions, load_options
from pgquery.row import map_rows
from pgquery.types import Column

__all__ = ['select_async', 'select', 'psql']

logger = logging.getLogger(__name__)


async def _run(conn: Any, supervisor: ConnectionSupervisor, query: str,
               options: QueryOptions) -> tuple[list[Column], list[tuple]]:
    """Execute under the configured timeout, deferring to the supervisor's error.
    """
    try:
        if options.query_timeout > 0:
            return await asyncio.wait_for(execute(conn, query), options.query_timeout)
        return await execute(conn, query)
    except TimeoutError as e:
        raise ExecutionError(f'query timed out after {options.query_timeout}s') from e
    except ExecutionError:
        supervisor.check()
        raise


async def select_async(descriptor: str, query: str,
                       options: QueryOptions | dict[str, Any] | None = None,
                       **kw: Any) -> Any:
    """Run a query and return its records through the configured data loader.

    Args:
        descriptor: libpq connection string or URI
        query: SQL text without parameters
        options: QueryOptions, a dict of options, or None for defaults
        **kw: Option overrides

    Returns
        By default a list of records, one `dict[str, Value]` per row
    """
    options = load_options(options, **kw)
    async with connection(descriptor, options) as (conn, supervisor):
        columns, rows = await _run(conn, supervisor, query, options)
    records = map_rows(columns, rows)
    logger.debug(f'Mapped {len(records)} records with {len(columns)} columns')
    return options.data_loader(records, columns)


def select(descriptor: str, query: str,
           options: QueryOptions | dict[str, Any] | None = None, **kw: Any) -> Any:
    """Blocking `select_async()` for callers without an event loop.
    """
    return asyncio.run(select_async(descriptor, query, options, **kw))


def psql(conn: Any, query: Any, options: QueryOptions | dict[str, Any] | None = None,
         **kw: Any) -> Any:
    """Execute PostgreSQL query.

    Entry point for the host's `psql <conn> <query>` command. Both arguments
    must be strings.
    """
    for param in (conn, query):
        if not isinstance(param, str):
            raise ValidationError(f'Unrecognized type in params: {param!r}')
    return select(conn, query, options, **kw)
