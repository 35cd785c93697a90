"""
Query execution on a live PostgreSQL connection.

The query runs as a server-side prepared statement without parameters and
the whole result set is buffered before returning.
"""
import logging
import time
from functools import wraps
from typing import Any

import psycopg

from pgquery.exceptions import PrepareError, classify_error
from pgquery.types import Column, columns_from_cursor_description

__all__ = ['execute', 'dumpsql']

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and their timing."""
    @wraps(func)
    async def wrapper(conn: Any, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}')
        try:
            return await func(conn, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}')
            raise
        finally:
            logger.debug(f'Query time: {time.time() - start:.4f}s')
    return wrapper


@dumpsql
async def execute(conn: psycopg.AsyncConnection, query: str) -> tuple[list[Column], list[tuple]]:
    """Prepare and run a query, returning its column metadata and rows.

    Rows keep the order the server produced them in. A query matching no
    rows returns an empty row list with its columns; a statement without a
    result set returns no columns and no rows.

    Raises
        PrepareError: the query is empty, invalid or references unknown objects
        ExecutionError: the server rejected the query while running it
    """
    if not query or not query.strip():
        raise PrepareError('empty query')

    try:
        async with conn.cursor() as cursor:
            await cursor.execute(query, prepare=True)
            columns = columns_from_cursor_description(cursor)
            rows = await cursor.fetchall() if cursor.description is not None else []
            logger.debug(f'Query result: {cursor.statusmessage} ({len(rows)} rows, {len(columns)} columns)')
    except psycopg.Error as e:
        raise classify_error(e) from e

    return columns, rows
