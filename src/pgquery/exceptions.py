"""
Query-specific exception classes.

Every fatal error reaching the host is a `DatabaseError` whose string form
is a single labeled, user-facing message. Driver exceptions are chained.
"""
import psycopg
from psycopg import errors as pg_errors

__all__ = [
    'DatabaseError',
    'ConnectionError',
    'PrepareError',
    'ExecutionError',
    'ValidationError',
    'classify_error',
    'error_detail',
]


class DatabaseError(Exception):
    """Base class for all pgquery errors.
    """
    label = 'Database error'

    def __init__(self, detail: str = '') -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        if not self.detail:
            return self.label
        return f'{self.label}: {self.detail}'


class ConnectionError(DatabaseError):
    """Error establishing or maintaining the database connection.
    """
    label = 'Connection failed'


class PrepareError(DatabaseError):
    """Query text is invalid or references unknown objects.
    """
    label = 'Invalid query'


class ExecutionError(DatabaseError):
    """Server rejected the query while running it.
    """
    label = 'Query failed'


class ValidationError(DatabaseError):
    """Error in host argument validation.
    """
    label = 'Invalid arguments'


SQLSTATE_CLASS_SYNTAX_OR_ACCESS = '42'
SQLSTATE_INSUFFICIENT_PRIVILEGE = '42501'


def error_detail(exc: BaseException) -> str:
    """First line of the driver message, which carries the server's primary text.
    """
    diag = getattr(exc, 'diag', None)
    primary = getattr(diag, 'message_primary', None) if diag is not None else None
    if primary:
        return primary
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


def classify_error(exc: BaseException) -> DatabaseError:
    """Map an exception raised while running a query to the query taxonomy.

    SQLSTATE class 42 (syntax error or unknown object) is a prepare failure,
    except insufficient privilege which the server reports at run time.

    >>> classify_error(pg_errors.SyntaxError('syntax error at or near "SELEC"'))
    PrepareError('syntax error at or near "SELEC"')
    >>> classify_error(pg_errors.DivisionByZero('division by zero'))
    ExecutionError('division by zero')
    >>> classify_error(pg_errors.InsufficientPrivilege('permission denied'))
    ExecutionError('permission denied')
    """
    if isinstance(exc, DatabaseError):
        return exc
    detail = error_detail(exc)
    sqlstate = getattr(exc, 'sqlstate', None)
    if sqlstate and sqlstate.startswith(SQLSTATE_CLASS_SYNTAX_OR_ACCESS):
        if sqlstate != SQLSTATE_INSUFFICIENT_PRIVILEGE:
            return PrepareError(detail)
    if isinstance(exc, psycopg.ProgrammingError) and sqlstate is None:
        return PrepareError(detail)
    return ExecutionError(detail)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
