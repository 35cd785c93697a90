from collections.abc import Callable
from typing import Any

import pandas as pd
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgquery.types import Column, Record

__all__ = [
    'QueryOptions',
    'records_data_loader',
    'iterdict_data_loader',
    'pandas_data_loader',
    'load_options',
]


def records_data_loader(records: list[Record], columns: list[Column], **kwargs) -> list[Record]:
    """Default loader, hands back the generic records unchanged.
    """
    return records


def iterdict_data_loader(records: list[Record], columns: list[Column], **kwargs) -> list[dict]:
    """Minimal loader returning plain Python values.

    Nothing becomes None.
    """
    return [{name: value.to_python() for name, value in record.items()} for record in records]


def pandas_data_loader(records: list[Record], columns: list[Column], **kwargs) -> pd.DataFrame:
    """Load records into a pandas DataFrame.

    Always returns a DataFrame, with columns preserved for empty results.
    Column metadata is kept in the DataFrame.attrs attribute.
    """
    names = list(dict.fromkeys(Column.get_names(columns)))
    if not records:
        df = pd.DataFrame(columns=names)
    else:
        df = pd.DataFrame.from_records(iterdict_data_loader(records, columns), columns=names)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


class QueryOptions(BaseSettings):
    """Options

    Timeouts are in seconds, 0 disables them. Values can be set with
    `PGQUERY_`-prefixed environment variables, e.g. `PGQUERY_QUERY_TIMEOUT=30`.

    - connect_timeout: passed to libpq as `connect_timeout`
    - query_timeout: bound on preparing, running and fetching the query
    - poll_interval: how often the supervisor checks the connection
    - appname: sent as `application_name` when set
    - data_loader: `(records, columns) -> result` applied to the records
    """
    model_config = SettingsConfigDict(env_prefix='PGQUERY_', extra='ignore')

    connect_timeout: int = 0
    query_timeout: float = 0
    poll_interval: float = 1.0
    appname: str | None = None
    data_loader: Callable[..., Any] = records_data_loader

    def connect_kwargs(self) -> dict[str, Any]:
        """Extra libpq parameters merged over the connection descriptor."""
        kwargs: dict[str, Any] = {}
        if self.connect_timeout > 0:
            kwargs['connect_timeout'] = self.connect_timeout
        if self.appname:
            kwargs['application_name'] = self.appname
        return kwargs


def load_options(options: QueryOptions | dict[str, Any] | None = None, **kw: Any) -> QueryOptions:
    """Build options from an instance, a dict or keyword arguments.

    Keyword arguments override fields of a given instance or dict.
    """
    if isinstance(options, QueryOptions):
        return options.model_copy(update=kw) if kw else options
    return QueryOptions(**(options or {}), **kw)
