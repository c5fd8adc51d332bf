"""
PostgreSQL-specific strategy implementation.

Queries run through psycopg 3 on a server-side (named) cursor inside a
read-only transaction. Column types come from the type OIDs in the cursor
description.
"""
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbloader.adapters.type_mapping import SourceType, postgres_types
from dbloader.strategy.base import LoaderStrategy, register_strategy

if TYPE_CHECKING:
    from dbloader.options import LoaderOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(LoaderStrategy):
    """PostgreSQL-specific operations.
    """

    example_url = 'postgresql://localhost:5432/db'

    def build_url(self, url: sa.URL, credentials: Mapping[str, str]) -> sa.URL:
        """Force the psycopg driver and apply the credential file's user/password.
        """
        return url.set(
            drivername='postgresql+psycopg',
            username=credentials.get('user', url.username),
            password=credentials.get('password', url.password),
        )

    def get_engine_kwargs(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        connect_args = {'application_name': options.appname}
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {'connect_args': connect_args}

    def execution_options(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Stream through a named cursor in a read-only transaction.
        """
        return {
            **super().execution_options(options),
            'postgresql_readonly': True,
            'stream_results': options.stream_results,
            'max_row_buffer': options.fetch_size,
        }

    def display_size(self, description_item: Any) -> int | None:
        """psycopg reports the declared length of char(n)/varchar(n) columns.
        """
        size = getattr(description_item, 'display_size', None)
        return size if isinstance(size, int) and size > 0 else None

    def resolve_source_type(self, type_code: Any,
                            sample: Sequence[Any] = ()) -> SourceType | None:
        return postgres_types.get(type_code)

    def error_codes(self, exc: BaseException) -> tuple[int | str | None, str | None]:
        """psycopg exposes the SQLSTATE; the server has no separate vendor code.
        """
        orig = self._unwrap(exc)
        sql_state = getattr(orig, 'sqlstate', None)
        if sql_state is None:
            diag = getattr(orig, 'diag', None)
            sql_state = getattr(diag, 'sqlstate', None)
        return None, sql_state
