"""
MySQL-specific strategy implementation.

Queries run through PyMySQL on an unbuffered server-side cursor (SSCursor)
in a read-only session. Column types come from the field type codes in the
cursor description. Text and binary columns share type codes and differ only
in charset, which the description does not carry, so binary columns are
recognized by their sampled values.
"""
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbloader.adapters.type_mapping import SourceType, mysql_types
from dbloader.strategy.base import LoaderStrategy, register_strategy

if TYPE_CHECKING:
    from dbloader.options import LoaderOptions

logger = logging.getLogger(__name__)

STRING_TYPES = frozenset({
    SourceType.CHAR,
    SourceType.VARCHAR,
    SourceType.LONGVARCHAR,
    })

# Server error number -> SQLSTATE; PyMySQL drops the SQLSTATE from the error packet
SQL_STATES = {
    1044: '42000',
    1045: '28000',
    1049: '42000',
    1054: '42S22',
    1064: '42000',
    1142: '42000',
    1146: '42S02',
    1792: '25006',
    }


@register_strategy('mysql')
class MySQLStrategy(LoaderStrategy):
    """MySQL-specific operations.
    """

    example_url = 'mysql://localhost:3306/db'

    def build_url(self, url: sa.URL, credentials: Mapping[str, str]) -> sa.URL:
        """Force the PyMySQL driver and apply the credential file's user/password.
        """
        return url.set(
            drivername='mysql+pymysql',
            username=credentials.get('user', url.username),
            password=credentials.get('password', url.password),
        )

    def get_engine_kwargs(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for MySQL."""
        connect_args = {'charset': 'utf8mb4', 'program_name': options.appname}
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {'connect_args': connect_args}

    def configure_connection(self, dbapi_connection: Any) -> None:
        """Make every transaction of the session read-only.
        """
        with dbapi_connection.cursor() as cursor:
            cursor.execute('SET SESSION TRANSACTION READ ONLY')
        # the setting applies from the next transaction on
        dbapi_connection.commit()

    def execution_options(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Stream rows through an unbuffered cursor.
        """
        return {
            **super().execution_options(options),
            'stream_results': options.stream_results,
            'max_row_buffer': options.fetch_size,
        }

    def display_size(self, description_item: Any) -> int | None:
        """PyMySQL leaves display_size empty and reports the column length as
        internal_size.

        The length counts bytes unless the driver knows the charset's
        character width, so multi-byte columns come out wider than declared.
        """
        size = description_item[3] if len(description_item) > 3 else None
        return size if isinstance(size, int) and size > 0 else None

    def resolve_source_type(self, type_code: Any,
                            sample: Sequence[Any] = ()) -> SourceType | None:
        """Resolve by field type; string columns holding bytes are binary and unsupported.
        """
        source_type = mysql_types.get(type_code)
        if source_type in STRING_TYPES and any(isinstance(v, bytes) for v in sample):
            logger.debug(f'Field type {type_code} holds binary values')
            return None
        return source_type

    def error_codes(self, exc: BaseException) -> tuple[int | str | None, str | None]:
        """PyMySQL errors carry (errno, message) in args.
        """
        orig = self._unwrap(exc)
        args = getattr(orig, 'args', ())
        vendor_code = args[0] if args and isinstance(args[0], int) else None
        return vendor_code, SQL_STATES.get(vendor_code)
