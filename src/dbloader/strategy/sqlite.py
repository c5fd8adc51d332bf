"""
SQLite-specific strategy implementation.

SQLite result metadata carries no column types, and its storage is dynamically
typed. Column types are therefore resolved from all values of the first
fetched batch. Columns declared as date/time/timestamp/boolean are converted to
Python values by registered sqlite3 converters, so they resolve like the
typed columns of other dialects.
"""
import logging
import sqlite3
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import dateutil.parser
from dbloader.adapters.type_mapping import SourceType, python_value_type
from dbloader.strategy.base import LoaderStrategy, register_strategy

if TYPE_CHECKING:
    from dbloader.options import LoaderOptions

logger = logging.getLogger(__name__)


def convert_date(value: bytes):
    return dateutil.parser.parse(value.decode()).date()


def convert_time(value: bytes):
    return dateutil.parser.parse(value.decode()).timetz()


def convert_datetime(value: bytes):
    return dateutil.parser.parse(value.decode())


def convert_boolean(value: bytes) -> bool:
    return value.strip().lower() in {b'1', b't', b'true', b'y', b'yes'}


CONVERTERS = {
    'date': convert_date,
    'time': convert_time,
    'timetz': convert_time,
    'datetime': convert_datetime,
    'timestamp': convert_datetime,
    'timestamptz': convert_datetime,
    'boolean': convert_boolean,
    'bool': convert_boolean,
    }

# Numeric types from narrowest to widest
NUMERIC_WIDENING = (
    SourceType.BOOLEAN,
    SourceType.BIGINT,
    SourceType.DECIMAL,
    SourceType.DOUBLE,
    )

MIXED_TEMPORALS = {
    frozenset({SourceType.TIME, SourceType.TIME_WITH_TIMEZONE}): SourceType.TIME_WITH_TIMEZONE,
    frozenset({SourceType.TIMESTAMP, SourceType.TIMESTAMP_WITH_TIMEZONE}): SourceType.TIMESTAMP_WITH_TIMEZONE,
    frozenset({SourceType.DATE, SourceType.TIMESTAMP}): SourceType.TIMESTAMP,
    }


@register_strategy('sqlite')
class SQLiteStrategy(LoaderStrategy):
    """SQLite-specific operations.
    """

    example_url = 'sqlite:///path/to/file.db'

    def get_engine_kwargs(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        connect_args = {
            'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        if options.timeout:
            connect_args['timeout'] = options.timeout
        return {'connect_args': connect_args}

    def configure_connection(self, dbapi_connection: Any) -> None:
        """Register converters and make the connection refuse writes.
        """
        for name, converter in CONVERTERS.items():
            sqlite3.register_converter(name, converter)
        dbapi_connection.execute('PRAGMA query_only = ON')

    def resolve_source_type(self, type_code: Any,
                            sample: Sequence[Any] = ()) -> SourceType | None:
        """Resolve from every non-NULL sampled value.

        A column may hold values of several types. Mixed numbers widen to the
        widest numeric type seen. Mixed naive and zone-aware values resolve to
        the zone-aware type. Other mixes load as unbounded strings. One value of an unsupported type makes the column
        unsupported. Columns without any non-NULL value in the sample load as
        unbounded strings.
        """
        types = {python_value_type(value) for value in sample if value is not None}
        if None in types:
            return None
        if not types:
            return SourceType.LONGVARCHAR
        if len(types) == 1:
            return types.pop()
        if types <= set(NUMERIC_WIDENING):
            return max(types, key=NUMERIC_WIDENING.index)
        return MIXED_TEMPORALS.get(frozenset(types), SourceType.LONGVARCHAR)

    def error_codes(self, exc: BaseException) -> tuple[int | str | None, str | None]:
        """sqlite3 exposes the extended result code and its name.
        """
        orig = self._unwrap(exc)
        return getattr(orig, 'sqlite_errorcode', None), getattr(orig, 'sqlite_errorname', None)
