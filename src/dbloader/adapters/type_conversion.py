"""
Value conversion from database values to host storage values.

Converters are keyed by `SourceType`:
- integer types: stored as host numbers via int(), never dropping a fraction
- boolean/bit types: stored as 0/1
- decimal and floating point types: stored as host numbers via float()
- text types: stored as host strings
- date/time types: formatted into fixed-width strings

Date/time patterns:
- DATE: YYYY-MM-DD
- TIME: HH:MM:SS.ffffff
- TIME_WITH_TIMEZONE: HH:MM:SS.ffffff+HHMM
- TIMESTAMP: YYYY-MM-DD HH:MM:SS.ffffff
- TIMESTAMP_WITH_TIMEZONE: YYYY-MM-DDTHH:MM:SS.ffffff+HHMM

Values of zone-aware types that arrive without an offset are taken as UTC.
"""
import datetime
import decimal
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import dateutil.parser
from dbloader.adapters.type_mapping import SourceType

if TYPE_CHECKING:
    from dbloader.adapters.column_info import ColumnDescriptor
    from dbloader.dataset import Dataset

logger = logging.getLogger(__name__)


def _format_offset(offset: datetime.timedelta | None) -> str:
    """Format a UTC offset as +HHMM.
    """
    if offset is None:
        return '+0000'
    seconds = offset.total_seconds()
    sign = '-' if seconds < 0 else '+'
    hours, minutes = divmod(int(abs(seconds)) // 60, 60)
    return f'{sign}{hours:02d}{minutes:02d}'


def _format_date(d: datetime.date) -> str:
    return f'{d.year:04d}-{d.month:02d}-{d.day:02d}'


def _format_time(t: datetime.time | datetime.datetime) -> str:
    return f'{t.hour:02d}:{t.minute:02d}:{t.second:02d}.{t.microsecond:06d}'


def _as_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, str):
        return dateutil.parser.parse(value)
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    raise TypeError(f'Expected a date/time value, got {type(value).__name__}')


def _as_time(value: Any) -> datetime.time:
    if isinstance(value, str):
        return dateutil.parser.parse(value).timetz()
    if isinstance(value, datetime.timedelta):
        # MySQL TIME is a duration
        if not datetime.timedelta(0) <= value < datetime.timedelta(days=1):
            raise ValueError(f'Time value outside of a day: {value}')
        return (datetime.datetime.min + value).time()
    if isinstance(value, datetime.datetime):
        return value.timetz()
    if isinstance(value, datetime.time):
        return value
    raise TypeError(f'Expected a time value, got {type(value).__name__}')


def _time_offset(value: datetime.time) -> datetime.timedelta | None:
    """UTC offset of a time value.

    Zones with rules (e.g. zoneinfo) need a date to resolve the offset and
    report None for bare times; today's date is used for those.
    """
    if value.tzinfo is None:
        return None
    offset = value.utcoffset()
    if offset is None:
        offset = datetime.datetime.combine(datetime.date.today(), value).utcoffset()
    return offset


def format_date(value: Any) -> str:
    if isinstance(value, str):
        value = dateutil.parser.parse(value)
    if not isinstance(value, datetime.date):
        raise TypeError(f'Expected a date value, got {type(value).__name__}')
    return _format_date(value)


def format_time(value: Any) -> str:
    return _format_time(_as_time(value))


def format_time_tz(value: Any) -> str:
    t = _as_time(value)
    return _format_time(t) + _format_offset(_time_offset(t))


def format_timestamp(value: Any) -> str:
    dt = _as_datetime(value)
    return f'{_format_date(dt)} {_format_time(dt)}'


def format_timestamp_tz(value: Any) -> str:
    dt = _as_datetime(value)
    return f'{_format_date(dt)}T{_format_time(dt)}{_format_offset(dt.utcoffset())}'


TEMPORAL_FORMATTERS: dict[SourceType, Callable[[Any], str]] = {
    SourceType.DATE: format_date,
    SourceType.TIME: format_time,
    SourceType.TIME_WITH_TIMEZONE: format_time_tz,
    SourceType.TIMESTAMP: format_timestamp,
    SourceType.TIMESTAMP_WITH_TIMEZONE: format_timestamp_tz,
    }


def format_temporal(source_type: SourceType, value: Any) -> str:
    """Format a date/time value for the given source type.

    >>> format_temporal(SourceType.DATE, datetime.date(2015, 3, 7))
    '2015-03-07'
    >>> format_temporal(SourceType.TIME, datetime.time(9, 5, 1, 42))
    '09:05:01.000042'
    >>> format_temporal(SourceType.TIMESTAMP, datetime.datetime(2015, 3, 7, 9, 5, 1))
    '2015-03-07 09:05:01.000000'
    """
    return TEMPORAL_FORMATTERS[source_type](value)


def _to_int(value: Any) -> int:
    if isinstance(value, (float, decimal.Decimal)) and value != int(value):
        raise ValueError(f'Integer column holds a fractional value: {value!r}')
    return int(value)


def _to_flag(value: Any) -> int:
    # psycopg returns bit(n) values as strings of 0/1, pymysql as bytes
    if isinstance(value, str):
        return 1 if int(value, 2) else 0
    if isinstance(value, bytes):
        return 1 if int.from_bytes(value, 'big') else 0
    return 1 if value else 0


def _to_float(value: Any) -> float:
    return float(value)


def _to_str(value: Any) -> str:
    if isinstance(value, bytes):
        raise TypeError('Binary value in a text column')
    return value if isinstance(value, str) else str(value)


CONVERTERS: dict[SourceType, Callable[[Any], Any]] = {
    SourceType.BIGINT: _to_int,
    SourceType.ROWID: _to_int,
    SourceType.INTEGER: _to_int,
    SourceType.SMALLINT: _to_int,
    SourceType.TINYINT: _to_int,
    SourceType.BOOLEAN: _to_flag,
    SourceType.BIT: _to_flag,
    SourceType.DECIMAL: _to_float,
    SourceType.NUMERIC: _to_float,
    SourceType.DOUBLE: _to_float,
    SourceType.FLOAT: _to_float,
    SourceType.REAL: _to_float,
    SourceType.CHAR: _to_str,
    SourceType.NCHAR: _to_str,
    SourceType.VARCHAR: _to_str,
    SourceType.NVARCHAR: _to_str,
    SourceType.LONGVARCHAR: _to_str,
    SourceType.LONGNVARCHAR: _to_str,
    SourceType.CLOB: _to_str,
    SourceType.NCLOB: _to_str,
    **TEMPORAL_FORMATTERS,
    }

_unconverted = [t.name for t in SourceType if t not in CONVERTERS]
if _unconverted:
    raise RuntimeError(f'Source types without a value converter: {_unconverted}')


def convert_value(source_type: SourceType, value: Any) -> Any:
    """Convert a non-NULL database value to its host storage value.
    """
    return CONVERTERS[source_type](value)


def transfer_value(dataset: 'Dataset', column: 'ColumnDescriptor', obs: int,
                   value: Any) -> bool:
    """Store one database value into the host dataset.

    NULL values leave the host cell untouched.

    Args:
        dataset: Host dataset
        column: Descriptor of the result column
        obs: 1-based host observation number
        value: Value read from the cursor

    Returns
        True if a value was stored, False for NULL
    """
    if value is None:
        return False
    converted = convert_value(column.source_type, value)
    if column.host.kind.is_numeric:
        dataset.store_num(column.index, obs, converted)
    else:
        dataset.store_str(column.index, obs, converted)
    return True
