"""
Type mapping from database column types to host variable types.

This module owns the closed set of source column types the loader understands
and the single table that maps each of them to a host variable kind:

1. `SourceType` - the database column categories, independent of any driver
2. `HostKind` - the host variable storage types
3. `declare_host_column` - the mapping function, including string widths
4. Per-dialect lookup tables from driver type codes to `SourceType`

Driver type codes that do not resolve to a `SourceType` are unsupported and
abort the query.
"""
import datetime
import decimal
import logging
from enum import Enum
from typing import Any, NamedTuple

from dbloader.exceptions import UnsupportedColumnType

logger = logging.getLogger(__name__)


class SourceType(Enum):
    """Database column type categories.
    """
    BIGINT = 'bigint'
    ROWID = 'rowid'
    INTEGER = 'integer'
    SMALLINT = 'smallint'
    TINYINT = 'tinyint'
    BOOLEAN = 'boolean'
    BIT = 'bit'
    DECIMAL = 'decimal'
    NUMERIC = 'numeric'
    DOUBLE = 'double'
    FLOAT = 'float'
    REAL = 'real'
    CHAR = 'char'
    NCHAR = 'nchar'
    VARCHAR = 'varchar'
    NVARCHAR = 'nvarchar'
    LONGVARCHAR = 'longvarchar'
    LONGNVARCHAR = 'longnvarchar'
    CLOB = 'clob'
    NCLOB = 'nclob'
    DATE = 'date'
    TIME = 'time'
    TIME_WITH_TIMEZONE = 'time_with_timezone'
    TIMESTAMP = 'timestamp'
    TIMESTAMP_WITH_TIMEZONE = 'timestamp_with_timezone'


class HostKind(Enum):
    """Host variable storage types.
    """
    LONG = 'long'
    INT = 'int'
    BYTE = 'byte'
    DOUBLE = 'double'
    FLOAT = 'float'
    STR = 'str'
    STRL = 'strL'

    @property
    def is_numeric(self) -> bool:
        return self not in {HostKind.STR, HostKind.STRL}

    @property
    def label(self) -> str:
        """Name used in progress messages, e.g. 'Long' or 'StrL'.
        """
        return self.value[0].upper() + self.value[1:]


class HostColumn(NamedTuple):
    kind: HostKind
    width: int | None = None


# Types whose host width is the column display size
DISPLAY_WIDTH_TYPES = frozenset({
    SourceType.CHAR,
    SourceType.NCHAR,
    SourceType.VARCHAR,
    SourceType.NVARCHAR,
    })

# Fixed widths of the formatted date/time strings
TEMPORAL_WIDTHS = {
    SourceType.DATE: 10,
    SourceType.TIME: 15,
    SourceType.TIME_WITH_TIMEZONE: 20,
    SourceType.TIMESTAMP: 26,
    SourceType.TIMESTAMP_WITH_TIMEZONE: 31,
    }

HOST_COLUMNS: dict[SourceType, HostColumn] = {}
for t in (SourceType.BIGINT, SourceType.ROWID):
    HOST_COLUMNS[t] = HostColumn(HostKind.LONG)
for t in (SourceType.INTEGER, SourceType.SMALLINT, SourceType.TINYINT):
    HOST_COLUMNS[t] = HostColumn(HostKind.INT)
for t in (SourceType.BOOLEAN, SourceType.BIT):
    HOST_COLUMNS[t] = HostColumn(HostKind.BYTE)
for t in (SourceType.DECIMAL, SourceType.NUMERIC, SourceType.DOUBLE):
    HOST_COLUMNS[t] = HostColumn(HostKind.DOUBLE)
for t in (SourceType.FLOAT, SourceType.REAL):
    HOST_COLUMNS[t] = HostColumn(HostKind.FLOAT)
for t in DISPLAY_WIDTH_TYPES:
    HOST_COLUMNS[t] = HostColumn(HostKind.STR)
for t in (SourceType.LONGVARCHAR, SourceType.LONGNVARCHAR,
          SourceType.CLOB, SourceType.NCLOB):
    HOST_COLUMNS[t] = HostColumn(HostKind.STRL)
for t, width in TEMPORAL_WIDTHS.items():
    HOST_COLUMNS[t] = HostColumn(HostKind.STR, width)

_unmapped = [t.name for t in SourceType if t not in HOST_COLUMNS]
if _unmapped:
    raise RuntimeError(f'Source types without a host column mapping: {_unmapped}')


def declare_host_column(source_type: SourceType | None, display_size: int | None,
                        label: str) -> HostColumn:
    """Map a source column type to the host variable kind and width.

    Args:
        source_type: Resolved source type, or None when the driver type code
            has no `SourceType`
        display_size: Column display size reported by the driver
        label: Column label, used in the error for unsupported types

    Returns
        HostColumn with the kind and, for fixed-width strings, the width

    Raises
        UnsupportedColumnType: If the source type has no mapping
    """
    if source_type is None:
        raise UnsupportedColumnType(label)

    kind, width = HOST_COLUMNS[source_type]
    if source_type in DISPLAY_WIDTH_TYPES:
        if not display_size or display_size < 1:
            logger.debug(f'Column {label!r} has no display size, using unbounded string')
            return HostColumn(HostKind.STRL)
        width = display_size

    logger.debug(f'Column {label!r}: {source_type.name} -> {kind.name}'
                 f'{f"({width})" if width else ""}')
    return HostColumn(kind, width)


from psycopg.postgres import types as pg_types

oid = lambda x: pg_types.get(x).oid

postgres_types: dict[int, SourceType] = {
    oid('int8'): SourceType.BIGINT,
    oid('oid'): SourceType.ROWID,
    oid('int4'): SourceType.INTEGER,
    oid('int2'): SourceType.SMALLINT,
    oid('bool'): SourceType.BOOLEAN,
    oid('bit'): SourceType.BIT,
    oid('numeric'): SourceType.NUMERIC,
    oid('float8'): SourceType.DOUBLE,
    oid('float4'): SourceType.REAL,
    oid('bpchar'): SourceType.CHAR,
    oid('varchar'): SourceType.VARCHAR,
    oid('text'): SourceType.LONGVARCHAR,
    oid('date'): SourceType.DATE,
    oid('time'): SourceType.TIME,
    oid('timetz'): SourceType.TIME_WITH_TIMEZONE,
    oid('timestamp'): SourceType.TIMESTAMP,
    oid('timestamptz'): SourceType.TIMESTAMP_WITH_TIMEZONE,
    }


from pymysql.constants import FIELD_TYPE

mysql_types: dict[int, SourceType] = {
    FIELD_TYPE.LONGLONG: SourceType.BIGINT,
    FIELD_TYPE.LONG: SourceType.INTEGER,
    FIELD_TYPE.INT24: SourceType.INTEGER,
    FIELD_TYPE.SHORT: SourceType.SMALLINT,
    FIELD_TYPE.YEAR: SourceType.SMALLINT,
    FIELD_TYPE.TINY: SourceType.TINYINT,
    FIELD_TYPE.BIT: SourceType.BIT,
    FIELD_TYPE.DECIMAL: SourceType.DECIMAL,
    FIELD_TYPE.NEWDECIMAL: SourceType.DECIMAL,
    FIELD_TYPE.DOUBLE: SourceType.DOUBLE,
    FIELD_TYPE.FLOAT: SourceType.FLOAT,
    FIELD_TYPE.STRING: SourceType.CHAR,
    FIELD_TYPE.VAR_STRING: SourceType.VARCHAR,
    FIELD_TYPE.VARCHAR: SourceType.VARCHAR,
    FIELD_TYPE.TINY_BLOB: SourceType.LONGVARCHAR,
    FIELD_TYPE.MEDIUM_BLOB: SourceType.LONGVARCHAR,
    FIELD_TYPE.LONG_BLOB: SourceType.LONGVARCHAR,
    FIELD_TYPE.BLOB: SourceType.LONGVARCHAR,
    FIELD_TYPE.DATE: SourceType.DATE,
    FIELD_TYPE.NEWDATE: SourceType.DATE,
    FIELD_TYPE.TIME: SourceType.TIME,
    FIELD_TYPE.DATETIME: SourceType.TIMESTAMP,
    FIELD_TYPE.TIMESTAMP: SourceType.TIMESTAMP,
    }


def python_value_type(value: Any) -> SourceType | None:
    """Resolve a source type from a Python value.

    Used for drivers that report no column types (SQLite). Order matters:
    bool is an int subclass and datetime is a date subclass.
    """
    if isinstance(value, bool):
        return SourceType.BOOLEAN
    if isinstance(value, int):
        return SourceType.BIGINT
    if isinstance(value, float):
        return SourceType.DOUBLE
    if isinstance(value, decimal.Decimal):
        return SourceType.DECIMAL
    if isinstance(value, str):
        return SourceType.LONGVARCHAR
    if isinstance(value, datetime.datetime):
        if value.utcoffset() is None:
            return SourceType.TIMESTAMP
        return SourceType.TIMESTAMP_WITH_TIMEZONE
    if isinstance(value, datetime.date):
        return SourceType.DATE
    if isinstance(value, datetime.time):
        if value.utcoffset() is None:
            return SourceType.TIME
        return SourceType.TIME_WITH_TIMEZONE
    return None
