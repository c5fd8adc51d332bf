"""
Tests for dialect strategies and result column descriptors.
"""
import datetime
import decimal
import sqlite3
from unittest.mock import MagicMock

import psycopg
import pymysql
import pytest
import sqlalchemy as sa
from dbloader.adapters.column_info import columns_from_cursor_description
from dbloader.adapters.type_mapping import HostColumn, HostKind, SourceType
from dbloader.exceptions import UnsupportedColumnType
from dbloader.options import LoaderOptions
from dbloader.strategy import MySQLStrategy, PostgresStrategy, SQLiteStrategy
from dbloader.strategy import get_strategy
from dbloader.strategy import get_available_dialects, is_supported_dialect
from dbloader.strategy.sqlite import convert_boolean, convert_date
from dbloader.strategy.sqlite import convert_datetime

from tests.fixtures.mocks import Description, column, mysql_column


class TestRegistry:

    def test_dialects(self):
        assert set(get_available_dialects()) == {'mysql', 'postgresql', 'sqlite'}
        assert is_supported_dialect('sqlite')
        assert is_supported_dialect('mysql')
        assert not is_supported_dialect('oracle')

    def test_strategy_cached(self):
        assert get_strategy('postgresql') is get_strategy('postgresql')
        assert isinstance(get_strategy('sqlite'), SQLiteStrategy)

    def test_unknown(self):
        with pytest.raises(ValueError, match='Unsupported dialect: oracle'):
            get_strategy('oracle')


class TestPostgresStrategy:
    """Tests for PostgreSQL-specific behavior."""

    def test_build_url(self):
        url = PostgresStrategy().build_url(
            sa.engine.make_url('postgresql://localhost:5432/db'),
            {'user': 'TestUser', 'password': 'p@ss'})
        assert url.drivername == 'postgresql+psycopg'
        assert url.username == 'TestUser'
        assert url.password == 'p@ss'
        assert url.database == 'db'

    def test_execution_options(self):
        opts = PostgresStrategy().execution_options(LoaderOptions(fetch_size=100))
        assert opts == {
            'no_parameters': True,
            'postgresql_readonly': True,
            'stream_results': True,
            'max_row_buffer': 100,
        }

    def test_engine_kwargs(self):
        kwargs = PostgresStrategy().get_engine_kwargs(LoaderOptions(appname='loader'))
        assert kwargs == {'connect_args': {'application_name': 'loader'}}

    def test_display_size(self):
        strategy = PostgresStrategy()
        assert strategy.display_size(column('name', 'varchar', 50)) == 50
        assert strategy.display_size(column('note', 'text')) is None

    def test_error_codes(self):
        exc = psycopg.errors.SyntaxError('syntax error at or near "SELEC"')
        assert PostgresStrategy().error_codes(exc) == (None, '42601')

    def test_error_codes_unwraps_sqlalchemy_error(self):
        orig = psycopg.errors.UndefinedTable('missing')
        exc = sa.exc.ProgrammingError('select 1', {}, orig)
        assert PostgresStrategy().error_codes(exc) == (None, '42P01')


class TestMySQLStrategy:
    """Tests for MySQL-specific behavior."""

    def test_build_url(self):
        url = MySQLStrategy().build_url(
            sa.engine.make_url('mysql://localhost:3306/db'),
            {'user': 'TestUser', 'password': 'p@ss'})
        assert url.drivername == 'mysql+pymysql'
        assert url.username == 'TestUser'
        assert url.password == 'p@ss'
        assert url.port == 3306

    def test_execution_options(self):
        opts = MySQLStrategy().execution_options(LoaderOptions(fetch_size=100))
        assert opts == {
            'no_parameters': True,
            'stream_results': True,
            'max_row_buffer': 100,
        }

    def test_engine_kwargs(self):
        kwargs = MySQLStrategy().get_engine_kwargs(LoaderOptions(appname='loader', timeout=5))
        assert kwargs == {'connect_args': {
            'charset': 'utf8mb4', 'program_name': 'loader', 'connect_timeout': 5}}

    def test_configure_connection_is_read_only(self):
        dbapi_connection = MagicMock()
        MySQLStrategy().configure_connection(dbapi_connection)
        cursor = dbapi_connection.cursor.return_value.__enter__.return_value
        cursor.execute.assert_called_once_with('SET SESSION TRANSACTION READ ONLY')
        dbapi_connection.commit.assert_called_once()

    @pytest.mark.parametrize(('type_name', 'expected'), [
        ('longlong', SourceType.BIGINT),
        ('long', SourceType.INTEGER),
        ('int24', SourceType.INTEGER),
        ('short', SourceType.SMALLINT),
        ('year', SourceType.SMALLINT),
        ('tiny', SourceType.TINYINT),
        ('bit', SourceType.BIT),
        ('decimal', SourceType.DECIMAL),
        ('newdecimal', SourceType.DECIMAL),
        ('double', SourceType.DOUBLE),
        ('float', SourceType.FLOAT),
        ('string', SourceType.CHAR),
        ('var_string', SourceType.VARCHAR),
        ('blob', SourceType.LONGVARCHAR),
        ('long_blob', SourceType.LONGVARCHAR),
        ('date', SourceType.DATE),
        ('time', SourceType.TIME),
        ('datetime', SourceType.TIMESTAMP),
        ('timestamp', SourceType.TIMESTAMP),
        ('json', None),
        ('geometry', None),
    ])
    def test_resolve(self, type_name, expected):
        item = mysql_column('c', type_name)
        assert MySQLStrategy().resolve_source_type(item.type_code) is expected

    def test_binary_sample_is_unsupported(self):
        strategy = MySQLStrategy()
        blob = mysql_column('c', 'blob').type_code
        assert strategy.resolve_source_type(blob, [None, 'text']) is SourceType.LONGVARCHAR
        assert strategy.resolve_source_type(blob, [None, b'\x00\x01']) is None

    def test_display_size(self):
        strategy = MySQLStrategy()
        assert strategy.display_size(mysql_column('name', 'var_string', 50)) == 50
        assert strategy.display_size(mysql_column('name', 'var_string', 0)) is None
        assert strategy.display_size(mysql_column('name', 'var_string')) is None

    def test_error_codes(self):
        exc = pymysql.err.OperationalError(1792, 'Cannot execute statement in a READ ONLY transaction.')
        assert MySQLStrategy().error_codes(exc) == (1792, '25006')

    def test_error_codes_unwraps_sqlalchemy_error(self):
        orig = pymysql.err.ProgrammingError(1064, 'You have an error in your SQL syntax')
        exc = sa.exc.ProgrammingError('selec 1', {}, orig)
        assert MySQLStrategy().error_codes(exc) == (1064, '42000')

    def test_error_codes_unknown_errno(self):
        exc = pymysql.err.OperationalError(2003, "Can't connect to MySQL server")
        assert MySQLStrategy().error_codes(exc) == (2003, None)
        assert MySQLStrategy().error_codes(RuntimeError('boom')) == (None, None)


class TestSQLiteStrategy:
    """Tests for SQLite-specific behavior."""

    @pytest.mark.parametrize(('sample', 'expected'), [
        ([1, 2], SourceType.BIGINT),
        ([None, 1.5], SourceType.DOUBLE),
        (['x'], SourceType.LONGVARCHAR),
        ([datetime.date(2023, 5, 15)], SourceType.DATE),
        ([True], SourceType.BOOLEAN),
        ([None, None], SourceType.LONGVARCHAR),
        ([], SourceType.LONGVARCHAR),
        ([b'\x01'], None),
    ])
    def test_resolve_from_sample(self, sample, expected):
        assert SQLiteStrategy().resolve_source_type(None, sample) is expected

    @pytest.mark.parametrize(('sample', 'expected'), [
        ([10, 10.5, 99.99], SourceType.DOUBLE),
        ([None, 10, None, 2.5], SourceType.DOUBLE),
        ([True, 2], SourceType.BIGINT),
        ([1, decimal.Decimal('1.5')], SourceType.DECIMAL),
        ([decimal.Decimal('1.5'), 2.5], SourceType.DOUBLE),
        ([datetime.time(8, 0), datetime.time(9, 0, tzinfo=datetime.UTC)], SourceType.TIME_WITH_TIMEZONE),
        ([datetime.date(2023, 5, 15), datetime.datetime(2023, 5, 16, 8, 0)], SourceType.TIMESTAMP),
        ([1, 'x'], SourceType.LONGVARCHAR),
        ([1, b'\x01'], None),
    ])
    def test_resolve_mixed_sample(self, sample, expected):
        assert SQLiteStrategy().resolve_source_type(None, sample) is expected

    def test_engine_kwargs(self):
        kwargs = SQLiteStrategy().get_engine_kwargs(LoaderOptions(timeout=5))
        assert kwargs['connect_args']['detect_types'] == sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
        assert kwargs['connect_args']['timeout'] == 5

    def test_configure_connection_is_read_only(self, sqlite_file):
        cn = sqlite3.connect(sqlite_file)
        try:
            SQLiteStrategy().configure_connection(cn)
            with pytest.raises(sqlite3.OperationalError):
                cn.execute('delete from test_table')
        finally:
            cn.close()

    def test_error_codes(self):
        exc = sqlite3.OperationalError('no such table: t')
        exc.sqlite_errorcode = 1
        exc.sqlite_errorname = 'SQLITE_ERROR'
        assert SQLiteStrategy().error_codes(exc) == (1, 'SQLITE_ERROR')

    def test_converters(self):
        assert convert_date(b'2023-05-15') == datetime.date(2023, 5, 15)
        assert convert_datetime(b'2023-05-15 14:30:45') == datetime.datetime(2023, 5, 15, 14, 30, 45)
        assert convert_boolean(b'1') is True
        assert convert_boolean(b'0') is False


class TestColumnsFromCursorDescription:

    def test_postgres(self):
        columns = columns_from_cursor_description(
            [column('id', 'int4'), column('name', 'varchar', 50)], PostgresStrategy())
        assert [c.position for c in columns] == [1, 2]
        assert [c.label for c in columns] == ['id', 'name']
        assert columns[0].host == HostColumn(HostKind.INT)
        assert columns[1].host == HostColumn(HostKind.STR, 50)
        assert columns[1].display_size == 50
        assert columns[0].name is None

    def test_sqlite_uses_sample(self):
        description = [Description('id', None, None, None, None, None, None),
                       Description('note', None, None, None, None, None, None)]
        columns = columns_from_cursor_description(description, SQLiteStrategy(), [(None, 'a'), (3, None)])
        assert columns[0].source_type is SourceType.BIGINT
        assert columns[1].source_type is SourceType.LONGVARCHAR

    def test_no_description(self):
        assert columns_from_cursor_description(None, PostgresStrategy()) == []

    def test_unsupported(self):
        with pytest.raises(UnsupportedColumnType, match='column: doc'):
            columns_from_cursor_description([column('id', 'int4'), column('doc', 'json')], PostgresStrategy())

    def test_bind(self):
        col = columns_from_cursor_description([column('id', 'int4')], PostgresStrategy())[0]
        bound = col.bind('id', 1)
        assert (bound.name, bound.index) == ('id', 1)
        assert col.index is None
