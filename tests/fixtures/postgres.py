import logging

import config
import psycopg
import pytest
from dbloader import FrameDataset, Session
from testcontainers.postgres import PostgresContainer

from libb import Setting

logger = logging.getLogger(__name__)


@pytest.fixture(scope='session')
def psql_docker(request):
    """Session-scoped PostgreSQL container using testcontainers.

    Testcontainers automatically:
    - Assigns a random available port
    - Waits for the database to be ready
    - Handles cleanup when the session ends

    Tests using it are skipped when no container runtime is available.
    """
    container = PostgresContainer(
        image='postgres:16',
        username=config.postgresql.username,
        password=config.postgresql.password,
        dbname=config.postgresql.database,
    ).with_env('TZ', 'US/Eastern').with_env('PGTZ', 'US/Eastern')

    try:
        container.start()
    except Exception as e:
        pytest.skip(f'PostgreSQL container unavailable: {e}')

    # Update config with dynamic host/port
    Setting.unlock()
    config.postgresql.hostname = container.get_container_host_ip()
    config.postgresql.port = int(container.get_exposed_port(5432))
    Setting.lock()

    logger.info(
        f'PostgreSQL container started at '
        f'{config.postgresql.hostname}:{config.postgresql.port}'
    )

    def finalizer():
        try:
            container.stop()
            logger.info('PostgreSQL container stopped')
        except Exception as e:
            logger.warning(f'Error stopping container: {e}')

    request.addfinalizer(finalizer)
    return container


def stage_test_data(cn):
    cn.execute('drop table if exists test_table')
    cn.execute('create sequence if not exists test_seq')
    cn.execute("""
create table test_table (
    id integer not null,
    big bigint,
    small smallint,
    flag boolean,
    bits bit(1),
    amount numeric(12, 4),
    ratio double precision,
    score real,
    code char(3),
    name varchar(50),
    unbounded varchar,
    note text,
    day date,
    at_time time,
    at_time_tz timetz,
    stamp timestamp,
    stamp_tz timestamptz,
    payload bytea,
    doc json,
    primary key (id)
)
""")
    cn.execute("""
insert into test_table values
(1, 9223372036854775807, -32768, true, B'1', 1234.5678, 3.5, 1.25, 'abc',
 'Alice', 'free text', 'first', '2023-05-15', '14:30:45.123456', '14:30:45+02',
 '2023-05-15 14:30:45', '2023-05-15 14:30:45+00', '\\x0102', '{"a": 1}'),
(2, null, 7, false, B'0', null, null, null, null,
 'Bob', null, null, '0099-01-02', '00:00:00', '23:59:59-0530',
 '2023-05-16 08:00:00.000125', '2023-05-16 08:00:00-04', null, null)
""")


def postgres_url():
    return f'postgresql://{config.postgresql.hostname}:{config.postgresql.port}/{config.postgresql.database}'


@pytest.fixture
def pg_conn(psql_docker):
    """
    Connection fixture with function scope for clean tests.
    Each test gets reset test data.
    """
    cn = psycopg.connect(
        host=config.postgresql.hostname,
        port=config.postgresql.port,
        dbname=config.postgresql.database,
        user=config.postgresql.username,
        password=config.postgresql.password,
        autocommit=True,
    )
    try:
        stage_test_data(cn)
        yield cn
    finally:
        cn.close()


@pytest.fixture
def pg_credentials_file(tmp_path):
    path = tmp_path / 'postgres.properties'
    path.write_text(f'user={config.postgresql.username}\npassword={config.postgresql.password}\n')
    return path


@pytest.fixture
def pg_session(pg_conn, pg_credentials_file):
    """Session initialized against the PostgreSQL container."""
    session = Session()
    session.initialize(postgres_url(), pg_credentials_file)
    return session


@pytest.fixture
def pg_dataset():
    return FrameDataset()
