"""
Per-query database connections.

The `connect()` function opens a new connection from the session's engine.
Connections are never shared between queries: the loader opens one, runs a
single statement through it and closes it.
"""
import logging
from typing import TYPE_CHECKING

import sqlalchemy as sa
from dbloader.cursor import Cursor
from dbloader.strategy import LoaderStrategy, get_strategy
from dbloader.utils.connection_utils import get_engine

if TYPE_CHECKING:
    from dbloader.options import LoaderOptions
    from dbloader.session import SessionConfig

logger = logging.getLogger(__name__)


class ConnectionWrapper:
    """One query's database connection.

    Carries the dialect strategy and loader options its cursor needs, and
    counts the statements run through it for the close-time debug log.
    """

    def __init__(self, sa_connection: sa.engine.Connection,
                 strategy: LoaderStrategy,
                 options: 'LoaderOptions') -> None:
        self.sa_connection = sa_connection
        self.strategy = strategy
        self.options = options
        self.calls = 0
        self.time = 0

    def cursor(self) -> Cursor:
        return Cursor(self)

    def addcall(self, elapsed: float) -> None:
        self.time += elapsed
        self.calls += 1

    def close(self) -> None:
        """Close the SQLAlchemy connection, discarding the read-only transaction.
        """
        if not self.sa_connection.closed:
            self.sa_connection.close()
            logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s')


def connect(config: 'SessionConfig', options: 'LoaderOptions') -> ConnectionWrapper:
    """Open a new connection for a session config and prepare it for reading.

    Raises
        sqlalchemy.exc.DBAPIError: If the database refuses the connection
    """
    strategy = get_strategy(config.dialect)
    sa_connection = get_engine(config, options).connect()
    try:
        strategy.configure_connection(sa_connection.connection.dbapi_connection)
    except Exception:
        sa_connection.close()
        raise
    return ConnectionWrapper(sa_connection, strategy, options)
