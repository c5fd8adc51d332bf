"""
Forward-only, read-only result cursor over a SQLAlchemy connection.
"""
import logging
import time
from collections.abc import Iterator, Sequence
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dbloader.connection import ConnectionWrapper

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}')
        try:
            return func(self, operation, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Streaming cursor for one query.

    Wraps the SQLAlchemy result of the executed statement. Rows are read in
    order, once; the cursor cannot be rewound.
    """

    def __init__(self, connection_wrapper: 'ConnectionWrapper') -> None:
        self.connwrapper = connection_wrapper
        self.result = None
        self._description = None

    @property
    def description(self) -> Sequence[Any] | None:
        """DBAPI column descriptions of the executed query."""
        return self._description

    @dumpsql
    def execute(self, operation: str) -> None:
        """Execute a query with the dialect's streaming, read-only options."""
        options = self.connwrapper.strategy.execution_options(self.connwrapper.options)
        sa_connection = self.connwrapper.sa_connection.execution_options(**options)
        self.result = sa_connection.exec_driver_sql(operation)
        if not self.result.returns_rows:
            self.result.close()
            self.result = None
            raise ValueError('Statement did not return a result set')
        # the DBAPI cursor is released once the rows run out
        self._description = self.result.cursor.description

    def fetchmany(self, size: int) -> list[Sequence[Any]]:
        """Fetch the next set of rows."""
        return self.result.fetchmany(size)

    def batches(self, size: int) -> Iterator[list[Sequence[Any]]]:
        """Iterate over the remaining rows in batches of `size`."""
        return IterChunk(self, size)

    def close(self) -> None:
        """Close the result and its DBAPI cursor."""
        if self.result is not None:
            self.result.close()
            self.result = None


def IterChunk(cursor: Cursor, size: int = 5000) -> Iterator[list[Sequence[Any]]]:
    """Iterate through cursor results in chunks."""
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield chunked
