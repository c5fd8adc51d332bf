"""
Host command entry points.

A host embeds one `Plugin` per process and routes its `help`, `initialize`
and `query` commands to it. Each command returns a status code: 0 on
success, 198 on any failure. Failures are reported on the `dbloader` logger;
the status code does not distinguish between them.

Usage example (host commands):

    initialize mysql://localhost:3306/db /path/to/connection.properties
    query "SELECT * FROM .. LIMIT 100"
"""
import logging
from collections.abc import Callable
from functools import wraps

from dbloader.dataset import Dataset, FrameDataset
from dbloader.exceptions import ConnectionFailure, ExecutionError
from dbloader.exceptions import InvalidArguments, LoaderError
from dbloader.options import LoaderOptions
from dbloader.session import Session

logger = logging.getLogger(__name__)

SUCCESS = 0
FAILURE = 198

USAGE = """\
Usage example:
initialize <URL> <path_to_connection_file>
query "SELECT * FROM .. LIMIT 100"
"""


def returns_status(func: Callable) -> Callable:
    """Turn a command into one that logs loader errors and returns a status code.
    """
    @wraps(func)
    def inner(*args, **kwargs) -> int:
        try:
            func(*args, **kwargs)
        except ConnectionFailure as e:
            logger.error(e.message)
            logger.error(f'SQL State: {e.sql_state}')
            logger.error(f'VendorError: {e.vendor_code}')
            return FAILURE
        except ExecutionError as e:
            logger.error(e.message)
            if e.context:
                logger.error(e.context)
            return FAILURE
        except LoaderError as e:
            logger.error(str(e))
            return FAILURE
        return SUCCESS
    return inner


class Plugin:
    """Command surface of the loader for a host process.

    Holds the process's session and the host dataset queries load into.
    """

    def __init__(self, dataset: Dataset | None = None,
                 options: LoaderOptions | None = None) -> None:
        self.session = Session(options)
        self.dataset = dataset if dataset is not None else FrameDataset()

    def help(self, *args: str) -> int:
        """Print usage text.
        """
        print(USAGE, end='')
        return SUCCESS

    @returns_status
    def initialize(self, *args: str) -> None:
        """initialize <URL> <path_to_connection_file>
        """
        if len(args) != 2:
            raise InvalidArguments('Please specify the connection URL and the path of the database '
                                   'connection properties file which contains the username and password.')
        self.session.initialize(*args)

    @returns_status
    def query(self, *args: str) -> None:
        """query <SQL>
        """
        if len(args) != 1:
            raise InvalidArguments('Please specify the SELECT query to execute.')
        self.session.query(args[0], self.dataset)

    def dispatch(self, command: str, *args: str) -> int:
        """Run a host command by name.
        """
        handlers = {
            'help': self.help,
            'initialize': self.initialize,
            'query': self.query,
            }
        handler = handlers.get(command)
        if handler is None:
            logger.error(f'Unknown command: {command!r}. Available: {", ".join(handlers)}')
            return FAILURE
        return handler(*args)
