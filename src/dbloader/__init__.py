"""
Load the result of a read-only SQL query into a host statistical dataset.

Typical use from Python:

- session = dbloader.initialize(url, credentials_path)
- dbloader.query(session, sql, dataset)

Hosts that dispatch commands by name use `dbloader.plugin.Plugin`.
"""
__version__ = '0.1.0'

import pathlib

from dbloader.adapters import ColumnDescriptor, HostColumn, HostKind
from dbloader.adapters import SourceType, declare_host_column
from dbloader.dataset import Dataset, FrameDataset
from dbloader.exceptions import ColumnTypeConflict, ConnectionFailure
from dbloader.exceptions import CredentialFileError, CredentialFileNotFound
from dbloader.exceptions import CredentialFileUnreadable, DriverInitError
from dbloader.exceptions import ExecutionError, InvalidArguments, InvalidURL
from dbloader.exceptions import LoaderError, NotInitialized
from dbloader.exceptions import UnsupportedColumnType, ValidationError
from dbloader.loader import LoadResult, load_query
from dbloader.options import LoaderOptions
from dbloader.plugin import Plugin
from dbloader.session import Session, SessionConfig, create_session


def initialize(url: str, credentials_path: str | pathlib.Path,
               options: LoaderOptions | None = None) -> Session:
    """Create a session and initialize it with a URL and credential file.
    """
    session = Session(options)
    session.initialize(url, credentials_path)
    return session


def query(session: Session, sql: str, dataset: Dataset) -> LoadResult:
    """Run a query and append its result to the dataset.
    """
    return session.query(sql, dataset)


__all__ = [
    'create_session',
    'initialize',
    'query',
    'load_query',
    'Session',
    'SessionConfig',
    'LoaderOptions',
    'LoadResult',
    'Plugin',
    'Dataset',
    'FrameDataset',
    'ColumnDescriptor',
    'HostColumn',
    'HostKind',
    'SourceType',
    'declare_host_column',
    'LoaderError',
    'ValidationError',
    'InvalidArguments',
    'InvalidURL',
    'CredentialFileError',
    'CredentialFileNotFound',
    'CredentialFileUnreadable',
    'DriverInitError',
    'NotInitialized',
    'ConnectionFailure',
    'UnsupportedColumnType',
    'ColumnTypeConflict',
    'ExecutionError',
]
