"""
Loader-specific exception classes.
"""
import sqlite3
import traceback

import psycopg
import pymysql
import sqlalchemy as sa


class LoaderError(Exception):
    """Base class for all loader errors.
    """


class ValidationError(LoaderError):
    """Error in input validation.
    """


class InvalidArguments(ValidationError):
    """Wrong number or shape of command arguments.
    """


class InvalidURL(ValidationError):
    """Connection URL does not use a recognized scheme.
    """


class CredentialFileError(LoaderError):
    """Credential file could not be loaded.
    """


class CredentialFileNotFound(CredentialFileError):
    """Credential file does not exist.
    """


class CredentialFileUnreadable(CredentialFileError):
    """Credential file exists but could not be read or parsed.
    """


class DriverInitError(LoaderError):
    """The database driver for the dialect failed to load.
    """


class NotInitialized(LoaderError):
    """A query was attempted before the session was initialized.
    """


class ConnectionFailure(LoaderError):
    """Failure to open a connection or execute a query.

    Carries the vendor error code and SQL state reported by the database
    layer, when the driver provides them.
    """

    def __init__(self, message: str, vendor_code: int | str | None = None,
                 sql_state: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.vendor_code = vendor_code
        self.sql_state = sql_state


class UnsupportedColumnType(LoaderError):
    """A result column has no host column mapping.
    """

    def __init__(self, label: str, type_code=None) -> None:
        super().__init__(f'Unsupported result column type for column: {label}')
        self.label = label
        self.type_code = type_code


class ColumnTypeConflict(LoaderError):
    """A host column exists under the derived name with a different kind.
    """

    def __init__(self, name: str, existing, requested) -> None:
        super().__init__(
            f'Variable {name!r} already exists as {existing.name}, '
            f'query column maps to {requested.name}')
        self.name = name
        self.existing = existing
        self.requested = requested


class ExecutionError(LoaderError):
    """Any other failure while loading a result set.

    `context` holds the formatted traceback of the underlying failure.
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    @classmethod
    def from_exception(cls, exc: BaseException, message: str | None = None) -> 'ExecutionError':
        context = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(message or str(exc), context)


DbConnectionError = (
    sa.exc.DBAPIError,
    psycopg.Error,
    pymysql.Error,
    sqlite3.Error,
    )
