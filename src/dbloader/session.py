"""
Session state: the target database and the credentials to reach it.

A `Session` is the long-lived context of a host process. It is initialized
once with a connection URL and a credential file and then reused by every
query until it is initialized again. The active `SessionConfig` is an
immutable value; re-initializing replaces it as a whole.

Credential file format, one `key=value` per line:

    user=TestUser
    password=Password123
"""
import logging
import pathlib
from collections.abc import Mapping
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbloader.exceptions import CredentialFileNotFound
from dbloader.exceptions import CredentialFileUnreadable, InvalidURL
from dbloader.exceptions import NotInitialized
from dbloader.loader import LoadResult, load_query
from dbloader.options import LoaderOptions
from dbloader.strategy import example_urls, is_supported_dialect
from dbloader.utils.connection_utils import get_engine

from libb import load_options

if TYPE_CHECKING:
    from dbloader.dataset import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """Target URL and credential set of an initialized session.
    """
    url: sa.URL
    credentials: Mapping[str, str]

    def __repr__(self) -> str:
        return f'SessionConfig(url={self.url!r}, user={self.user!r})'

    @property
    def dialect(self) -> str:
        return self.url.get_backend_name()

    @property
    def user(self) -> str | None:
        return self.credentials.get('user')


def parse_url(url: str) -> sa.URL:
    """Parse a connection URL and check its scheme is a supported dialect.

    Raises
        InvalidURL: If the URL cannot be parsed or uses an unknown scheme
    """
    examples = example_urls()
    try:
        parsed = sa.engine.make_url(url)
    except (sa.exc.ArgumentError, TypeError, ValueError) as e:
        raise InvalidURL(f'The connection URL given is not valid, it should be like: {examples}') from e
    if not is_supported_dialect(parsed.get_backend_name()):
        raise InvalidURL(f'The connection URL given is not valid, it should be like: {examples}')
    return parsed


def load_credentials(path: str | pathlib.Path) -> dict[str, str]:
    """Load `key=value` lines from a credential file.

    Blank lines and lines starting with # or ! are skipped. Values are taken
    verbatim after the first `=`, without quoting or escapes.

    Raises
        CredentialFileNotFound: If the file does not exist
        CredentialFileUnreadable: If it cannot be read, a line is not
            `key=value`, or there is no `user` entry
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise CredentialFileNotFound(f'Database connection properties file could not be found: {path}')
    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise CredentialFileUnreadable(f'Database connection properties file could not be read: {e}') from e

    credentials = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith(('#', '!')):
            continue
        key, sep, value = line.partition('=')
        if not sep or not key.strip():
            raise CredentialFileUnreadable(
                f'Database connection properties file could not be read: '
                f'{path}:{lineno} is not a key=value line')
        credentials[key.strip()] = value.strip()

    if 'user' not in credentials:
        raise CredentialFileUnreadable(f'Database connection properties file has no user entry: {path}')
    return credentials


class Session:
    """Long-lived connection context shared by sequential queries.

    Not thread safe: queries and re-initialization must not overlap.
    """

    def __init__(self, options: LoaderOptions | None = None) -> None:
        self.options = options or LoaderOptions()
        self._config: SessionConfig | None = None

    def __repr__(self) -> str:
        return f'Session(config={self._config!r})'

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> SessionConfig:
        """Active session config.

        Raises
            NotInitialized: If `initialize` has not succeeded yet
        """
        if self._config is None:
            raise NotInitialized('Please initialize the DB connection first with: '
                                 'initialize <URL> <path_to_connection_file>')
        return self._config

    def initialize(self, url: str, credentials_path: str | pathlib.Path) -> SessionConfig:
        """Validate the URL, load credentials and load the database driver.

        The previous config stays active if any step fails.

        Raises
            InvalidURL, CredentialFileError, DriverInitError
        """
        parsed = parse_url(url)
        credentials = load_credentials(credentials_path)
        config = SessionConfig(parsed, MappingProxyType(credentials))
        get_engine(config, self.options)
        self._config = config
        logger.info(f'{config.dialect} session successfully initialized. User: {config.user}')
        return config

    def query(self, sql: str, dataset: 'Dataset') -> LoadResult:
        """Run a query and append its result to the dataset.
        """
        return load_query(self.config, sql, dataset, self.options)


@load_options(cls=LoaderOptions)
def create_session(options: LoaderOptions | dict[str, Any] | str,
                   config: Any | None = None, **kw: Any) -> Session:
    """Create an uninitialized session

    Args:
        options: Can be:
                - LoaderOptions object
                - String path to configuration
                - Dictionary of options
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Session using the given options
    """
    if isinstance(options, LoaderOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=LoaderOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    return Session(options)
