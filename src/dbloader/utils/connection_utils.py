"""
SQLAlchemy engine management for loader sessions.

This module provides:
1. Engine creation from a session config and loader options
2. A thread-safe registry so a session's engine is built once
3. Cleanup of all engines at interpreter exit

Engines never pool connections (NullPool): every query opens its own
connection and closes it when done.
"""
import atexit
import logging
import threading
from typing import TYPE_CHECKING

import sqlalchemy as sa
from dbloader.exceptions import DriverInitError
from dbloader.strategy import get_strategy
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

if TYPE_CHECKING:
    from dbloader.options import LoaderOptions
    from dbloader.session import SessionConfig

__all__ = [
    'get_engine',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

# One engine per (URL, credentials, timeout, appname)
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine(config: 'SessionConfig', options: 'LoaderOptions',
               engine_factory=sa.create_engine, **kwargs) -> Engine:
    """Get or create a SQLAlchemy engine for a session config.

    Creating the engine loads the dialect's DBAPI module but does not connect.

    Args:
        config: Session config with the target URL and credentials
        options: Loader options (timeouts, application name)
        engine_factory: Function to create engines (defaults to sqlalchemy.create_engine)
        **kwargs: Additional arguments passed to engine factory

    Returns
        sqlalchemy.engine.Engine: SQLAlchemy engine

    Raises
        DriverInitError: If the database driver cannot be loaded
    """
    strategy = get_strategy(config.dialect)
    url = strategy.build_url(config.url, config.credentials)
    key = f'{url.render_as_string(hide_password=False)}_{options.timeout}_{options.appname}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {config.dialect}')
            return _engine_registry[key]

        engine_kwargs = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        try:
            engine = engine_factory(url, **engine_kwargs)
        except (ImportError, sa.exc.NoSuchModuleError) as e:
            raise DriverInitError(f'Failed to initialize {config.dialect} driver: {e}') from e

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {config.dialect}')

        return engine


def dispose_all_engines():
    """Dispose every session engine; registered to run at interpreter exit."""
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('Session engines disposed')


atexit.register(dispose_all_engines)
