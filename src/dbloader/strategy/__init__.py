"""
Dialect strategies, keyed by connection URL scheme.

Importing this package registers the MySQL, PostgreSQL and SQLite strategies.
"""
from functools import lru_cache

from dbloader.strategy.base import _STRATEGY_REGISTRY, LoaderStrategy
from dbloader.strategy.base import register_strategy
from dbloader.strategy.mysql import MySQLStrategy
from dbloader.strategy.postgres import PostgresStrategy
from dbloader.strategy.sqlite import SQLiteStrategy

__all__ = [
    'LoaderStrategy',
    'MySQLStrategy',
    'PostgresStrategy',
    'SQLiteStrategy',
    'register_strategy',
    'get_strategy',
    'get_available_dialects',
    'is_supported_dialect',
    'example_urls',
]


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> LoaderStrategy:
    """Return the shared strategy instance for a dialect.

    Raises
        ValueError: If no strategy is registered for the dialect
    """
    try:
        strategy_cls = _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(f'Unsupported dialect: {dialect}. Available: {get_available_dialects()}') from None
    return strategy_cls()


def get_available_dialects() -> list[str]:
    return sorted(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY


def example_urls() -> str:
    """Example URL of every dialect, for error messages."""
    return ', '.join(get_strategy(d).example_url for d in get_available_dialects())
