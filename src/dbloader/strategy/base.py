"""
Base strategy interface for dialect-specific loader behavior.

Each registered dialect decides how its URL is completed with credentials,
which engine and execution options it needs, and how driver type codes and
driver errors are interpreted. The set of registered dialects is also the set
of connection URL schemes the loader accepts.
"""
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

if TYPE_CHECKING:
    from dbloader.adapters.type_mapping import SourceType
    from dbloader.options import LoaderOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['LoaderStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(LoaderStrategy):
            ...
    """
    def decorator(cls: type['LoaderStrategy']) -> type['LoaderStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class LoaderStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    example_url: str = ''

    def build_url(self, url: sa.URL, credentials: Mapping[str, str]) -> sa.URL:
        """Return the URL to connect with, completed with credentials.
        """
        return url

    def get_engine_kwargs(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for the dialect.
        """
        return {}

    def configure_connection(self, dbapi_connection: Any) -> None:
        """Prepare a freshly opened DBAPI connection for read-only use.
        """

    def execution_options(self, options: 'LoaderOptions') -> dict[str, Any]:
        """Return SQLAlchemy execution options for the query.

        `no_parameters` keeps literal % signs in the SQL away from the
        driver's placeholder parsing.
        """
        return {'no_parameters': True}

    def display_size(self, description_item: Any) -> int | None:
        """Return the display size of a cursor description item.
        """
        size = description_item[2] if len(description_item) > 2 else None
        return size if isinstance(size, int) and size > 0 else None

    @abstractmethod
    def resolve_source_type(self, type_code: Any,
                            sample: Sequence[Any] = ()) -> 'SourceType | None':
        """Resolve a driver type code to a SourceType.

        Args:
            type_code: Type code from cursor.description
            sample: Values of the column from the first fetched rows

        Returns
            SourceType or None if the type is not supported
        """

    def error_codes(self, exc: BaseException) -> tuple[int | str | None, str | None]:
        """Return (vendor code, SQL state) for a database error.
        """
        return None, None

    @staticmethod
    def _unwrap(exc: BaseException) -> BaseException:
        """Return the DBAPI exception wrapped by a SQLAlchemy error.
        """
        return getattr(exc, 'orig', None) or exc
