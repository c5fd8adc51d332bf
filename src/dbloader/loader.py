"""
Query loading: stream a result set into a host dataset.

For one query, `load_query`:

1. Opens a fresh connection and executes the statement on a forward-only,
   read-only cursor
2. Maps every result column to a host variable (all columns are mapped and
   checked before the first variable is added)
3. Declares new variables or reuses existing ones with the same name
4. Streams rows in batches, growing the dataset by each batch and storing
   every non-NULL value at the next observation
5. Releases cursor and connection on every exit path

The load is not transactional: if streaming fails part way, observations
already appended stay in the dataset.
"""
import itertools
import logging
from collections.abc import Iterator, Sequence
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dbloader.adapters.column_info import ColumnDescriptor
from dbloader.adapters.column_info import columns_from_cursor_description
from dbloader.adapters.type_conversion import transfer_value
from dbloader.connection import connect
from dbloader.exceptions import ColumnTypeConflict, ConnectionFailure
from dbloader.exceptions import DbConnectionError, ExecutionError
from dbloader.exceptions import LoaderError, NotInitialized
from dbloader.options import LoaderOptions
from dbloader.strategy import get_strategy

if TYPE_CHECKING:
    from dbloader.dataset import Dataset
    from dbloader.session import SessionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of a successful load.

    `first_obs` and `last_obs` are the 1-based observation range written;
    for an empty result `last_obs` is `first_obs - 1`.
    """
    rows: int
    first_obs: int
    last_obs: int
    columns: tuple[ColumnDescriptor, ...] = field(default=(), repr=False, compare=False)


@contextmanager
def released(resource: Any, name: str) -> Iterator[Any]:
    """Close `resource` on exit, logging instead of raising close failures.
    """
    try:
        yield resource
    finally:
        try:
            resource.close()
        except Exception as e:
            logger.warning(f'Error releasing {name}: {e}')


def declare_columns(dataset: 'Dataset', columns: Sequence[ColumnDescriptor]) -> list[ColumnDescriptor]:
    """Declare or reuse a host variable for every result column.

    Names are derived from the column labels; a name repeated within the
    result is suffixed. A variable that already exists with the derived name
    is reused if its kind matches. Nothing is declared unless every column
    can be placed.

    Raises
        ColumnTypeConflict: If an existing variable has a different kind
    """
    planned = []
    taken = set()
    for column in columns:
        name = dataset.unique_var_name(dataset.make_var_name(column.label), taken)
        taken.add(name)
        index = dataset.var_index(name)
        if index is not None:
            existing = dataset.var_column(index)
            if existing.kind is not column.host.kind:
                raise ColumnTypeConflict(name, existing.kind, column.host.kind)
        planned.append((column, name, index))

    declared = []
    for column, name, index in planned:
        kind, width = column.host
        if index is None:
            index = dataset.add_var(name, kind, width)
            size = f' of length {width}' if width else ''
            logger.info(f"Added new {kind.label} variable '{name}'{size} to dataset.")
        else:
            logger.info(f"Reusing existing {kind.label} variable '{name}'.")
        declared.append(column.bind(name, index))
    return declared


def store_rows(dataset: 'Dataset', columns: Sequence[ColumnDescriptor],
               rows: Sequence[Sequence[Any]], start_obs: int) -> int:
    """Grow the dataset by `rows` and store them after observation `start_obs`.

    Returns
        Number of rows stored

    Raises
        ExecutionError: If a value cannot be converted or stored
    """
    dataset.set_obs_total(start_obs + len(rows))
    logger.debug(f'Observation count set to: {dataset.obs_total}')
    for offset, row in enumerate(rows, start=1):
        obs = start_obs + offset
        for column in columns:
            value = row[column.position - 1]
            try:
                transfer_value(dataset, column, obs, value)
            except Exception as e:
                raise ExecutionError.from_exception(
                    e, f'Failed to store {column.source_type.name} value {value!r} '
                    f'of column {column.label!r} at observation {obs}: {e}') from e
    return len(rows)


def load_query(config: 'SessionConfig | None', sql: str, dataset: 'Dataset',
               options: LoaderOptions | None = None) -> LoadResult:
    """Execute a SELECT query and append its result to the dataset.

    Args:
        config: Active session config
        sql: Query to run, passed to the database unchanged
        dataset: Host dataset receiving the rows
        options: Loader options

    Returns
        LoadResult with the row count and observation range

    Raises
        NotInitialized: If there is no session config
        ConnectionFailure: If connecting or executing fails in the database layer
        UnsupportedColumnType: If a result column has no host mapping
        ColumnTypeConflict: If a result column collides with an existing
            variable of another kind
        ExecutionError: For any other failure
    """
    if config is None:
        raise NotInitialized('Please initialize the DB connection first with: '
                             'initialize <URL> <path_to_connection_file>')
    options = options or LoaderOptions()
    strategy = get_strategy(config.dialect)
    initial_obs = dataset.obs_total
    rows = 0

    try:
        with ExitStack() as stack:
            cn = stack.enter_context(released(connect(config, options), 'connection'))
            logger.info('Successfully connected to the database, running query...')
            cursor = stack.enter_context(released(cn.cursor(), 'cursor'))
            cursor.execute(sql)

            batches = cursor.batches(options.fetch_size)
            first = next(batches, [])
            columns = columns_from_cursor_description(cursor.description, strategy, first)
            columns = declare_columns(dataset, columns)

            for batch in itertools.chain([first], batches):
                if batch:
                    rows += store_rows(dataset, columns, batch, initial_obs + rows)
    except LoaderError:
        raise
    except DbConnectionError as e:
        vendor_code, sql_state = strategy.error_codes(e)
        raise ConnectionFailure(f'Failed to query database: {e}', vendor_code, sql_state) from e
    except Exception as e:
        raise ExecutionError.from_exception(e, f'Failed to query database: {e}') from e

    logger.info(f'Retrieved {rows} rows.')
    if rows:
        logger.info(f'Data loaded successfully into observations {initial_obs + 1} to {initial_obs + rows}')
    return LoadResult(rows, initial_obs + 1, initial_obs + rows, tuple(columns))
