"""
Host dataset interface and a pandas-backed implementation.

The host dataset is an append-only columnar observation table: variables are
typed when added and never change type, observations are only ever added.
Variable indices and observation numbers are 1-based, as in the host.
"""
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Collection

import pandas as pd
from dbloader.adapters.type_mapping import HostColumn, HostKind

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32

RESERVED_NAMES = frozenset({
    '_all', '_b', 'byte', '_coef', '_cons', 'double', 'float', 'if', 'in',
    'int', 'long', '_n', '_N', '_pi', '_pred', '_rc', '_se', '_skip', 'strL',
    'using', 'with',
    })

_INVALID_CHARS = re.compile(r'[^A-Za-z0-9_]')
_STR_TYPE_NAME = re.compile(r'str\d+')


def make_var_name(label: str) -> str:
    """Generate a legal host variable name from a column label.

    Invalid characters become underscores, names starting with a digit (or
    empty names) get a leading underscore, reserved words are prefixed with
    an underscore. Case is retained.

    >>> make_var_name('order id')
    'order_id'
    >>> make_var_name('2nd')
    '_2nd'
    >>> make_var_name('long')
    '_long'
    """
    name = _INVALID_CHARS.sub('_', label.strip())
    if not name or name[0].isdigit():
        name = f'_{name}'
    name = name[:MAX_NAME_LENGTH]
    if name in RESERVED_NAMES or _STR_TYPE_NAME.fullmatch(name):
        name = f'_{name}'[:MAX_NAME_LENGTH]
    return name


class Dataset(ABC):
    """Host dataset operations used by the loader.
    """

    max_name_length = MAX_NAME_LENGTH

    @property
    @abstractmethod
    def obs_total(self) -> int:
        """Current number of observations.
        """

    @abstractmethod
    def set_obs_total(self, n: int) -> None:
        """Grow the dataset to `n` observations.
        """

    @abstractmethod
    def var_index(self, name: str) -> int | None:
        """Index of the variable called `name`, or None if there is none.
        """

    @abstractmethod
    def var_column(self, index: int) -> HostColumn:
        """Kind and width of the variable at `index`.
        """

    @abstractmethod
    def add_var(self, name: str, kind: HostKind, width: int | None = None) -> int:
        """Add a typed variable and return its index.
        """

    @abstractmethod
    def store_num(self, index: int, obs: int, value: int | float) -> None:
        """Store a numeric value at (variable, observation).
        """

    @abstractmethod
    def store_str(self, index: int, obs: int, value: str) -> None:
        """Store a string value at (variable, observation).
        """

    def make_var_name(self, label: str) -> str:
        return make_var_name(label)

    def unique_var_name(self, name: str, taken: Collection[str]) -> str:
        """Suffix `name` with _2, _3, ... until it is not in `taken`.
        """
        candidate, n = name, 1
        while candidate in taken:
            n += 1
            suffix = f'_{n}'
            candidate = name[:self.max_name_length - len(suffix)] + suffix
        return candidate


DTYPES = {
    HostKind.LONG: 'Int64',
    HostKind.INT: 'Int32',
    HostKind.BYTE: 'Int8',
    HostKind.DOUBLE: 'float64',
    HostKind.FLOAT: 'float32',
    HostKind.STR: 'string',
    HostKind.STRL: 'string',
    }


class FrameDataset(Dataset):
    """Dataset backed by a pandas DataFrame.

    Missing values are the dtype's NA (<NA> for nullable integers and
    strings, NaN for floats). Fixed-width string variables truncate stored
    values to their width.

    Storage is allocated ahead of the observation count and doubled when it
    runs out, so a load that grows the dataset batch by batch copies the
    frame a logarithmic number of times.
    """

    def __init__(self) -> None:
        self._frame = pd.DataFrame(index=pd.RangeIndex(0))
        self._columns: list[HostColumn] = []
        self._obs_total = 0

    def __len__(self) -> int:
        return self.obs_total

    def __repr__(self) -> str:
        return f'FrameDataset(vars={len(self._columns)}, obs={self.obs_total})'

    @property
    def obs_total(self) -> int:
        return self._obs_total

    @property
    def capacity(self) -> int:
        """Observations allocated, at least `obs_total`.
        """
        return len(self._frame.index)

    def set_obs_total(self, n: int) -> None:
        if n < self._obs_total:
            raise ValueError(f'Cannot shrink dataset from {self._obs_total} to {n} observations')
        if n > self.capacity:
            self._frame = self._frame.reindex(pd.RangeIndex(max(n, 2 * self.capacity)))
        self._obs_total = n

    def var_index(self, name: str) -> int | None:
        if name not in self._frame.columns:
            return None
        return self._frame.columns.get_loc(name) + 1

    def var_column(self, index: int) -> HostColumn:
        self._check_index(index)
        return self._columns[index - 1]

    def add_var(self, name: str, kind: HostKind, width: int | None = None) -> int:
        if name in self._frame.columns:
            raise ValueError(f'Variable {name!r} already defined')
        if kind is HostKind.STR and not width:
            raise ValueError(f'String variable {name!r} needs a width')
        self._frame[name] = pd.Series(None, index=self._frame.index, dtype=DTYPES[kind])
        self._columns.append(HostColumn(kind, width if kind is HostKind.STR else None))
        return len(self._columns)

    def store_num(self, index: int, obs: int, value: int | float) -> None:
        self._check_cell(index, obs)
        if not self._columns[index - 1].kind.is_numeric:
            raise TypeError(f'Variable {self._frame.columns[index - 1]!r} is not numeric')
        self._frame.iat[obs - 1, index - 1] = value

    def store_str(self, index: int, obs: int, value: str) -> None:
        self._check_cell(index, obs)
        kind, width = self._columns[index - 1]
        if kind.is_numeric:
            raise TypeError(f'Variable {self._frame.columns[index - 1]!r} is not a string')
        if width:
            value = value[:width]
        self._frame.iat[obs - 1, index - 1] = value

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the data with column types in `attrs`.
        """
        df = self._frame.iloc[:self._obs_total].copy()
        df.attrs['column_types'] = {
            name: {'kind': col.kind.name, 'width': col.width}
            for name, col in zip(self._frame.columns, self._columns)
            }
        return df

    def _check_index(self, index: int) -> None:
        if not 1 <= index <= len(self._columns):
            raise IndexError(f'Variable index {index} out of range')

    def _check_cell(self, index: int, obs: int) -> None:
        self._check_index(index)
        if not 1 <= obs <= self.obs_total:
            raise IndexError(f'Observation {obs} out of range 1..{self.obs_total}')
