"""
Result column information bridging source types to host variables.
"""
import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

from dbloader.adapters.type_mapping import HostColumn, SourceType
from dbloader.adapters.type_mapping import declare_host_column

if TYPE_CHECKING:
    from dbloader.strategy import LoaderStrategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDescriptor:
    """Per-query description of one result column.

    Technical implementation details:
    - `position` is the 1-based ordinal of the column in the result
    - `type_code` is the driver's raw type code from cursor.description
    - `source_type` is the resolved `SourceType`
    - `host` is the host variable kind and width from the mapping table
    - `name` and `index` identify the host variable once it is declared
    """
    position: int
    label: str
    type_code: Any
    source_type: SourceType
    display_size: int | None
    host: HostColumn
    name: str | None = None
    index: int | None = None

    @classmethod
    def from_cursor_description(cls, description_item: Any, position: int,
                                strategy: 'LoaderStrategy',
                                sample: Sequence[Any] = ()) -> Self:
        """Create a descriptor from a cursor description item.

        Args:
            description_item: One item from cursor.description
            position: 1-based column ordinal
            strategy: Dialect strategy resolving the driver type code
            sample: Values of this column from the first fetched rows

        Raises
            UnsupportedColumnType: If the column type has no host mapping
        """
        label = str(description_item[0])
        type_code = description_item[1]
        display_size = strategy.display_size(description_item)
        source_type = strategy.resolve_source_type(type_code, sample)
        host = declare_host_column(source_type, display_size, label)
        return cls(position, label, type_code, source_type, display_size, host)

    def bind(self, name: str, index: int) -> Self:
        """Return a copy bound to the declared host variable.
        """
        return dataclasses.replace(self, name=name, index=index)

    def to_dict(self) -> dict[str, Any]:
        return {
            'position': self.position,
            'label': self.label,
            'type_code': self.type_code,
            'source_type': self.source_type.name,
            'display_size': self.display_size,
            'kind': self.host.kind.name,
            'width': self.host.width,
            'name': self.name,
            'index': self.index,
            }


def columns_from_cursor_description(description: Sequence[Any] | None,
                                    strategy: 'LoaderStrategy',
                                    sample: Sequence[Sequence[Any]] = ()) -> list[ColumnDescriptor]:
    """Create descriptors for every column of a result, in ordinal order.

    All columns are mapped before any is returned, so an unsupported column
    fails the whole result.

    Args:
        description: cursor.description of the executed query
        strategy: Dialect strategy resolving driver type codes
        sample: First fetched rows, used by dialects without column types

    Returns
        List of ColumnDescriptor objects
    """
    if description is None:
        return []

    return [
        ColumnDescriptor.from_cursor_description(
            item, position, strategy, [row[position - 1] for row in sample])
        for position, item in enumerate(description, start=1)
    ]
