"""
Column type mapping and value conversion between databases and the host.
"""
from dbloader.adapters.column_info import ColumnDescriptor
from dbloader.adapters.column_info import columns_from_cursor_description
from dbloader.adapters.type_conversion import convert_value, format_temporal
from dbloader.adapters.type_conversion import transfer_value
from dbloader.adapters.type_mapping import HostColumn, HostKind, SourceType
from dbloader.adapters.type_mapping import declare_host_column

__all__ = [
    'ColumnDescriptor',
    'columns_from_cursor_description',
    'convert_value',
    'declare_host_column',
    'format_temporal',
    'HostColumn',
    'HostKind',
    'SourceType',
    'transfer_value',
]
