from ._version import get_version
from .column import Column
from .document import QvdDocument, open
from .exceptions import (
    ColumnNotFoundError,
    InvalidValueError,
    QvdError,
    QvdFormatError,
    QvdIoError,
    QvdMetadataError,
)
from .metadata import FieldDescriptor, TableMetadata
from .rows import Row, RowIterator
from .values import (
    NULL,
    CellValue,
    FloatValue,
    IntValue,
    NullValue,
    TextValue,
    cell_value,
)

__version__ = get_version()

__all__ = [
    'NULL',
    'CellValue',
    'Column',
    'ColumnNotFoundError',
    'FieldDescriptor',
    'FloatValue',
    'IntValue',
    'InvalidValueError',
    'NullValue',
    'QvdDocument',
    'QvdError',
    'QvdFormatError',
    'QvdIoError',
    'QvdMetadataError',
    'Row',
    'RowIterator',
    'TableMetadata',
    'TextValue',
    'cell_value',
    'open',
]
