from .header import split_header
from .metadata import MetadataParser
from .records import RecordIndexParser
from .symbols import SymbolParser

__all__ = [
    'MetadataParser',
    'RecordIndexParser',
    'SymbolParser',
    'split_header',
]
