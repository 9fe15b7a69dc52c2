from enum import IntEnum, StrEnum


class SymbolType(IntEnum):
    """Control bytes that tag each value in a field's symbol segment."""

    TEXT_END = 0x00
    INT = 0x01
    DOUBLE = 0x02
    TEXT = 0x04
    DUAL_INT = 0x05
    DUAL_DOUBLE = 0x06


class CellType(StrEnum):
    """Discriminator for the decoded cell value variants."""

    TEXT = 'text'
    INT = 'int'
    FLOAT = 'float'
    NULL = 'null'
