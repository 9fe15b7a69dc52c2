"""
Decoded cell values.

A QVD cell is one of four variants: text, a 32-bit signed integer, a 64-bit
float, or null. Each variant is its own frozen dataclass, so equality is
structural and tagged: ``IntValue(1) != FloatValue(1.0)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal

from .enums import CellType
from .exceptions import InvalidValueError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


@dataclass(frozen=True, slots=True)
class TextValue:
    value: str

    cell_type: ClassVar[Literal[CellType.TEXT]] = CellType.TEXT

    def is_null(self) -> bool:
        return False

    def to_python(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class IntValue:
    value: int

    cell_type: ClassVar[Literal[CellType.INT]] = CellType.INT

    def is_null(self) -> bool:
        return False

    def to_python(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class FloatValue:
    value: float

    cell_type: ClassVar[Literal[CellType.FLOAT]] = CellType.FLOAT

    def is_null(self) -> bool:
        return False

    def to_python(self) -> float:
        return self.value

    def __str__(self) -> str:
        # shortest round-trip form, without a trailing '.0' on whole numbers
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)


@dataclass(frozen=True, slots=True)
class NullValue:
    cell_type: ClassVar[Literal[CellType.NULL]] = CellType.NULL

    def is_null(self) -> bool:
        return True

    def to_python(self) -> None:
        return None

    def __str__(self) -> str:
        return ''


NULL = NullValue()

CellValue = TextValue | IntValue | FloatValue | NullValue


def cell_value(value: CellValue | str | int | float | None) -> CellValue:
    """
    Convert a plain Python value into the matching cell value variant.

    Cell values are returned unchanged. ``None`` becomes ``NULL``.

    Raises:
        InvalidValueError: If the value has no cell value representation, or is
            an integer outside the signed 32-bit range.
    """
    match value:
        case TextValue() | IntValue() | FloatValue() | NullValue():
            return value
        case None:
            return NULL
        case bool():
            raise InvalidValueError(f'Booleans are not QVD cell values: {value!r}')
        case str():
            return TextValue(value)
        case int():
            if not INT32_MIN <= value <= INT32_MAX:
                raise InvalidValueError(
                    f'Integer {value} is outside the signed 32-bit range',
                )
            return IntValue(value)
        case float():
            return FloatValue(value)
        case _:
            raise InvalidValueError(
                f'Cannot convert {type(value).__name__} to a cell value',
            )
