"""
Column: one field's dictionary paired with its per-row indexes.

Teaching Points:
- QVD stores every distinct value of a field once, in the field's symbol
  dictionary; rows only store small integer indexes into it
- A negative index is the null sentinel; resolve() turns it into NULL so
  callers never see the sentinel
- Columns are immutable once decoded and safe to share between threads
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from .exceptions import QvdFormatError
from .metadata import FieldDescriptor
from .values import NULL, CellValue, cell_value


@dataclass(frozen=True)
class Column:
    """
    A decoded column.

    Attributes:
        name: Field name from the table header
        symbols: The field's dictionary, in decode order
        indexes: One signed dictionary index per row; negative means null
        field: The descriptor the column was decoded from, if any
    """

    name: str
    symbols: tuple[CellValue, ...]
    indexes: tuple[int, ...]
    field: FieldDescriptor | None = None

    @property
    def symbol_count(self) -> int:
        return len(self.symbols)

    @property
    def row_count(self) -> int:
        return len(self.indexes)

    def resolve(self, index: int) -> CellValue:
        """Resolve a raw dictionary index; any negative index is NULL."""
        if index < 0:
            return NULL
        return self.symbols[index]

    def symbol_index_at(self, row: int) -> int | None:
        """
        Dictionary position referenced by a row.

        Returns:
            The non-negative dictionary index, or None if the cell is null

        Raises:
            IndexError: If the row is out of range
        """
        if not 0 <= row < len(self.indexes):
            raise IndexError(
                f'Row {row} out of range for column {self.name!r} '
                f'with {len(self.indexes)} rows',
            )
        index = self.indexes[row]
        return index if index >= 0 else None

    def value_at(self, row: int) -> CellValue | None:
        """Value of a single row, or None if the row does not exist."""
        if not 0 <= row < len(self.indexes):
            return None
        return self.resolve(self.indexes[row])

    def values_at(self, rows: Iterable[int]) -> list[CellValue]:
        """
        Values for an arbitrary list of rows, in the order requested.

        Rows outside the column resolve to NULL rather than raising, so a
        filter built for one document can be applied to another without
        bounds checks.
        """
        indexes = self.indexes
        row_count = len(indexes)
        return [
            self.resolve(indexes[row]) if 0 <= row < row_count else NULL
            for row in rows
        ]

    def iter_values(self) -> Iterator[CellValue]:
        return (self.resolve(index) for index in self.indexes)

    def materialize_all(self) -> list[CellValue]:
        """Every row's value, in row order."""
        return list(self.iter_values())

    def find_row_indexes(self, value: CellValue | str | int | float) -> list[int]:
        """
        Rows whose value equals `value`, in ascending order.

        The dictionary is scanned for every matching position, then the row
        indexes are scanned once for those positions. Null never matches.
        """
        target = cell_value(value)
        if target.is_null():
            return []

        positions = {
            position
            for position, symbol in enumerate(self.symbols)
            if symbol == target
        }
        if not positions:
            return []

        return [row for row, index in enumerate(self.indexes) if index in positions]

    def __len__(self) -> int:
        return len(self.indexes)

    def __repr__(self) -> str:
        return (
            f'Column(name={self.name!r}, '
            f'symbols={len(self.symbols)}, '
            f'rows={len(self.indexes)})'
        )


def check_column(column: Column) -> None:
    """
    Verify every row index of a column points inside its dictionary.

    Raises:
        QvdFormatError: Naming the first row with an out-of-range index
    """
    limit = len(column.symbols)
    for row, index in enumerate(column.indexes):
        if index >= limit:
            raise QvdFormatError(
                f'Row {row} references symbol {index} but the dictionary '
                f'has {limit} symbols',
                field=column.name,
            )


def columns_by_name(columns: Sequence[Column]) -> dict[str, Column]:
    return {column.name: column for column in columns}
