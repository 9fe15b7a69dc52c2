"""
Row-oriented iteration over a columnar document.

Teaching Points:
- QVD data is stored by column; a row is assembled by resolving the same
  position in every column
- Rows are built one at a time, so iterating never materializes the table
- Every call to QvdDocument.rows() returns a new, independent iterator
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from .column import Column
from .values import NULL, CellValue

type Row = list[CellValue]


class RowIterator(Iterator[Row]):
    """
    Lazily yields rows for a sequence of row positions.

    Positions outside the document yield a row of NULLs, mirroring
    Column.values_at.
    """

    def __init__(
        self,
        columns: Sequence[Column],
        positions: Sequence[int] | range,
    ):
        self._columns = tuple(columns)
        self._positions = positions
        self._cursor = 0

    def __iter__(self) -> RowIterator:
        return self

    def __next__(self) -> Row:
        if self._cursor >= len(self._positions):
            raise StopIteration

        position = self._positions[self._cursor]
        self._cursor += 1
        return [self._value(column, position) for column in self._columns]

    def __len__(self) -> int:
        """Number of rows not yet yielded."""
        return len(self._positions) - self._cursor

    @staticmethod
    def _value(column: Column, position: int) -> CellValue:
        value = column.value_at(position)
        return NULL if value is None else value

    def __repr__(self) -> str:
        return (
            f'RowIterator(columns={len(self._columns)}, '
            f'remaining={len(self)})'
        )
