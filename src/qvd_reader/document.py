"""
QvdDocument: Main entry point for reading QVD files.

Teaching Points:
- A QVD file is an XML header, a NUL byte, a symbol section holding every
  field's dictionary, and a row section of fixed-size bit-packed records
- The whole file is read into memory once; decoding works on views of that
  single buffer and never copies a section
- Fields are independent, so their symbols and indexes are decoded in
  parallel and joined back in header order
- Decoding is all-or-nothing: any inconsistency raises and no document is
  returned
"""

from __future__ import annotations

import json
import logging

from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import cached_property
from pathlib import Path
from typing import Any, Self

from .column import Column, check_column, columns_by_name
from .constants import DEFAULT_MAX_WORKERS
from .exceptions import ColumnNotFoundError, QvdFormatError, QvdIoError
from .metadata import FieldDescriptor, TableMetadata
from .parsers import MetadataParser, RecordIndexParser, SymbolParser, split_header
from .protocols import ReadableSeekable
from .rows import RowIterator
from .values import CellValue

logger = logging.getLogger(__name__)


def _row_section(binary: memoryview, metadata: TableMetadata) -> memoryview:
    start = metadata.row_section_offset
    if start > len(binary):
        raise QvdFormatError(
            f'Row section offset {start} is past the end of the '
            f'{len(binary)}-byte binary data',
            offset=start,
        )

    if metadata.row_section_length is None:
        return binary[start:]

    stop = start + metadata.row_section_length
    if stop > len(binary):
        raise QvdFormatError(
            f'Row section is truncated: expected {metadata.row_section_length} '
            f'bytes, found {len(binary) - start}',
            offset=start,
        )
    return binary[start:stop]


def _decode_column(
    field: FieldDescriptor,
    symbol_section: memoryview,
    records: RecordIndexParser,
) -> Column:
    # TableMetadata and _row_section guarantee the segment lies in the section
    segment = symbol_section[field.symbol_offset : field.symbol_end]
    symbols = SymbolParser(segment, field.name).parse()
    if field.symbol_count is not None and len(symbols) != field.symbol_count:
        logger.warning(
            'Field %r declares %d symbols but %d were decoded',
            field.name,
            field.symbol_count,
            len(symbols),
        )

    column = Column(
        name=field.name,
        symbols=tuple(symbols),
        indexes=tuple(records.parse(field)),
        field=field,
    )
    check_column(column)
    return column


def decode_columns(
    binary: memoryview,
    metadata: TableMetadata,
    max_workers: int | None = DEFAULT_MAX_WORKERS,
) -> list[Column]:
    """
    Decode every field of a table into columns.

    Args:
        binary: File content after the header's NUL terminator
        metadata: Parsed table header
        max_workers: Thread pool size; 1 decodes on the calling thread

    Returns:
        Columns in header field order

    Raises:
        QvdFormatError: If any section is truncated or inconsistent
    """
    row_section = _row_section(binary, metadata)
    symbol_section = binary[: metadata.row_section_offset]
    records = RecordIndexParser(
        row_section,
        metadata.record_byte_size,
        metadata.record_count,
    )

    if (
        metadata.record_count is not None
        and records.record_count != metadata.record_count
    ):
        raise QvdFormatError(
            f'Header declares {metadata.record_count} records but the row '
            f'section holds {records.record_count}',
            offset=metadata.row_section_offset,
        )

    logger.debug(
        'Decoding %d fields over %d records (%d-byte symbol section)',
        metadata.field_count,
        records.record_count,
        len(symbol_section),
    )

    def decode(field: FieldDescriptor) -> Column:
        return _decode_column(field, symbol_section, records)

    if max_workers == 1 or metadata.field_count <= 1:
        columns = [decode(field) for field in metadata.fields]
    else:
        with ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix='qvd-decode',
        ) as executor:
            # map() yields in submission order, whatever order workers finish
            columns = list(executor.map(decode, metadata.fields))

    return columns


class QvdDocument:
    """
    A fully decoded QVD table.

    Teaching Points:
    - Columns keep the compact dictionary + index representation; values are
      only resolved when rows or cells are requested
    - The document is read-only after construction and can be queried from
      several threads at once
    - Row access is lazy: rows() and rows_by_indexes() build one row at a time
    """

    def __init__(
        self,
        columns: Sequence[Column],
        metadata: TableMetadata | None = None,
    ):
        """
        Initialize a document from decoded columns.

        Args:
            columns: Columns in table order
            metadata: The table header the columns were decoded from

        Raises:
            QvdFormatError: If the columns do not all have the same row count
        """
        self._columns = tuple(columns)
        self._metadata = metadata

        row_counts = {column.row_count for column in self._columns}
        if len(row_counts) > 1:
            raise QvdFormatError(
                'Columns disagree on row count: '
                + ', '.join(f'{c.name}={c.row_count}' for c in self._columns),
            )
        self._row_count = row_counts.pop() if row_counts else 0

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        max_workers: int | None = DEFAULT_MAX_WORKERS,
    ) -> Self:
        """
        Decode a complete QVD file held in memory.

        Raises:
            QvdFormatError: If the content is not a well-formed QVD file
        """
        header, binary = split_header(data)
        metadata = MetadataParser(header).parse()
        columns = decode_columns(binary, metadata, max_workers=max_workers)

        document = cls(columns, metadata)
        logger.debug('Decoded %r', document)
        return document

    @classmethod
    def from_reader(
        cls,
        reader: ReadableSeekable,
        max_workers: int | None = DEFAULT_MAX_WORKERS,
    ) -> Self:
        """Decode a QVD file from the start of a binary file-like object."""
        try:
            reader.seek(0)
            data = reader.read()
        except OSError as e:
            raise QvdIoError(f'Failed to read QVD data: {e}') from e
        return cls.from_bytes(data, max_workers=max_workers)

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        max_workers: int | None = DEFAULT_MAX_WORKERS,
    ) -> Self:
        """
        Read and decode a QVD file from disk.

        Raises:
            QvdIoError: If the file cannot be opened or read
            QvdFormatError: If the content is not a well-formed QVD file
        """
        path = Path(path)
        logger.debug('Reading QVD file %s', path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise QvdIoError(f'Cannot read QVD file {path}: {e}') from e
        return cls.from_bytes(data, max_workers=max_workers)

    @property
    def metadata(self) -> TableMetadata | None:
        return self._metadata

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self._columns]

    def columns(self) -> list[Column]:
        """Columns in table order."""
        return list(self._columns)

    @cached_property
    def _columns_by_name(self) -> dict[str, Column]:
        return columns_by_name(self._columns)

    def column(self, name: str) -> Column:
        """
        Look up a column by name.

        Raises:
            ColumnNotFoundError: If the document has no such column
        """
        try:
            return self._columns_by_name[name]
        except KeyError:
            raise ColumnNotFoundError(
                f'Column {name!r} not found. Available columns: {self.column_names}',
            ) from None

    def rows(self) -> RowIterator:
        """Iterate all rows in file order; each call starts a fresh iterator."""
        return RowIterator(self._columns, range(self._row_count))

    def rows_by_indexes(self, positions: Sequence[int]) -> RowIterator:
        """
        Iterate the rows at the given positions, in the order given.

        Positions outside the document yield rows of NULLs.
        """
        return RowIterator(self._columns, tuple(positions))

    def records(self) -> Iterator[dict[str, CellValue]]:
        """Iterate rows as {column name: value} mappings."""
        names = self.column_names
        for row in self.rows():
            yield dict(zip(names, row, strict=True))

    def find_row_indexes(
        self,
        column_name: str,
        value: CellValue | str | int | float,
    ) -> list[int]:
        """
        Rows where `column_name` equals `value`, in ascending order.

        An unknown column or a null value matches nothing.
        """
        column = self._columns_by_name.get(column_name)
        if column is None:
            logger.debug('find_row_indexes: no column named %r', column_name)
            return []
        return column.find_row_indexes(value)

    def to_dict(self) -> dict[str, Any]:
        from .serialization import create_converter

        return create_converter().unstructure(self)

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        from .serialization import create_converter

        return create_converter().structure(data, cls)

    @classmethod
    def from_json(cls, json_str: str) -> Self:
        return cls.from_dict(json.loads(json_str))

    def __len__(self) -> int:
        return self._row_count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QvdDocument):
            return NotImplemented
        return self._columns == other._columns and self._metadata == other._metadata

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f'QvdDocument('
            f'rows={self._row_count}, '
            f'columns={len(self._columns)})'
        )


def open(  # noqa: A001
    path: Path | str,
    max_workers: int | None = DEFAULT_MAX_WORKERS,
) -> QvdDocument:
    """Read and decode the QVD file at `path`."""
    return QvdDocument.from_file(path, max_workers=max_workers)

