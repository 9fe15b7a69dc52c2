import json

from collections.abc import Iterable, Sequence

from qvd_reader.column import Column
from qvd_reader.document import QvdDocument
from qvd_reader.rows import Row


def _header(title: str) -> str:
    return f'{title}\n{"=" * 60}'


def _format_basic_info(document: QvdDocument) -> list[str]:
    metadata = document.metadata
    lines = []
    if metadata is not None:
        lines.extend(
            [
                f'Table: {metadata.table_name or "unknown"}',
                f'Created: {metadata.created_utc or "unknown"}',
                f'Creator: {metadata.creator_doc or "unknown"}',
                f'Record size: {metadata.record_byte_size} bytes',
            ],
        )
    lines.extend(
        [
            f'Total rows: {document.row_count:,}',
            f'Columns: {len(document.column_names)}',
        ],
    )
    return lines


def _format_column(column: Column, index: int) -> str:
    line = f'  {index:2}: {column.name} ({column.symbol_count:,} symbols'
    field = column.field
    if field is not None:
        line += f', bits {field.bit_offset}+{field.bit_width}, bias {field.bias}'
    return line + ')'


def format_summary(document: QvdDocument) -> str:
    lines = [
        _header('QVD File Summary'),
        *_format_basic_info(document),
    ]

    columns = document.columns()
    if columns:
        lines.extend(['\nColumns:', '-' * 40])
        for i, column in enumerate(columns):
            lines.append(_format_column(column, i))

    return '\n'.join(lines)


def format_rows(names: Sequence[str], rows: Iterable[Row]) -> str:
    """Tab separated rows under a header line of column names."""
    lines = ['\t'.join(names)]
    lines.extend('\t'.join(str(value) for value in row) for row in rows)
    return '\n'.join(lines)


def format_rows_json(names: Sequence[str], rows: Iterable[Row]) -> str:
    records = [
        {name: value.to_python() for name, value in zip(names, row, strict=True)}
        for row in rows
    ]
    return json.dumps(records, indent=2)
