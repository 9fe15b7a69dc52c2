import struct

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from xml.sax.saxutils import escape

import pytest

from qvd_reader import QvdDocument

MONTHS = [str(i) for i in range(1, 13)]
QUARTERS = [f'Q{i}' for i in range(1, 5)]
SOME_NULL_SYMBOLS = ['1.2', '10.0', '64', '1', '213.95625', '2', '3', '5', '1000']
SOME_NULL_INDEXES = [0, 1, 2, -2, -2, -2, 3, 4, 5, 6, 7, 8]


def encode_text(text: str) -> bytes:
    return b'\x04' + text.encode('utf-8') + b'\x00'


def encode_int(value: int) -> bytes:
    return b'\x01' + struct.pack('<i', value)


def encode_float(value: float) -> bytes:
    return b'\x02' + struct.pack('<d', value)


def encode_symbol(value: str | int | float) -> bytes:
    if isinstance(value, str):
        return encode_text(value)
    if isinstance(value, int):
        return encode_int(value)
    return encode_float(value)


@dataclass
class FieldSpec:
    """One column of a synthetic QVD file."""

    name: str
    symbols: Sequence[str | int | float]
    indexes: Sequence[int]
    bias: int = 0
    tags: Sequence[str] = ()


def _field_xml(
    spec: FieldSpec,
    bit_offset: int,
    bit_width: int,
    offset: int,
    length: int,
) -> str:
    tags = ''.join(f'<String>{escape(tag)}</String>' for tag in spec.tags)
    return f"""
    <QvdFieldHeader>
      <FieldName>{escape(spec.name)}</FieldName>
      <BitOffset>{bit_offset}</BitOffset>
      <BitWidth>{bit_width}</BitWidth>
      <Bias>{spec.bias}</Bias>
      <NumberFormat>
        <Type>UNKNOWN</Type>
        <nDec>0</nDec>
        <UseThou>0</UseThou>
        <Fmt></Fmt>
        <Dec></Dec>
        <Thou></Thou>
      </NumberFormat>
      <NoOfSymbols>{len(spec.symbols)}</NoOfSymbols>
      <Offset>{offset}</Offset>
      <Length>{length}</Length>
      <Comment></Comment>
      <Tags>{tags}</Tags>
    </QvdFieldHeader>"""


def build_qvd(
    fields: Sequence[FieldSpec],
    table_name: str = 'test_table',
    record_count: int | None = None,
    row_section_length: int | None = None,
    trailing: bytes = b'',
) -> bytes:
    """
    Encode a complete QVD file.

    Each field gets the narrowest bit width that holds its biased indexes,
    packed one after another from bit 0 of a little-endian record.
    """
    symbol_section = b''
    layout: list[tuple[FieldSpec, int, int]] = []
    fields_xml = []
    bit_offset = 0

    for spec in fields:
        segment = b''.join(encode_symbol(symbol) for symbol in spec.symbols)
        raw = [index - spec.bias for index in spec.indexes]
        assert all(value >= 0 for value in raw), f'bias too small for {spec.name}'
        bit_width = max((value.bit_length() for value in raw), default=0)

        fields_xml.append(
            _field_xml(spec, bit_offset, bit_width, len(symbol_section), len(segment)),
        )
        layout.append((spec, bit_offset, bit_width))
        symbol_section += segment
        bit_offset += bit_width

    record_byte_size = (bit_offset + 7) // 8
    row_count = len(fields[0].indexes) if fields else 0

    row_section = b''
    for row in range(row_count):
        record = 0
        for spec, offset, _ in layout:
            record |= (spec.indexes[row] - spec.bias) << offset
        row_section += record.to_bytes(record_byte_size, 'little')
    row_section += trailing

    if record_count is None:
        record_count = row_count
    if row_section_length is None:
        row_section_length = len(row_section)

    header = f"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<QvdTableHeader>
  <QvBuildNo>50668</QvBuildNo>
  <CreatorDoc>{{3f9d2a53-1c2b-4b55-8f0e-0123456789ab}}</CreatorDoc>
  <CreateUtcTime>2023-04-01 10:11:12</CreateUtcTime>
  <SourceCreateUtcTime></SourceCreateUtcTime>
  <SourceFileUtcTime></SourceFileUtcTime>
  <SourceFileSize>-1</SourceFileSize>
  <StaleUtcTime></StaleUtcTime>
  <TableName>{escape(table_name)}</TableName>
  <Fields>{''.join(fields_xml)}
  </Fields>
  <Compression></Compression>
  <RecordByteSize>{record_byte_size}</RecordByteSize>
  <NoOfRecords>{record_count}</NoOfRecords>
  <Offset>{len(symbol_section)}</Offset>
  <Length>{row_section_length}</Length>
  <Lineage>
    <LineageInfo>
      <Discriminator>INLINE;</Discriminator>
      <Statement>LOAD * INLINE [...]</Statement>
    </LineageInfo>
  </Lineage>
  <Comment></Comment>
</QvdTableHeader>
"""
    return header.encode('utf-8') + b'\r\n\x00' + symbol_section + row_section


def quarter_fields() -> list[FieldSpec]:
    """Month/Quarter table with a partly null and an all null column."""
    return [
        FieldSpec('Month', MONTHS, list(range(12)), tags=['$numeric', '$integer']),
        FieldSpec('Quarter', QUARTERS, [i // 3 for i in range(12)], tags=['$text']),
        FieldSpec('some_null', SOME_NULL_SYMBOLS, SOME_NULL_INDEXES, bias=-2),
        FieldSpec('all Null', [], [-2] * 12, bias=-2),
    ]


def mixed_fields() -> list[FieldSpec]:
    """A table with integer, text and float dictionaries."""
    return [
        FieldSpec('integer', list(range(1, 13)), list(range(12))),
        FieldSpec('all_string', QUARTERS, [i // 3 for i in range(12)]),
        FieldSpec('float', [round(1.1 * i, 1) for i in range(1, 13)], list(range(12))),
        FieldSpec('mixed', [1.2, 10.0, 'text', 7], [i % 4 for i in range(12)]),
        FieldSpec('null', [], [-1] * 12, bias=-1),
    ]


type WriteQvd = Callable[..., Path]


@pytest.fixture
def write_qvd(tmp_path: Path) -> WriteQvd:
    def _write(fields: Sequence[FieldSpec], name: str = 'table.qvd', **kwargs) -> Path:
        path = tmp_path / name
        path.write_bytes(build_qvd(fields, **kwargs))
        return path

    return _write


@pytest.fixture
def quarter_bytes() -> bytes:
    return build_qvd(quarter_fields(), table_name='quarters')


@pytest.fixture
def quarter_path(write_qvd: WriteQvd) -> Path:
    return write_qvd(quarter_fields(), name='quarters.qvd', table_name='quarters')


@pytest.fixture
def quarter_document(quarter_bytes: bytes) -> QvdDocument:
    return QvdDocument.from_bytes(quarter_bytes)


@pytest.fixture
def mixed_path(write_qvd: WriteQvd) -> Path:
    return write_qvd(mixed_fields(), name='mixed.qvd', table_name='mixed')


@pytest.fixture
def mixed_document(mixed_path: Path) -> QvdDocument:
    return QvdDocument.from_file(mixed_path)
