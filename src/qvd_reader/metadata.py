"""
Table and field descriptors read from the QVD XML header.

Teaching Points:
- The header describes where every field's dictionary lives in the symbol
  section and where its index lives inside each fixed-size record
- Descriptors are validated once, up front, so the decoders can trust them
- Field names follow the Python side; aliases follow the XML tag names
"""

from __future__ import annotations

from functools import cached_property
from typing import Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from .constants import BITS_PER_BYTE


class NumberFormat(BaseModel):
    """Display format the source application attached to a field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str | None = Field(default=None, alias='Type')
    decimals: int | None = Field(default=None, alias='nDec')
    use_thousands: int | None = Field(default=None, alias='UseThou')
    format: str | None = Field(default=None, alias='Fmt')
    decimal_separator: str | None = Field(default=None, alias='Dec')
    thousands_separator: str | None = Field(default=None, alias='Thou')


class LineageInfo(BaseModel):
    """One entry of the table's load-script lineage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    discriminator: str | None = Field(default=None, alias='Discriminator')
    statement: str | None = Field(default=None, alias='Statement')


class FieldDescriptor(BaseModel):
    """
    Location of one field's symbols and record indexes.

    Teaching Points:
    - symbol_offset/symbol_length select this field's segment of the shared
      symbol section
    - bit_offset/bit_width select this field's index bits inside each record
    - bias is added to the unsigned extracted bits; negative results are nulls
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias='FieldName')
    symbol_offset: int = Field(default=0, ge=0, alias='Offset')
    symbol_length: int = Field(default=0, ge=0, alias='Length')
    bit_offset: int = Field(default=0, ge=0, alias='BitOffset')
    bit_width: int = Field(default=0, ge=0, alias='BitWidth')
    bias: int = Field(default=0, alias='Bias')
    symbol_count: int | None = Field(default=None, ge=0, alias='NoOfSymbols')
    comment: str | None = Field(default=None, alias='Comment')
    number_format: NumberFormat | None = Field(default=None, alias='NumberFormat')
    tags: tuple[str, ...] = Field(default=(), alias='Tags')

    @computed_field
    @cached_property
    def symbol_end(self) -> int:
        return self.symbol_offset + self.symbol_length

    @computed_field
    @cached_property
    def bit_end(self) -> int:
        return self.bit_offset + self.bit_width


class TableMetadata(BaseModel):
    """
    The parsed QVD table header.

    Teaching Points:
    - row_section_offset is measured from the first byte after the header's
      NUL terminator; everything before it is the symbol section
    - Every record is record_byte_size bytes, one record per row
    - Field order here is the column order of the decoded document
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    table_name: str | None = Field(default=None, alias='TableName')
    build_number: str | None = Field(default=None, alias='QvBuildNo')
    creator_doc: str | None = Field(default=None, alias='CreatorDoc')
    created_utc: str | None = Field(default=None, alias='CreateUtcTime')
    source_created_utc: str | None = Field(default=None, alias='SourceCreateUtcTime')
    source_file_utc: str | None = Field(default=None, alias='SourceFileUtcTime')
    source_file_size: int | None = Field(default=None, alias='SourceFileSize')
    stale_utc: str | None = Field(default=None, alias='StaleUtcTime')
    comment: str | None = Field(default=None, alias='Comment')
    compression: str | None = Field(default=None, alias='Compression')
    record_byte_size: int = Field(ge=0, alias='RecordByteSize')
    record_count: int | None = Field(default=None, ge=0, alias='NoOfRecords')
    row_section_offset: int = Field(ge=0, alias='Offset')
    row_section_length: int | None = Field(default=None, ge=0, alias='Length')
    fields: tuple[FieldDescriptor, ...] = Field(default=(), alias='Fields')
    lineage: tuple[LineageInfo, ...] = Field(default=(), alias='Lineage')

    @model_validator(mode='after')
    def check_field_layout(self) -> Self:
        record_bits = self.record_byte_size * BITS_PER_BYTE
        seen: set[str] = set()

        for field in self.fields:
            if field.name in seen:
                raise ValueError(f'Duplicate field name {field.name!r}')
            seen.add(field.name)

            if field.bit_end > record_bits:
                raise ValueError(
                    f'Field {field.name!r} bit range '
                    f'[{field.bit_offset}, {field.bit_end}) does not fit in a '
                    f'{record_bits}-bit record',
                )

            if field.symbol_end > self.row_section_offset:
                raise ValueError(
                    f'Field {field.name!r} symbol segment '
                    f'[{field.symbol_offset}, {field.symbol_end}) runs past the '
                    f'symbol section, which ends at {self.row_section_offset}',
                )

        return self

    @computed_field
    @cached_property
    def field_count(self) -> int:
        return len(self.fields)

    @cached_property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]

    def field(self, name: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None
