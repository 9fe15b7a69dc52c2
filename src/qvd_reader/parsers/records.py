"""
Record index parsing for QVD fields.

Teaching Points:
- The row section is a run of fixed-size records, one per row
- Each record packs one bit-field per column: the column's dictionary index
- Bits are numbered from the record's low-order end: reversing a record's
  bytes and reading it most-significant-bit first, a field occupies bits
  [total - bit_offset - bit_width, total - bit_offset)
- Reading the record as a little-endian integer gives the same numbering, so
  the field is simply (record >> bit_offset) & mask
- The field's bias is added to the extracted value; negative results are nulls
"""

import logging

from qvd_reader.constants import BITS_PER_BYTE
from qvd_reader.exceptions import QvdFormatError
from qvd_reader.metadata import FieldDescriptor

logger = logging.getLogger(__name__)


def check_row_section(
    row_section: bytes | memoryview,
    record_byte_size: int,
    declared_count: int | None = None,
) -> int:
    """
    Validate the row section length and return the number of records.

    When every field is constant the records are 0 bytes wide and the
    section is empty, so the count can only come from the header.

    Raises:
        QvdFormatError: If the section is not a whole number of records
    """
    length = len(row_section)
    if record_byte_size == 0:
        if length:
            raise QvdFormatError(
                f'Row section has {length} bytes but records are 0 bytes wide',
            )
        return declared_count or 0

    record_count, remainder = divmod(length, record_byte_size)
    if remainder:
        raise QvdFormatError(
            f'Row section length {length} is not a multiple of the '
            f'{record_byte_size}-byte record size',
            offset=length - remainder,
        )
    return record_count


def extract_bits(record: bytes | memoryview, bit_offset: int, bit_width: int) -> int:
    """
    Extract an unsigned bit-field from a single record.

    Only the bytes that overlap the field are converted, which keeps wide
    records cheap.
    """
    if bit_width == 0:
        return 0

    first_byte = bit_offset // BITS_PER_BYTE
    last_byte = (bit_offset + bit_width + BITS_PER_BYTE - 1) // BITS_PER_BYTE
    window = int.from_bytes(record[first_byte:last_byte], 'little')
    return (window >> (bit_offset % BITS_PER_BYTE)) & ((1 << bit_width) - 1)


class RecordIndexParser:
    """
    Extracts one field's dictionary indexes from the shared row section.

    Teaching Points:
    - Records are independent; no state carries from one record to the next
    - The same row section is read by every field's parser, never copied
    - Output has exactly one signed index per record, in record order
    """

    def __init__(
        self,
        row_section: bytes | memoryview,
        record_byte_size: int,
        declared_count: int | None = None,
    ):
        """
        Initialize the parser over a row section.

        Args:
            row_section: Every record of the table, back to back
            record_byte_size: Width of one record in bytes
            declared_count: NoOfRecords from the header, used only when
                records are 0 bytes wide

        Raises:
            QvdFormatError: If the section is not a whole number of records
        """
        self.row_section = memoryview(row_section)
        self.record_byte_size = record_byte_size
        self.record_count = check_row_section(
            self.row_section,
            record_byte_size,
            declared_count,
        )

    def parse(self, field: FieldDescriptor) -> list[int]:
        """
        Decode the field's signed index for every record.

        Args:
            field: Descriptor giving bit_offset, bit_width and bias

        Returns:
            One index per record; negative values denote null cells

        Raises:
            QvdFormatError: If the field's bits do not fit in a record
        """
        size = self.record_byte_size
        record_bits = size * BITS_PER_BYTE
        if field.bit_offset + field.bit_width > record_bits:
            raise QvdFormatError(
                f'Bit range [{field.bit_offset}, '
                f'{field.bit_offset + field.bit_width}) exceeds the '
                f'{record_bits}-bit record',
                field=field.name,
            )

        bias = field.bias
        if field.bit_width == 0:
            # every record holds the same (empty) pattern
            return [bias] * self.record_count

        bit_offset = field.bit_offset
        bit_width = field.bit_width
        section = self.row_section

        indexes = [
            extract_bits(section[start : start + size], bit_offset, bit_width) + bias
            for start in range(0, self.record_count * size, size)
        ]

        logger.debug(
            'Decoded %d record indexes for field %r (bits %d..%d, bias %d)',
            len(indexes),
            field.name,
            bit_offset,
            bit_offset + bit_width,
            bias,
        )
        return indexes
