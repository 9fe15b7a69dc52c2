import random

import pytest

from qvd_reader import FieldDescriptor, QvdFormatError
from qvd_reader.parsers import RecordIndexParser
from qvd_reader.parsers.records import check_row_section, extract_bits


def reference_extract(record: bytes, bit_offset: int, bit_width: int) -> int:
    """Byte-reverse the record, then read the field most-significant-bit first."""
    reversed_record = record[::-1]
    bits = [
        (byte >> (7 - position)) & 1
        for byte in reversed_record
        for position in range(8)
    ]
    total = len(bits)
    value = 0
    for bit in bits[total - bit_offset - bit_width : total - bit_offset]:
        value = value * 2 + bit
    return value


def field(bit_offset: int, bit_width: int, bias: int = 0) -> FieldDescriptor:
    return FieldDescriptor(
        name='name',
        bit_offset=bit_offset,
        bit_width=bit_width,
        bias=bias,
    )


def test_get_row_indexes() -> None:
    buf = bytes(
        [0x00, 0x14, 0x00, 0x11, 0x01, 0x22, 0x02, 0x33, 0x13, 0x34, 0x24, 0x35],
    )
    parser = RecordIndexParser(buf, record_byte_size=len(buf))
    assert parser.parse(field(bit_offset=10, bit_width=3)) == [5]


def test_bias_is_added() -> None:
    buf = bytes([0b0000_0011, 0b0000_0000, 0b0000_0001, 0b0000_0000])
    parser = RecordIndexParser(buf, record_byte_size=2)
    assert parser.parse(field(bit_offset=0, bit_width=2, bias=-2)) == [1, -1]


def test_bias_can_produce_null_sentinels() -> None:
    buf = bytes([0x00, 0x01, 0x02])
    parser = RecordIndexParser(buf, record_byte_size=1)
    assert parser.parse(field(bit_offset=0, bit_width=8, bias=-2)) == [-2, -1, 0]


def test_zero_width_field_is_bias_for_every_record() -> None:
    parser = RecordIndexParser(bytes(6), record_byte_size=2)
    assert parser.parse(field(bit_offset=16, bit_width=0, bias=-2)) == [-2, -2, -2]


def test_field_spanning_byte_boundary() -> None:
    # bits 6..9 hold 0b1011
    record = (0b1011 << 6).to_bytes(2, 'little')
    parser = RecordIndexParser(record, record_byte_size=2)
    assert parser.parse(field(bit_offset=6, bit_width=4)) == [0b1011]


def test_records_are_independent() -> None:
    records = [(value << 3).to_bytes(3, 'little') for value in (7, 0, 1234, 99)]
    parser = RecordIndexParser(b''.join(records), record_byte_size=3)
    assert parser.parse(field(bit_offset=3, bit_width=11)) == [7, 0, 1234, 99]


def test_matches_reference_extraction() -> None:
    rng = random.Random(20231018)
    size = 7
    section = rng.randbytes(size * 50)
    parser = RecordIndexParser(section, record_byte_size=size)

    for bit_offset, bit_width in [(0, 1), (3, 5), (8, 8), (13, 17), (0, 56), (50, 6)]:
        expected = [
            reference_extract(section[start : start + size], bit_offset, bit_width)
            for start in range(0, len(section), size)
        ]
        assert parser.parse(field(bit_offset, bit_width)) == expected


def test_extract_bits() -> None:
    record = bytes(
        [0x00, 0x14, 0x00, 0x11, 0x01, 0x22, 0x02, 0x33, 0x13, 0x34, 0x24, 0x35],
    )
    assert extract_bits(record, 10, 3) == 5
    assert extract_bits(record, 10, 0) == 0
    assert extract_bits(record, 88, 8) == 0x35


def test_empty_row_section() -> None:
    parser = RecordIndexParser(b'', record_byte_size=4)
    assert parser.record_count == 0
    assert parser.parse(field(bit_offset=0, bit_width=3)) == []


def test_zero_record_size_with_no_rows() -> None:
    assert check_row_section(b'', 0) == 0


def test_zero_record_size_with_data_raises() -> None:
    with pytest.raises(QvdFormatError, match='0 bytes wide'):
        check_row_section(b'\x00', 0)


def test_partial_record_raises() -> None:
    with pytest.raises(QvdFormatError, match='not a multiple') as exc_info:
        RecordIndexParser(bytes(10), record_byte_size=4)
    assert exc_info.value.offset == 8


def test_bit_range_outside_record_raises() -> None:
    parser = RecordIndexParser(bytes(4), record_byte_size=2)
    with pytest.raises(QvdFormatError, match='exceeds') as exc_info:
        parser.parse(field(bit_offset=12, bit_width=5))
    assert exc_info.value.field == 'name'


def test_zero_record_size_takes_declared_count() -> None:
    assert check_row_section(b'', 0, declared_count=3) == 3
    parser = RecordIndexParser(b'', record_byte_size=0, declared_count=3)
    assert parser.record_count == 3
    assert parser.parse(field(bit_offset=0, bit_width=0)) == [0, 0, 0]


def test_declared_count_ignored_for_sized_records() -> None:
    assert check_row_section(bytes(4), 2, declared_count=9) == 2
