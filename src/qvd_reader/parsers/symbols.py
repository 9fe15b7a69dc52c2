"""
Symbol segment parsing for QVD fields.

This module decodes one field's symbol segment, the dictionary of distinct
values that the field's record indexes point into. The segment is a flat run
of tagged values; a control byte before each value says how to read it:

    0x00  ends the text value that is currently open
    0x01  4-byte little-endian signed integer
    0x02  8-byte little-endian IEEE-754 double
    0x04  opens a text value
    0x05  4 bytes of numeric payload, then opens a text value
    0x06  8 bytes of numeric payload, then opens a text value

Any other byte is text content. A 0x00 always decodes from the most recent
text start (the segment start before any 0x04/0x05/0x06) up to itself; the
start is not moved by the 0x00, so text after a terminator with no new opener
extends the previous text. Values are appended in scan order and never
re-sorted, so position in the result is the dictionary index.
"""

import logging
import struct

from qvd_reader.constants import DOUBLE_PAYLOAD_SIZE, INT_PAYLOAD_SIZE
from qvd_reader.enums import SymbolType
from qvd_reader.exceptions import QvdFormatError
from qvd_reader.values import CellValue, FloatValue, IntValue, TextValue

logger = logging.getLogger(__name__)

_INT = struct.Struct('<i')
_DOUBLE = struct.Struct('<d')


class SymbolParser:
    """Parser for a single field's symbol segment."""

    def __init__(self, segment: bytes | memoryview, field_name: str | None = None):
        """
        Args:
            segment: The field's slice of the symbol section
            field_name: Used to give decode errors and warnings context
        """
        self.segment = memoryview(segment)
        self.field_name = field_name

    def parse(self) -> list[CellValue]:  # noqa: C901
        """
        Decode every symbol in the segment.

        Returns:
            The field's dictionary, in segment order

        Raises:
            QvdFormatError: If a numeric payload is cut short or a text value
                is still open at the end of the segment
        """
        segment = self.segment
        end = len(segment)
        symbols: list[CellValue] = []

        pos = 0
        # where the next terminated text begins; only 0x04/0x05/0x06 move it
        text_start = 0
        # first byte of text not yet terminated, for end-of-segment errors
        open_at: int | None = None

        while pos < end:
            byte = segment[pos]

            match byte:
                case SymbolType.TEXT_END:
                    symbols.append(TextValue(self._decode_text(text_start, pos)))
                    open_at = None
                    pos += 1
                case SymbolType.INT:
                    payload = self._payload(pos, INT_PAYLOAD_SIZE)
                    symbols.append(IntValue(_INT.unpack(payload)[0]))
                    pos += 1 + INT_PAYLOAD_SIZE
                case SymbolType.DOUBLE:
                    payload = self._payload(pos, DOUBLE_PAYLOAD_SIZE)
                    symbols.append(FloatValue(_DOUBLE.unpack(payload)[0]))
                    pos += 1 + DOUBLE_PAYLOAD_SIZE
                case SymbolType.TEXT:
                    pos += 1
                    text_start = pos
                    open_at = pos
                case SymbolType.DUAL_INT:
                    # the numeric half of a dual value is not part of the text
                    self._payload(pos, INT_PAYLOAD_SIZE)
                    pos += 1 + INT_PAYLOAD_SIZE
                    text_start = pos
                    open_at = pos
                case SymbolType.DUAL_DOUBLE:
                    self._payload(pos, DOUBLE_PAYLOAD_SIZE)
                    pos += 1 + DOUBLE_PAYLOAD_SIZE
                    text_start = pos
                    open_at = pos
                case _:
                    if open_at is None:
                        open_at = pos
                    pos += 1

        if open_at is not None:
            raise QvdFormatError(
                'Text symbol is not NUL terminated at the end of the segment',
                field=self.field_name,
                offset=open_at,
            )

        logger.debug(
            'Decoded %d symbols from %d bytes for field %r',
            len(symbols),
            end,
            self.field_name,
        )
        return symbols

    def _payload(self, pos: int, size: int) -> memoryview:
        """Return the `size` bytes following the control byte at `pos`."""
        start = pos + 1
        stop = start + size
        if stop > len(self.segment):
            raise QvdFormatError(
                f'Symbol payload needs {size} bytes but only '
                f'{len(self.segment) - start} remain',
                field=self.field_name,
                offset=pos,
            )
        return self.segment[start:stop]

    def _decode_text(self, start: int, stop: int) -> str:
        raw = bytes(self.segment[start:stop])
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError as e:
            logger.warning(
                'Invalid UTF-8 in text symbol of field %r at byte offset %d; '
                'substituting U+FFFD: %s',
                self.field_name,
                start,
                e.reason,
            )
            return raw.decode('utf-8', errors='replace')
