"""
XML table header parsing.

Teaching Points:
- A QVD file opens with a plain XML document describing the table
- The parser only flattens XML into dictionaries keyed by tag name; the
  pydantic models in qvd_reader.metadata do all type conversion and checks
- Unknown tags are ignored so newer writers do not break older readers
"""

import logging
import xml.etree.ElementTree as ET  # noqa: N817

from typing import Any

from pydantic import ValidationError

from qvd_reader.constants import HEADER_ROOT_TAG
from qvd_reader.exceptions import QvdMetadataError
from qvd_reader.metadata import TableMetadata

logger = logging.getLogger(__name__)

# Container tags whose children are repeated records rather than scalars
FIELDS_TAG = 'Fields'
FIELD_TAG = 'QvdFieldHeader'
LINEAGE_TAG = 'Lineage'
LINEAGE_INFO_TAG = 'LineageInfo'
TAGS_TAG = 'Tags'
TAG_STRING_TAG = 'String'
NUMBER_FORMAT_TAG = 'NumberFormat'

# Names are compared verbatim, so surrounding whitespace is significant
VERBATIM_TAGS = frozenset({'FieldName', 'TableName', TAG_STRING_TAG})


def _text(element: ET.Element) -> str | None:
    """Element text, or None when it is empty or only whitespace."""
    if element.text is None or not element.text.strip():
        return None
    if element.tag in VERBATIM_TAGS:
        return element.text
    return element.text.strip()


def _scalars(element: ET.Element) -> dict[str, Any]:
    """Map each childless child element's tag to its text."""
    return {
        child.tag: _text(child)
        for child in element
        if len(child) == 0 and _text(child) is not None
    }


class MetadataParser:
    """
    Parses the XML header of a QVD file into a TableMetadata.

    Teaching Points:
    - Table-level values are direct children of QvdTableHeader
    - Each QvdFieldHeader describes one column, in column order
    - Nested groups (NumberFormat, Tags, Lineage) are flattened separately
    """

    def __init__(self, header_bytes: bytes | memoryview):
        """
        Initialize the parser from raw header bytes.

        Args:
            header_bytes: Everything before the header's NUL terminator
        """
        self.header_bytes = bytes(header_bytes)

    def parse(self) -> TableMetadata:
        """
        Parse the complete table header.

        Returns:
            Validated TableMetadata

        Raises:
            QvdMetadataError: If the XML is malformed, required values are
                missing, or the described layout is inconsistent
        """
        logger.debug('Parsing %d bytes of XML header', len(self.header_bytes))

        try:
            root = ET.fromstring(self.header_bytes)  # noqa: S314
        except ET.ParseError as e:
            raise QvdMetadataError(f'Table header is not valid XML: {e}') from e

        if root.tag != HEADER_ROOT_TAG:
            raise QvdMetadataError(
                f'Expected <{HEADER_ROOT_TAG}> as header root, got <{root.tag}>',
            )

        data = _scalars(root)

        fields_element = root.find(FIELDS_TAG)
        if fields_element is not None:
            data[FIELDS_TAG] = [
                self._parse_field(field_element)
                for field_element in fields_element.iter(FIELD_TAG)
            ]

        lineage_element = root.find(LINEAGE_TAG)
        if lineage_element is not None:
            data[LINEAGE_TAG] = [
                _scalars(info) for info in lineage_element.iter(LINEAGE_INFO_TAG)
            ]

        try:
            metadata = TableMetadata.model_validate(data)
        except ValidationError as e:
            raise QvdMetadataError(f'Invalid table header: {e}') from e

        logger.debug(
            'Parsed header for table %r: %d fields, %s records of %d bytes',
            metadata.table_name,
            metadata.field_count,
            metadata.record_count,
            metadata.record_byte_size,
        )
        return metadata

    def _parse_field(self, element: ET.Element) -> dict[str, Any]:
        field = _scalars(element)

        number_format = element.find(NUMBER_FORMAT_TAG)
        if number_format is not None:
            field[NUMBER_FORMAT_TAG] = _scalars(number_format)

        tags = element.find(TAGS_TAG)
        if tags is not None:
            field[TAGS_TAG] = [
                text
                for tag in tags.iter(TAG_STRING_TAG)
                if (text := _text(tag)) is not None
            ]

        logger.debug('  Field %r', field.get('FieldName'))
        return field
