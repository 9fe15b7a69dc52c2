from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import cattrs

from .enums import CellType
from .values import (
    NULL,
    CellValue,
    FloatValue,
    IntValue,
    NullValue,
    TextValue,
)

if TYPE_CHECKING:
    from .document import QvdDocument

CELL_VALUE_TYPES = (TextValue, IntValue, FloatValue, NullValue)


def unstructure_cell_value(value: CellValue) -> dict[str, Any]:
    """Tag a cell value with its variant so it survives a JSON round trip."""
    if value.is_null():
        return {'type': CellType.NULL.value}
    return {'type': value.cell_type.value, 'value': value.to_python()}


def structure_cell_value(data: dict[str, Any], _) -> CellValue:
    """Structure cell value unions using the type discriminator."""
    cell_type = CellType(data['type'])
    match cell_type:
        case CellType.TEXT:
            return TextValue(str(data['value']))
        case CellType.INT:
            return IntValue(int(data['value']))
        case CellType.FLOAT:
            return FloatValue(float(data['value']))
        case CellType.NULL:
            return NULL
        case _:
            raise ValueError(f'Unknown cell type: {cell_type}')


def _create_document_hooks(
    converter: cattrs.Converter,
) -> tuple[
    Callable[[QvdDocument], dict[str, Any]],
    Callable[[dict[str, Any], Any], QvdDocument],
]:
    """Create document (un)structure hooks."""
    from .column import Column
    from .document import QvdDocument
    from .metadata import TableMetadata

    def unstructure_document(document: QvdDocument) -> dict[str, Any]:
        metadata = document.metadata
        return {
            'metadata': (
                None if metadata is None else metadata.model_dump(mode='json')
            ),
            'columns': [converter.unstructure(c) for c in document.columns()],
        }

    def structure_document(data: dict[str, Any], _) -> QvdDocument:
        metadata = data.get('metadata')
        if metadata is not None:
            metadata = TableMetadata.model_validate(metadata)
        return QvdDocument(
            [converter.structure(c, Column) for c in data['columns']],
            metadata=metadata,
        )

    return unstructure_document, structure_document


def create_converter() -> cattrs.Converter:
    """Create a configured cattrs converter for QvdDocument serialization."""
    from .document import QvdDocument
    from .metadata import FieldDescriptor

    converter = cattrs.Converter()

    # Register hooks for the cell value union
    for value_type in CELL_VALUE_TYPES:
        converter.register_unstructure_hook(value_type, unstructure_cell_value)
    converter.register_structure_hook(CellValue, structure_cell_value)

    # Header models are pydantic; let pydantic do their conversion
    converter.register_unstructure_hook(
        FieldDescriptor,
        lambda field: field.model_dump(mode='json'),
    )
    converter.register_structure_hook(
        FieldDescriptor,
        lambda data, _: FieldDescriptor.model_validate(data),
    )

    unstructure_document, structure_document = _create_document_hooks(converter)
    converter.register_unstructure_hook(QvdDocument, unstructure_document)
    converter.register_structure_hook(QvdDocument, structure_document)

    return converter
