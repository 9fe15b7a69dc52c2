class QvdError(Exception):
    """Base exception for all qvd-reader errors."""


class QvdIoError(QvdError, OSError):
    """The QVD file could not be opened or read."""


class QvdFormatError(QvdError):
    """The file content does not follow the QVD layout."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        offset: int | None = None,
    ) -> None:
        self.field = field
        self.offset = offset

        context = []
        if field is not None:
            context.append(f'field {field!r}')
        if offset is not None:
            context.append(f'byte offset {offset}')
        if context:
            message = f'{message} ({", ".join(context)})'

        super().__init__(message)


class QvdMetadataError(QvdFormatError):
    """The XML table header is missing, malformed, or inconsistent."""


class ColumnNotFoundError(QvdError, KeyError):
    """A column name is not present in the document."""

    def __str__(self) -> str:
        # KeyError quotes its argument, which garbles the message
        return str(self.args[0]) if self.args else ''


class InvalidValueError(QvdError, ValueError):
    """A value cannot be represented as a QVD cell value."""
