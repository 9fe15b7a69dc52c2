import logging

from qvd_reader.constants import HEADER_TERMINATOR
from qvd_reader.exceptions import QvdFormatError

logger = logging.getLogger(__name__)


def split_header(buffer: bytes) -> tuple[memoryview, memoryview]:
    """
    Split a QVD file buffer into its XML header and its binary data.

    The header runs up to the first NUL byte. The NUL itself belongs to
    neither part; the binary data starts right after it.

    Returns:
        (header bytes, binary data) as views over the input buffer

    Raises:
        QvdFormatError: If the buffer contains no NUL terminator
    """
    terminator = buffer.find(HEADER_TERMINATOR)
    if terminator < 0:
        raise QvdFormatError(
            'No NUL terminator found after the XML table header',
            offset=len(buffer),
        )

    logger.debug(
        'Header is %d bytes, binary data starts at byte %d',
        terminator,
        terminator + 1,
    )
    view = memoryview(buffer)
    return view[:terminator], view[terminator + 1 :]
