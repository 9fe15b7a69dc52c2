# The XML table header is separated from the binary sections by one NUL byte
HEADER_TERMINATOR = b'\x00'

HEADER_ROOT_TAG = 'QvdTableHeader'

INT_PAYLOAD_SIZE = 4
DOUBLE_PAYLOAD_SIZE = 8

# None lets ThreadPoolExecutor pick its own default
DEFAULT_MAX_WORKERS: int | None = None

BITS_PER_BYTE = 8
