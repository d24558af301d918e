"""Common configuration constants used by the ingestion pipeline."""

# Batch Size Constants
RPC_BATCH_SIZE = 50
"""Default number of blocks per JSON-RPC batch request"""

DEFAULT_PARALLEL_BATCHES = 5
"""Default number of batch requests to run in parallel"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

EXTENDED_TIMEOUT = 60.0
"""Extended timeout for large batch requests"""

# Live stream
HEADERS_QUEUE_SIZE = 100
"""Maximum number of block headers buffered between subscriber and consumer"""

RECONNECT_BASE_DELAY = 1.0
"""Initial WebSocket reconnect delay in seconds"""

RECONNECT_MAX_DELAY = 60.0
"""Maximum WebSocket reconnect delay in seconds"""

LONDON_BLOCK = 12_965_000
"""First mainnet block with a base fee"""


__all__ = [
    "DEFAULT_PARALLEL_BATCHES",
    "DEFAULT_TIMEOUT",
    "EXTENDED_TIMEOUT",
    "HEADERS_QUEUE_SIZE",
    "LONDON_BLOCK",
    "RECONNECT_BASE_DELAY",
    "RECONNECT_MAX_DELAY",
    "RPC_BATCH_SIZE",
]
