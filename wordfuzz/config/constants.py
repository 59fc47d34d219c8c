"""
Constants class
"""
from dataclasses import dataclass


@dataclass
class Constants:
    VERSION = "1.0.0"
    MARKER = "FUZZ"
    TIMEOUT = 10
    MAX_RESULT = 10000
    DEFAULT_CONCURRENCY = 10
    POLL_TIMEOUT_MS = 1000
    PROGRESS_WINDOW = 0.5
    PROGRESS_LOG_INTERVAL = 2.0
    RATE_WINDOW = 1.0
    DEFAULT_MATCH_CODES = (200, 399)
    STREAM_CHUNK_SIZE = 8192
