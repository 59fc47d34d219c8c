from dataclasses import dataclass

from typing import Optional, Tuple

from wordfuzz.config.constants import Constants

"""
Runtime configuration
"""


@dataclass(frozen=True)
class FuzzerRuntimeConfig:
    mode: str = "clusterbomb"
    num_threads: int = Constants.DEFAULT_CONCURRENCY
    rate: float = 0
    timeout: float = Constants.TIMEOUT
    delay: Tuple[int, int] = (0, 0)
    time: Optional[float] = None
    output_file: Optional[str] = None
    method: Optional[str] = None
    no_filter: bool = False
    verify_ssl: bool = False
    poll_timeout_ms: int = Constants.POLL_TIMEOUT_MS
