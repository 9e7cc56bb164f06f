"""
Clock helpers
All quiz timestamps are epoch milliseconds taken from the server clock.
"""
import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return time.time_ns() // 1_000_000
