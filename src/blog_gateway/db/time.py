"""Time utilities for database models."""

import time


def unix_now() -> int:
    """Return the current time as whole Unix seconds."""
    return int(time.time())


def unix_now_ms() -> int:
    """Return the current time in Unix milliseconds."""
    return int(time.time() * 1000)
