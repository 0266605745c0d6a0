"""Wait helpers for tests that depend on filesystem observer threads."""

from __future__ import annotations

import time
from typing import Callable

# writes made right after scheduling can share an mtime with the initial snapshot
OBSERVER_SETTLE_SECONDS = 0.5


def wait_until(predicate: Callable[[], bool], *, timeout: float = 10.0, interval: float = 0.05) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


__all__ = ["OBSERVER_SETTLE_SECONDS", "wait_until"]
