"""ID generators for the local fallback store."""

import threading
import time

_lock = threading.Lock()
_last_id = 0


def generate_local_id() -> str:
    """Return a wall-clock-derived id (epoch milliseconds) as a string.

    Ids handed out by one process are strictly increasing: when the clock
    has not advanced past the previous id (same millisecond, or the clock
    stepped back) the previous id plus one is used.
    """
    global _last_id
    with _lock:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)
