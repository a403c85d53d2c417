"""
Helpers shared by the background loops.
"""

import math
import threading

# Longest single Event.wait; larger intervals are waited out in slices
MAX_WAIT_SLICE_SECS = 24 * 60 * 60.0

# Sleep after an unexpected error in a loop iteration
ERROR_BACKOFF_SECS = 5.0


def wait_for_stop(stop_event: threading.Event, interval: float) -> bool:
    """
    Sleep for interval seconds or until stop_event is set.

    Any non-negative interval is accepted, including values beyond what a
    single ``Event.wait`` supports and infinity (sleep until stopped). NaN
    and negative intervals do not sleep.

    Returns:
        True if the stop event was set
    """
    if not interval > 0:
        return stop_event.is_set()

    remaining = interval
    while remaining > 0:
        chunk = min(remaining, MAX_WAIT_SLICE_SECS)
        if stop_event.wait(timeout=chunk):
            return True
        if not math.isinf(remaining):
            remaining -= chunk
    return stop_event.is_set()
