"""
Clock collaborator for `last_updated` timestamps.
"""
import threading
import time


class SystemClock:
    """
    Wall-clock seconds that never go backwards. If the system clock steps
    back, the last value handed out is repeated until it catches up.
    """

    def __init__(self, source=time.time):
        self._source = source
        self._last = 0.0
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            now = self._source()
            if now > self._last:
                self._last = now
            return self._last
