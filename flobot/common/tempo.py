"""
Tempo

Keys with an expiry, used for rate limiting. There is no background cleanup:
an expired key is only dropped when it is looked up, so this is not meant
for large key sets.

Safe to share between threads and between concurrent dispatch tasks.
"""

import threading
import time
from typing import Callable, Dict, Hashable


class Tempo:
    """
    TTL key set.

    Usage:
        tempo = Tempo()
        tempo.set("channel-rate-limit", 3.0)
        tempo.exists("channel-rate-limit")  # True for the next 3 seconds
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._store: Dict[Hashable, float] = {}
        self._lock = threading.Lock()

    def set(self, key: Hashable, ttl: float) -> None:
        """Mark key as present for ttl seconds (overwrites any previous expiry)"""
        with self._lock:
            self._store[key] = self._clock() + ttl

    def exists(self, key: Hashable) -> bool:
        """True if key was set and has not expired yet"""
        with self._lock:
            expire_at = self._store.get(key)
            if expire_at is None:
                return False
            if expire_at <= self._clock():
                del self._store[key]
                return False
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
