"""Small in-memory cache helpers."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable


class TTLMemoryStore:
    """Thread-safe LRU mapping where every entry carries its own expiry.

    Same ``get``/``put`` surface as :class:`ptlite.db.SqliteKV`, so either can
    back the metadata cache.
    """

    def __init__(self, maxsize: int = 1024, default_ttl_s: float | None = None, clock: Callable[[], float] = time.time):
        self._maxsize = maxsize
        self._default_ttl_s = default_ttl_s
        self._clock = clock
        self._data: OrderedDict[str, tuple[float | None, str]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key, default=None):
        now = self._clock()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return default
            expires_at, value = item
            if expires_at is not None and now >= expires_at:
                self._data.pop(key, None)
                return default
            self._data.move_to_end(key)
            return value

    def put(self, key, value, ttl_s: float | None = None):
        ttl = self._default_ttl_s if ttl_s is None else ttl_s
        expires_at = None if ttl is None else self._clock() + float(ttl)
        with self._lock:
            self._data[key] = (expires_at, value)
            self._data.move_to_end(key)
            while len(self._data) > self._maxsize:
                self._data.popitem(last=False)

    def delete(self, key) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
