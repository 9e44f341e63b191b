# src/dealscope/adapters/zip_cache.py
from __future__ import annotations

import threading
import time
from typing import Callable, Hashable

from cachetools import TTLCache

from dealscope.adapters.config import config


class ZipSignalCache:
    """
    Time-bounded cache for ZIP-level market lookups, shared across a run.

    Misses recompute and repopulate; a stale entry is tolerated until it
    expires. Safe to share between worker threads.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        maxsize: int | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache = TTLCache(
            maxsize=maxsize or config.ZIP_CACHE_MAXSIZE,
            ttl=ttl_seconds if ttl_seconds is not None else config.ZIP_CACHE_TTL_SECONDS,
            timer=timer,
        )
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], float]) -> float:
        with self._lock:
            try:
                value = self._cache[key]
            except KeyError:
                pass
            else:
                self.hits += 1
                return value

        value = compute()
        with self._lock:
            self.misses += 1
            self._cache[key] = value
        return value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
