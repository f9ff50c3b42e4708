from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..core.exceptions import RateLimitError


@dataclass(frozen=True)
class RateLimitState:
    limit: int
    remaining: int
    reset_in: int


class FixedWindowRateLimiter:
    """In-process fixed-window counter keyed by client (usually the remote IP).

    Each process keeps its own counters, so the limit is per worker.
    """

    def __init__(self, *, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be positive")
        self._limit = int(limit)
        self._window = int(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitState:
        now = self._clock()
        with self._lock:
            started, count = self._hits.get(key, (now, 0))
            if now - started >= self._window:
                started, count = now, 0
            count += 1
            self._hits[key] = (started, count)
            if len(self._hits) > 10_000:
                self._evict(now)

        reset_in = max(int(self._window - (now - started)), 0)
        if count > self._limit:
            raise RateLimitError(retry_after=reset_in)
        return RateLimitState(limit=self._limit, remaining=self._limit - count, reset_in=reset_in)

    def _evict(self, now: float) -> None:
        stale = [k for k, (started, _) in self._hits.items() if now - started >= self._window]
        for k in stale:
            del self._hits[k]
