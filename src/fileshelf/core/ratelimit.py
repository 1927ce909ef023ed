"""Sliding-window rate limiting per client."""

import threading
import time
from collections import deque
from collections.abc import Callable


class RateLimiter:
    """Allows at most `limit` hits per client within `window` seconds."""

    def __init__(
        self,
        limit: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._hits: dict[str, deque[float]] = {}

    def check(self, client: str) -> bool:
        """Record a hit for client.

        Returns:
            True if the hit is allowed, False if the client is over the limit
        """
        if self._limit <= 0:
            return True

        now = self._clock()
        cutoff = now - self._window
        with self._lock:
            hits = self._hits.setdefault(client, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self._limit:
                return False
            hits.append(now)
            self._prune(cutoff)
            return True

    def _prune(self, cutoff: float) -> None:
        """Drop clients with no hits inside the window."""
        stale = [client for client, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for client in stale:
            del self._hits[client]
