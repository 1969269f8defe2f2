from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, Optional


class AggregateCache:
    """Per-organization cache for report aggregates.

    Every monetary write calls `invalidate(organization_id)`; entries also
    expire after `ttl_seconds` so writes made by other processes age out.
    """

    def __init__(self, *, ttl_seconds: Optional[float] = 60.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[int, dict[Hashable, tuple[float, Any]]] = {}
        self._generations: dict[int, int] = {}

    def get_or_compute(self, organization_id: int, key: Hashable, compute: Callable[[], Any]) -> Any:
        org = int(organization_id)
        with self._lock:
            entry = self._entries.get(org, {}).get(key)
            generation = self._generations.get(org, 0)
            if entry is not None and (self._ttl is None or self._clock() - entry[0] < self._ttl):
                return entry[1]

        value = compute()

        with self._lock:
            # A write that landed while computing makes this value stale.
            if self._generations.get(org, 0) == generation:
                self._entries.setdefault(org, {})[key] = (self._clock(), value)
        return value

    def invalidate(self, organization_id: int) -> None:
        org = int(organization_id)
        with self._lock:
            self._entries.pop(org, None)
            self._generations[org] = self._generations.get(org, 0) + 1
