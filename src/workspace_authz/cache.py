"""
workspace_authz.cache

Bounded in-process LRU cache with per-entry expiry.

Responsibilities:
- Keep entries in recency order (least-recently-used first) via an `OrderedDict`.
- Treat entries as absent once `expires_at - now <= margin`, purging them on lookup.
- Evict exactly one least-recently-used entry when inserting at capacity.

Recency contract: both `set` and a successful `get` move the key to the
most-recently-used end. Expired entries are never returned and never refreshed.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    expires_at: float


class LruTtlCache(Generic[K, V]):
    def __init__(
        self,
        *,
        max_size: int,
        default_ttl: float,
        margin: float = 0.0,
        clock: Clock = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.margin = margin
        self._clock = clock
        self._entries: OrderedDict[K, _Entry[V]] = OrderedDict()
        # Uvicorn runs handlers on one event loop, but sync dependencies may run in the
        # threadpool; every mutation goes through this lock.
        self._lock = threading.Lock()

    def _is_live(self, entry: _Entry[V], now: float) -> bool:
        return entry.expires_at - now > self.margin

    def get(self, key: K) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_live(entry, self._clock()):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: K, value: V, *, expires_at: float | None = None) -> None:
        with self._lock:
            if expires_at is None:
                expires_at = self._clock() + self.default_ttl
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def delete(self, key: K) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_where(self, predicate: Callable[[K], bool]) -> int:
        with self._lock:
            doomed = [k for k in self._entries if predicate(k)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def prune(self) -> int:
        with self._lock:
            now = self._clock()
            doomed = [k for k, e in self._entries.items() if not self._is_live(e, now)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[K]:
        # Least-recently-used first.
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


# --- Module Notes -----------------------------------------------------------
# Shared by `credentials.token_cache` (5 min safety margin) and `auth.access_cache`
# (no margin); both wrap this class rather than subclassing it.
