"""
workspace_authz.auth.access_cache

Short-lived cache of resolved workspace access.

Responsibilities:
- Avoid a workspace lookup + resolution on every request for the same principal.
- Allow invalidation per workspace (bindings changed) or per user (groups changed).

The cache stores the unfiltered `resolve_access` result; minimum-role checks are
applied by the caller on every request, so one entry serves every requirement.
"""

from __future__ import annotations

import time

from workspace_authz.auth.models import AccessDecision
from workspace_authz.cache import Clock, LruTtlCache
from workspace_authz.settings import Settings

DEFAULT_MAX_SIZE = 1000
DEFAULT_TTL_SECONDS = 5 * 60


class AccessCache:
    def __init__(
        self,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._cache: LruTtlCache[tuple[str, str], AccessDecision] = LruTtlCache(
            max_size=max_size, default_ttl=ttl_seconds, clock=clock
        )

    @classmethod
    def from_settings(cls, settings: Settings, *, clock: Clock = time.time) -> AccessCache:
        return cls(
            max_size=settings.access_cache_max_size,
            ttl_seconds=settings.access_cache_ttl_seconds,
            clock=clock,
        )

    def get(self, user: str, workspace: str) -> AccessDecision | None:
        return self._cache.get((user.lower(), workspace))

    def set(self, user: str, workspace: str, decision: AccessDecision) -> None:
        self._cache.set((user.lower(), workspace), decision)

    def invalidate_workspace(self, workspace: str) -> int:
        return self._cache.delete_where(lambda key: key[1] == workspace)

    def invalidate_user(self, user: str) -> int:
        user = user.lower()
        return self._cache.delete_where(lambda key: key[0] == user)

    def clear(self) -> None:
        self._cache.clear()

    def prune_expired(self) -> int:
        return self._cache.prune()

    def stats(self) -> dict[str, int]:
        return {
            "size": len(self._cache),
            "maxSize": self._cache.max_size,
            "ttlMs": int(self._cache.default_ttl * 1000),
        }
