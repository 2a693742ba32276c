"""
workspace_authz.credentials.token_cache

Process-wide cache of scoped credentials keyed by `"{workspace}:{role}"`.

Responsibilities:
- Return a cached token only while it is outside the expiry safety margin.
- Bound the number of cached tokens, evicting least-recently-used first.
- Offer invalidation hooks (per key, per workspace, everything) and periodic pruning.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime

from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.cache import Clock, LruTtlCache
from workspace_authz.observability.logging import get_logger
from workspace_authz.settings import Settings

log = get_logger(__name__)

DEFAULT_MAX_SIZE = 100
DEFAULT_TTL_SECONDS = 50 * 60
SAFETY_MARGIN_SECONDS = 5 * 60


@dataclass(frozen=True, slots=True)
class CachedCredential:
    token: str
    # None lets the cache apply its default TTL.
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TokenCacheStats:
    size: int
    max_size: int
    default_ttl_ms: int

    def as_dict(self) -> dict[str, int]:
        return {"size": self.size, "maxSize": self.max_size, "defaultTtlMs": self.default_ttl_ms}


def cache_key(workspace: str, role: WorkspaceRole) -> str:
    return f"{workspace}:{role.label}"


class TokenCache:
    def __init__(
        self,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        safety_margin_seconds: float = SAFETY_MARGIN_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._cache: LruTtlCache[str, str] = LruTtlCache(
            max_size=max_size,
            default_ttl=default_ttl_seconds,
            margin=safety_margin_seconds,
            clock=clock,
        )

    @classmethod
    def from_settings(cls, settings: Settings, *, clock: Clock = time.time) -> TokenCache:
        return cls(
            max_size=settings.token_cache_max_size,
            default_ttl_seconds=settings.token_default_ttl_seconds,
            safety_margin_seconds=settings.token_safety_margin_seconds,
            clock=clock,
        )

    def get(self, workspace: str, role: WorkspaceRole) -> str | None:
        return self._cache.get(cache_key(workspace, role))

    def set(
        self,
        workspace: str,
        role: WorkspaceRole,
        token: str,
        expires_at: datetime | None = None,
    ) -> None:
        key = cache_key(workspace, role)
        self._cache.set(
            key,
            token,
            expires_at=expires_at.timestamp() if expires_at is not None else None,
        )
        log.debug("token_cached", key=key, size=len(self._cache))

    def invalidate(self, workspace: str, role: WorkspaceRole) -> None:
        if self._cache.delete(cache_key(workspace, role)):
            log.debug("token_invalidated", workspace=workspace, role=role.label)

    def invalidate_workspace(self, workspace: str) -> int:
        removed = self._cache.delete_where(lambda key: key.rpartition(":")[0] == workspace)
        if removed:
            log.info("workspace_tokens_invalidated", workspace=workspace, removed=removed)
        return removed

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> TokenCacheStats:
        return TokenCacheStats(
            size=len(self._cache),
            max_size=self._cache.max_size,
            default_ttl_ms=int(self._cache.default_ttl * 1000),
        )

    def prune_expired(self) -> int:
        removed = self._cache.prune()
        if removed:
            log.info("expired_tokens_pruned", removed=removed)
        return removed


# --- Module Notes -----------------------------------------------------------
# One instance lives on `app.state` (see `api.app`); it is not shared across replicas,
# so a cold replica simply pays one TokenRequest per workspace/role.
