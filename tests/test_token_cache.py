"""
tests.test_token_cache

Scoped token cache: expiry margin, LRU eviction, invalidation and stats.
"""

from __future__ import annotations

import pytest
from conftest import FakeClock

from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.cache import LruTtlCache
from workspace_authz.credentials.token_cache import TokenCache, cache_key
from workspace_authz.settings import Settings

EDITOR = WorkspaceRole.editor
VIEWER = WorkspaceRole.viewer


def _cache(clock: FakeClock, **kwargs: int) -> TokenCache:
    return TokenCache(clock=clock, **kwargs)


def test_key_format() -> None:
    assert cache_key("W", EDITOR) == "W:editor"


def test_set_then_get(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "tok-1", clock.at(3600))
    assert cache.get("W", EDITOR) == "tok-1"
    assert cache.get("W", VIEWER) is None


def test_token_inside_safety_margin_is_absent(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "tok-1", clock.at(4 * 60))
    assert cache.get("W", EDITOR) is None
    # The expired lookup also purged the entry.
    assert cache.stats().size == 0


def test_margin_boundary_is_exclusive(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "tok-1", clock.at(5 * 60 + 1))
    assert cache.get("W", EDITOR) == "tok-1"
    clock.advance(1)
    assert cache.get("W", EDITOR) is None


def test_default_ttl_applies_without_expiry(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "tok-1")
    # 50 min default TTL minus the 5 min margin leaves 45 min of validity.
    clock.advance(45 * 60 - 1)
    assert cache.get("W", EDITOR) == "tok-1"
    clock.advance(1)
    assert cache.get("W", EDITOR) is None


def test_capacity_evicts_least_recently_used(clock: FakeClock) -> None:
    cache = _cache(clock, max_size=100)
    for i in range(100):
        cache.set(f"ws-{i}", EDITOR, f"tok-{i}", clock.at(3600))
    cache.set("ws-100", EDITOR, "tok-100", clock.at(3600))

    assert cache.stats().size == 100
    assert cache.get("ws-0", EDITOR) is None
    assert cache.get("ws-1", EDITOR) == "tok-1"
    assert cache.get("ws-100", EDITOR) == "tok-100"


def test_get_refreshes_recency(clock: FakeClock) -> None:
    cache = _cache(clock, max_size=2)
    cache.set("A", EDITOR, "a", clock.at(3600))
    cache.set("B", EDITOR, "b", clock.at(3600))
    assert cache.get("A", EDITOR) == "a"
    cache.set("C", EDITOR, "c", clock.at(3600))

    assert cache.get("A", EDITOR) == "a"
    assert cache.get("B", EDITOR) is None
    assert cache.get("C", EDITOR) == "c"


def test_overwrite_does_not_evict(clock: FakeClock) -> None:
    cache = _cache(clock, max_size=2)
    cache.set("A", EDITOR, "a", clock.at(3600))
    cache.set("B", EDITOR, "b", clock.at(3600))
    cache.set("A", EDITOR, "a2", clock.at(3600))

    assert cache.stats().size == 2
    assert cache.get("A", EDITOR) == "a2"
    assert cache.get("B", EDITOR) == "b"


def test_invalidate_single_key(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "e", clock.at(3600))
    cache.set("W", VIEWER, "v", clock.at(3600))
    cache.invalidate("W", EDITOR)
    assert cache.get("W", EDITOR) is None
    assert cache.get("W", VIEWER) == "v"


def test_invalidate_workspace_removes_every_role(clock: FakeClock) -> None:
    cache = _cache(clock)
    for role in WorkspaceRole:
        cache.set("W", role, f"w-{role.label}", clock.at(3600))
    cache.set("W2", EDITOR, "other", clock.at(3600))

    assert cache.invalidate_workspace("W") == 3
    for role in WorkspaceRole:
        assert cache.get("W", role) is None
    assert cache.get("W2", EDITOR) == "other"


def test_invalidate_workspace_matches_whole_name(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("team", EDITOR, "a", clock.at(3600))
    cache.set("team-b", EDITOR, "b", clock.at(3600))
    assert cache.invalidate_workspace("team") == 1
    assert cache.get("team-b", EDITOR) == "b"


def test_clear(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "e", clock.at(3600))
    cache.clear()
    assert cache.stats().size == 0
    assert cache.get("W", EDITOR) is None


def test_prune_expired(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("short", EDITOR, "s", clock.at(10 * 60))
    cache.set("long", EDITOR, "l", clock.at(60 * 60))
    clock.advance(6 * 60)

    assert cache.prune_expired() == 1
    assert cache.stats().size == 1
    assert cache.get("long", EDITOR) == "l"


def test_stats(clock: FakeClock) -> None:
    cache = _cache(clock)
    cache.set("W", EDITOR, "e", clock.at(3600))
    assert cache.stats().as_dict() == {"size": 1, "maxSize": 100, "defaultTtlMs": 3_000_000}


def test_from_settings(clock: FakeClock) -> None:
    settings = Settings(env="test", token_cache_max_size=7, token_default_ttl_seconds=120)
    stats = TokenCache.from_settings(settings, clock=clock).stats()
    assert stats.max_size == 7
    assert stats.default_ttl_ms == 120_000


def test_lru_cache_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        LruTtlCache(max_size=0, default_ttl=1)
