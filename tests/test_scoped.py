"""
tests.test_scoped

Scoped-call wrapper: cache reuse, minting on miss and the single retry on rejection.
"""

from __future__ import annotations

import pytest
from conftest import FakeClock, FakeIssuer

from workspace_authz.auth.models import Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.issuer import CredentialIssuer
from workspace_authz.credentials.scoped import ScopedCredentials
from workspace_authz.credentials.token_cache import TokenCache
from workspace_authz.errors import (
    CredentialIssuanceError,
    CredentialRejected,
    Forbidden,
    UpstreamError,
)

EDITOR = WorkspaceRole.editor
W = Workspace(name="W", namespace_name="ns-w")


class RecordingOperation:
    """
    Async operation that fails with the queued errors first, then succeeds.
    """

    def __init__(self, *failures: Exception) -> None:
        self.tokens: list[str] = []
        self._failures = list(failures)

    async def __call__(self, token: str) -> str:
        self.tokens.append(token)
        if self._failures:
            raise self._failures.pop(0)
        return f"ok:{token}"


def _scoped(clock: FakeClock, issuer: FakeIssuer) -> ScopedCredentials:
    return ScopedCredentials(cache=TokenCache(clock=clock), issuer=CredentialIssuer(issuer))


@pytest.mark.asyncio
async def test_cold_cache_mints_and_caches(clock: FakeClock) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)
    op = RecordingOperation()

    result = await scoped.with_scoped_credential(W, EDITOR, op)

    assert result == "ok:tok-W-editor-1"
    assert issuer.calls == [("W", EDITOR)]
    assert scoped.cache.get("W", EDITOR) == "tok-W-editor-1"


@pytest.mark.asyncio
async def test_warm_cache_skips_issuance(clock: FakeClock) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)
    scoped.cache.set("W", EDITOR, "cached", clock.at(3600))

    assert await scoped.with_scoped_credential(W, EDITOR, RecordingOperation()) == "ok:cached"
    assert issuer.calls == []


@pytest.mark.asyncio
async def test_rejected_credential_is_retried_once_with_fresh_token(clock: FakeClock) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)
    scoped.cache.set("W", EDITOR, "stale", clock.at(3600))
    op = RecordingOperation(CredentialRejected(401, "Unauthorized"))

    result = await scoped.with_scoped_credential(W, EDITOR, op)

    assert op.tokens == ["stale", "tok-W-editor-1"]
    assert result == "ok:tok-W-editor-1"
    assert scoped.cache.get("W", EDITOR) == "tok-W-editor-1"


@pytest.mark.asyncio
async def test_second_rejection_propagates(clock: FakeClock) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)
    op = RecordingOperation(
        CredentialRejected(401, "Unauthorized"), CredentialRejected(401, "Unauthorized")
    )

    with pytest.raises(CredentialRejected):
        await scoped.with_scoped_credential(W, EDITOR, op)
    assert len(op.tokens) == 2
    assert len(issuer.calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [Forbidden(403, "forbidden"), UpstreamError(500, "boom"), RuntimeError("bug")],
)
async def test_other_failures_are_not_retried(clock: FakeClock, error: Exception) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)
    op = RecordingOperation(error)

    with pytest.raises(type(error)):
        await scoped.with_scoped_credential(W, EDITOR, op)
    assert len(op.tokens) == 1
    assert len(issuer.calls) == 1
    # The credential itself was fine; it stays cached.
    assert scoped.cache.get("W", EDITOR) == "tok-W-editor-1"


@pytest.mark.asyncio
async def test_issuance_failure_is_not_cached(clock: FakeClock) -> None:
    issuer = FakeIssuer(fail_with=ValueError("TokenRequest response has no status.token"))
    scoped = _scoped(clock, issuer)
    op = RecordingOperation()

    with pytest.raises(CredentialIssuanceError) as info:
        await scoped.with_scoped_credential(W, EDITOR, op)

    assert info.value.workspace == "W"
    assert info.value.role is EDITOR
    assert op.tokens == []
    assert scoped.cache.get("W", EDITOR) is None


@pytest.mark.asyncio
async def test_roles_are_cached_independently(clock: FakeClock) -> None:
    issuer = FakeIssuer()
    scoped = _scoped(clock, issuer)

    await scoped.with_scoped_credential(W, WorkspaceRole.viewer, RecordingOperation())
    await scoped.with_scoped_credential(W, EDITOR, RecordingOperation())
    await scoped.with_scoped_credential(W, WorkspaceRole.viewer, RecordingOperation())

    assert issuer.calls == [("W", WorkspaceRole.viewer), ("W", EDITOR)]
