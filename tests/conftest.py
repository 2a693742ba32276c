"""
tests.conftest

Shared fixtures and fakes for the workspace authz test suite.

Responsibilities:
- Provide a controllable clock for cache expiry tests.
- Provide in-memory stand-ins for workspace lookup and token issuance.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from workspace_authz.auth.models import DirectGrant, Principal, RoleBinding, Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.token_cache import CachedCredential

EPOCH = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = EPOCH) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def at(self, seconds_from_now: float) -> datetime:
        return datetime.fromtimestamp(self.now + seconds_from_now, tz=UTC)


class FakeWorkspaces:
    def __init__(self, *workspaces: Workspace) -> None:
        self.by_name = {ws.name: ws for ws in workspaces}
        self.get_calls = 0

    async def get_workspace(self, name: str) -> Workspace | None:
        self.get_calls += 1
        return self.by_name.get(name)

    async def list_workspaces(self) -> list[Workspace]:
        return list(self.by_name.values())


class FakeIssuer:
    """
    Mints `tok-{workspace}-{role}-{n}` tokens and records every call.
    """

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.calls: list[tuple[str, WorkspaceRole]] = []
        self.fail_with = fail_with

    async def issue_scoped_token(
        self, workspace: Workspace, role: WorkspaceRole
    ) -> CachedCredential:
        self.calls.append((workspace.name, role))
        if self.fail_with is not None:
            raise self.fail_with
        return CachedCredential(
            token=f"tok-{workspace.name}-{role.label}-{len(self.calls)}",
            expires_at=datetime.now(tz=UTC) + timedelta(hours=1),
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def team_workspace() -> Workspace:
    return Workspace(
        name="test-workspace",
        namespace_name="test-ns",
        role_bindings=(
            RoleBinding(groups=("owners@example.com",), role=WorkspaceRole.owner),
            RoleBinding(groups=("developers@example.com",), role=WorkspaceRole.editor),
            RoleBinding(groups=("viewers@example.com",), role=WorkspaceRole.viewer),
        ),
        direct_grants=(
            DirectGrant(user="admin@example.com", role=WorkspaceRole.owner),
            DirectGrant(
                user="guest@example.com",
                role=WorkspaceRole.viewer,
                expires=datetime(2099, 12, 31, 23, 59, 59, tzinfo=UTC),
            ),
            DirectGrant(
                user="expired@example.com",
                role=WorkspaceRole.editor,
                expires=datetime(2020, 1, 1, tzinfo=UTC),
            ),
        ),
    )


@pytest.fixture
def developer() -> Principal:
    return Principal(
        id="user-123",
        username="testuser",
        provider="oauth",
        email="testuser@example.com",
        groups=frozenset({"developers@example.com", "team-alpha"}),
    )


def principal(
    email: str, *groups: str, provider: str = "oauth", id: str | None = None
) -> Principal:
    return Principal(
        id=id or email,
        username=email.split("@")[0],
        provider=provider,  # type: ignore[arg-type]
        email=email,
        groups=frozenset(groups),
    )
