"""
workspace_authz.services.workspace_authz

Workspace authorization service (composition of lookup, resolution and credentials).

Responsibilities:
- Look up workspaces and resolve the caller's access, with a short-lived decision cache.
- Apply one uniform precedence: existence first (`WorkspaceNotFound`), then access
  (`AccessDenied`).
- Run downstream calls under scoped credentials and expose cache maintenance hooks.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol, TypeVar

from workspace_authz.auth.access_cache import AccessCache
from workspace_authz.auth.models import AccessDecision, Principal, Workspace
from workspace_authz.auth.resolver import decide, resolve_access
from workspace_authz.auth.roles import WorkspaceRole, role_satisfies_minimum
from workspace_authz.credentials.scoped import ScopedCredentials, ScopedOperation
from workspace_authz.credentials.token_cache import TokenCache, TokenCacheStats
from workspace_authz.errors import AccessDenied, WorkspaceNotFound
from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class WorkspaceLookup(Protocol):
    async def get_workspace(self, name: str) -> Workspace | None: ...

    async def list_workspaces(self) -> list[Workspace]: ...


class WorkspaceAuthz:
    def __init__(
        self,
        *,
        workspaces: WorkspaceLookup,
        access_cache: AccessCache,
        scoped: ScopedCredentials,
    ) -> None:
        self._workspaces = workspaces
        self.access_cache = access_cache
        self._scoped = scoped

    @property
    def token_cache(self) -> TokenCache:
        return self._scoped.cache

    async def get_workspace(self, name: str) -> Workspace:
        workspace = await self._workspaces.get_workspace(name)
        if workspace is None:
            raise WorkspaceNotFound(name)
        return workspace

    def resolve(
        self, principal: Principal, workspace: Workspace, *, now: datetime | None = None
    ) -> AccessDecision:
        if principal.is_anonymous:
            return AccessDecision.denied()
        cached = self.access_cache.get(principal.cache_key, workspace.name)
        if cached is not None:
            return cached
        decision = resolve_access(principal, workspace, now=now)
        self.access_cache.set(principal.cache_key, workspace.name, decision)
        return decision

    def authorize(
        self,
        principal: Principal,
        workspace: Workspace,
        min_role: WorkspaceRole | None = None,
    ) -> AccessDecision:
        decision = self.resolve(principal, workspace)
        try:
            return decide(workspace.name, decision.role, min_role)
        except AccessDenied as e:
            log.info(
                "workspace_access_denied",
                workspace=workspace.name,
                principal=principal.id,
                required=min_role.label if min_role else None,
                current=e.current.label if e.current else None,
            )
            raise

    async def require_access(
        self,
        principal: Principal,
        name: str,
        min_role: WorkspaceRole | None = None,
    ) -> tuple[Workspace, AccessDecision]:
        workspace = await self.get_workspace(name)
        return workspace, self.authorize(principal, workspace, min_role)

    async def check_access(
        self,
        principal: Principal,
        name: str,
        min_role: WorkspaceRole | None = None,
    ) -> AccessDecision:
        """
        Non-raising variant of `require_access`: a missing workspace still raises
        `WorkspaceNotFound`, an insufficient role returns `AccessDecision.denied()`.
        """
        workspace = await self.get_workspace(name)
        decision = self.resolve(principal, workspace)
        if not decision.granted:
            return decision
        if min_role is not None and not role_satisfies_minimum(decision.role, min_role):
            return AccessDecision.denied()
        return decision

    async def has_role(self, principal: Principal, name: str, min_role: WorkspaceRole) -> bool:
        workspace = await self._workspaces.get_workspace(name)
        if workspace is None:
            return False
        return role_satisfies_minimum(self.resolve(principal, workspace).role, min_role)

    async def accessible_workspaces(
        self,
        principal: Principal,
        min_role: WorkspaceRole | None = None,
    ) -> list[tuple[Workspace, AccessDecision]]:
        if principal.is_anonymous:
            return []
        result: list[tuple[Workspace, AccessDecision]] = []
        for workspace in await self._workspaces.list_workspaces():
            decision = self.resolve(principal, workspace)
            if not decision.granted:
                continue
            if min_role is not None and not role_satisfies_minimum(decision.role, min_role):
                continue
            result.append((workspace, decision))
        return result

    async def with_scoped_credential(
        self,
        workspace: Workspace,
        role: WorkspaceRole,
        operation: ScopedOperation[T],
    ) -> T:
        return await self._scoped.with_scoped_credential(workspace, role, operation)

    # Cache maintenance.

    def get_token_cache_stats(self) -> TokenCacheStats:
        return self.token_cache.stats()

    def prune_expired_tokens(self) -> int:
        return self.token_cache.prune_expired()

    def invalidate_workspace_tokens(self, workspace: str) -> int:
        return self.token_cache.invalidate_workspace(workspace)

    def invalidate_workspace_access(self, workspace: str) -> int:
        return self.access_cache.invalidate_workspace(workspace)

    def clear_token_cache(self) -> None:
        self.token_cache.clear()


async def prune_periodically(authz: WorkspaceAuthz, *, interval_seconds: float) -> None:
    """
    Background task: prune expired tokens and access decisions until cancelled.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            tokens = authz.prune_expired_tokens()
            decisions = authz.access_cache.prune_expired()
        except Exception:
            # Keep the loop alive; the next tick retries.
            log.exception("cache_prune_failed")
            continue
        if tokens or decisions:
            log.debug("caches_pruned", tokens=tokens, decisions=decisions)


# --- Module Notes -----------------------------------------------------------
# The decision cache holds unfiltered roles; `authorize` applies `min_role` on every
# call, so a cached editor decision still fails an owner requirement.
