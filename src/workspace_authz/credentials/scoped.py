"""
workspace_authz.credentials.scoped

Run downstream calls under a workspace/role scoped credential.

Responsibilities:
- Fetch the credential from `TokenCache`, minting through `CredentialIssuer` on a miss.
- Retry exactly once, with a freshly minted credential, when the call is rejected
  as unauthenticated (stale or revoked token).
- Propagate every other failure unchanged.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

from workspace_authz.auth.models import Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.issuer import CredentialIssuer
from workspace_authz.credentials.token_cache import TokenCache
from workspace_authz.errors import CredentialRejected
from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

ScopedOperation = Callable[[str], Awaitable[T]]


class ScopedCredentials:
    def __init__(self, *, cache: TokenCache, issuer: CredentialIssuer) -> None:
        self.cache = cache
        self._issuer = issuer

    async def _mint(self, workspace: Workspace, role: WorkspaceRole) -> str:
        # Only a completed issuance is written back; cancellation leaves the cache untouched.
        cred = await self._issuer.issue_credential(workspace, role)
        self.cache.set(workspace.name, role, cred.token, cred.expires_at)
        return cred.token

    async def get_token(self, workspace: Workspace, role: WorkspaceRole) -> str:
        token = self.cache.get(workspace.name, role)
        if token is not None:
            return token
        return await self._mint(workspace, role)

    async def with_scoped_credential(
        self,
        workspace: Workspace,
        role: WorkspaceRole,
        operation: ScopedOperation[T],
    ) -> T:
        token = await self.get_token(workspace, role)
        try:
            return await operation(token)
        except CredentialRejected:
            log.warning(
                "scoped_credential_rejected",
                workspace=workspace.name,
                role=role.label,
            )
            self.cache.invalidate(workspace.name, role)

        token = await self._mint(workspace, role)
        # Second and final attempt; a repeated rejection propagates to the caller.
        return await operation(token)


# --- Module Notes -----------------------------------------------------------
# 403 (`Forbidden`) is not retried: the caller already passed the
# workspace role check, so a 403 is a real RBAC answer from the cluster.
