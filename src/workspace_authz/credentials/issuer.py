"""
workspace_authz.credentials.issuer

Scoped credential issuance.

Responsibilities:
- Define the token-minting collaborator (`TokenIssuer`).
- Implement it with the Kubernetes TokenRequest API for the per-role workspace
  ServiceAccounts (`workspace-{name}-{role}-sa`) created by the operator.
- Normalize every failure into `CredentialIssuanceError`; never cache.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

from workspace_authz.auth.models import Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.token_cache import CachedCredential
from workspace_authz.errors import CredentialIssuanceError
from workspace_authz.k8s.client import KubernetesClient
from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)


class TokenIssuer(Protocol):
    async def issue_scoped_token(
        self, workspace: Workspace, role: WorkspaceRole
    ) -> CachedCredential: ...


def service_account_name(workspace: str, role: WorkspaceRole) -> str:
    return f"workspace-{workspace}-{role.label}-sa"


class KubernetesTokenIssuer:
    def __init__(
        self,
        *,
        client: KubernetesClient,
        system_token: str,
        expiration_seconds: int = 3600,
    ) -> None:
        self._client = client
        self._token = system_token
        self._expiration_seconds = expiration_seconds

    async def issue_scoped_token(
        self, workspace: Workspace, role: WorkspaceRole
    ) -> CachedCredential:
        body = await self._client.create_token_request(
            token=self._token,
            namespace=workspace.namespace_name,
            service_account=service_account_name(workspace.name, role),
            expiration_seconds=self._expiration_seconds,
        )
        if not isinstance(body, dict):
            raise ValueError("TokenRequest response is not an object")
        status = body.get("status")
        if not isinstance(status, dict):
            raise ValueError("TokenRequest response has no status object")
        token = status.get("token")
        if not token or not isinstance(token, str):
            raise ValueError("TokenRequest response has no status.token")
        return CachedCredential(
            token=token,
            expires_at=_parse_expiry(status.get("expirationTimestamp")),
        )


def _parse_expiry(value: object) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expirationTimestamp is not a string: {value!r}")
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


class CredentialIssuer:
    """
    Pure I/O adapter: one call, one TokenRequest. Caching belongs to `TokenCache`.
    """

    def __init__(self, issuer: TokenIssuer) -> None:
        self._issuer = issuer

    async def issue_credential(self, workspace: Workspace, role: WorkspaceRole) -> CachedCredential:
        try:
            cred = await self._issuer.issue_scoped_token(workspace, role)
        except Exception as e:
            log.error(
                "credential_issuance_failed",
                workspace=workspace.name,
                role=role.label,
                error=str(e),
            )
            raise CredentialIssuanceError(workspace=workspace.name, role=role, cause=e) from e
        log.info("credential_issued", workspace=workspace.name, role=role.label)
        return cred


# --- Module Notes -----------------------------------------------------------
# Transport failures already arrive as `UpstreamError` from `k8s.client`.
