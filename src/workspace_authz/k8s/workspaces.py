"""
workspace_authz.k8s.workspaces

Workspace lookup.

Responsibilities:
- Read cluster-scoped `Workspace` resources with the dashboard's system credential.
- Parse them into `Workspace` models for the access resolver.
"""

from __future__ import annotations

from workspace_authz.auth.models import Workspace
from workspace_authz.errors import UpstreamError
from workspace_authz.k8s.client import KubernetesClient
from workspace_authz.k8s.crd import metadata_name
from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)


class WorkspaceDirectory:
    def __init__(self, *, client: KubernetesClient, system_token: str) -> None:
        self._client = client
        self._token = system_token

    async def get_workspace(self, name: str) -> Workspace | None:
        obj = await self._client.get_workspace(token=self._token, name=name)
        if obj is None:
            return None
        try:
            return Workspace.from_resource(obj)
        except (KeyError, ValueError) as e:
            log.error("workspace_unparseable", name=name, error=str(e))
            raise UpstreamError(500, f"Workspace {name} is malformed: {e}") from e

    async def list_workspaces(self) -> list[Workspace]:
        workspaces: list[Workspace] = []
        for obj in await self._client.list_workspaces(token=self._token):
            try:
                workspaces.append(Workspace.from_resource(obj))
            except (KeyError, ValueError) as e:
                # One malformed resource must not hide every other workspace.
                log.warning(
                    "workspace_unparseable",
                    name=metadata_name(obj) if isinstance(obj, dict) else None,
                    error=str(e),
                )
        return workspaces
