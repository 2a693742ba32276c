"""
workspace_authz.k8s.crd

Workspace-scoped CRD operations.

Responsibilities:
- Map supported resource plurals to their kinds.
- Run every read/write against the workspace namespace under a scoped credential
  (see `credentials.scoped`), so a stale token is refreshed transparently.
- Reject client bodies that are malformed or would move an object out of its workspace
  (`Invalid`, mapped to 400).
"""

from __future__ import annotations

from typing import Any

from workspace_authz.auth.models import Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.scoped import ScopedCredentials
from workspace_authz.errors import Invalid
from workspace_authz.k8s.client import KubernetesClient

CRD_KINDS: dict[str, str] = {
    "agentruntimes": "AgentRuntime",
    "promptpacks": "PromptPack",
    "toolregistries": "ToolRegistry",
    "arenasources": "ArenaSource",
    "arenajobs": "ArenaJob",
    "arenaprojects": "ArenaProject",
}

WORKSPACE_LABEL = "omnia.altairalabs.ai/workspace"


def kind_for(plural: str) -> str | None:
    return CRD_KINDS.get(plural)


class CrdOperations:
    def __init__(self, *, client: KubernetesClient, scoped: ScopedCredentials) -> None:
        self._client = client
        self._scoped = scoped

    async def list(
        self, workspace: Workspace, role: WorkspaceRole, plural: str
    ) -> list[dict[str, Any]]:
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.list_custom_objects(
                token=token, namespace=workspace.namespace_name, plural=plural
            ),
        )

    async def get(
        self, workspace: Workspace, role: WorkspaceRole, plural: str, name: str
    ) -> dict[str, Any] | None:
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.get_custom_object(
                token=token, namespace=workspace.namespace_name, plural=plural, name=name
            ),
        )

    async def create(
        self, workspace: Workspace, role: WorkspaceRole, plural: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        body = _with_workspace_metadata(body, workspace)
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.create_custom_object(
                token=token, namespace=workspace.namespace_name, plural=plural, body=body
            ),
        )

    async def replace(
        self,
        workspace: Workspace,
        role: WorkspaceRole,
        plural: str,
        name: str,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        body = _with_workspace_metadata(body, workspace, name=name)
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.replace_custom_object(
                token=token,
                namespace=workspace.namespace_name,
                plural=plural,
                name=name,
                body=body,
            ),
        )

    async def patch(
        self,
        workspace: Workspace,
        role: WorkspaceRole,
        plural: str,
        name: str,
        patch: dict[str, Any],
    ) -> dict[str, Any]:
        _check_patch(patch)
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.patch_custom_object(
                token=token,
                namespace=workspace.namespace_name,
                plural=plural,
                name=name,
                patch=patch,
            ),
        )

    async def delete(
        self, workspace: Workspace, role: WorkspaceRole, plural: str, name: str
    ) -> None:
        await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.delete_custom_object(
                token=token, namespace=workspace.namespace_name, plural=plural, name=name
            ),
        )

    async def read_config_map(
        self, workspace: Workspace, role: WorkspaceRole, name: str
    ) -> dict[str, str] | None:
        return await self._scoped.with_scoped_credential(
            workspace,
            role,
            lambda token: self._client.read_config_map(
                token=token, namespace=workspace.namespace_name, name=name
            ),
        )


def metadata_name(body: dict[str, Any]) -> str | None:
    metadata = body.get("metadata")
    if isinstance(metadata, dict) and isinstance(metadata.get("name"), str):
        return metadata["name"]
    return None


def _object_field(parent: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    value = parent.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise Invalid(400, f"{where} must be an object")
    return value


def _with_workspace_metadata(
    body: dict[str, Any], workspace: Workspace, *, name: str | None = None
) -> dict[str, Any]:
    # Pin namespace and workspace label server-side; the client body cannot redirect
    # a write into another namespace.
    metadata = dict(_object_field(body, "metadata", "metadata"))
    metadata["namespace"] = workspace.namespace_name
    if name is not None:
        metadata["name"] = name
    labels = dict(_object_field(metadata, "labels", "metadata.labels"))
    labels[WORKSPACE_LABEL] = workspace.name
    metadata["labels"] = labels
    return {**body, "metadata": metadata}


def _check_patch(patch: dict[str, Any]) -> None:
    # A merge patch may not move the object or detach it from its workspace.
    if "metadata" not in patch:
        return
    metadata = patch["metadata"]
    if not isinstance(metadata, dict):
        raise Invalid(400, "metadata must be an object")
    if "namespace" in metadata:
        raise Invalid(400, "metadata.namespace cannot be patched")
    if "labels" not in metadata:
        return
    labels = metadata["labels"]
    if not isinstance(labels, dict) or WORKSPACE_LABEL in labels:
        raise Invalid(400, f"metadata.labels[{WORKSPACE_LABEL}] cannot be patched")


# --- Module Notes -----------------------------------------------------------
# Shared, cluster-scoped catalogs (system ToolRegistries, Providers) are read through a
# separate system-credential path and never through `CrdOperations`.
