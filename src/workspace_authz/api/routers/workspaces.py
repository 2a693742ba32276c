"""
workspace_authz.api.routers.workspaces

Workspace endpoints for dashboard users.

Responsibilities:
- List the caller's accessible workspaces and report access for one workspace.
- Proxy CRUD on workspace-scoped custom resources under scoped credentials.
- Audit every resource decision (success, denial, error).

Role requirements: reads need `viewer`; create/update/patch/delete need `editor`.
The scoped credential used for the cluster call is the required role, not the
caller's highest role.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from starlette.responses import Response
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
)

from workspace_authz.api.deps import authz_dep, crd_dep, settings_dep
from workspace_authz.audit.logger import (
    AuditContext,
    audit_denied,
    audit_error,
    audit_success,
    create_audit_context,
    method_to_action,
)
from workspace_authz.auth.deps import get_principal, require_authenticated
from workspace_authz.auth.models import Principal, Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.errors import AccessDenied, CredentialIssuanceError, KubernetesApiError
from workspace_authz.k8s.crd import CrdOperations, kind_for, metadata_name
from workspace_authz.services.workspace_authz import WorkspaceAuthz
from workspace_authz.settings import Settings

router = APIRouter(prefix="/api/workspaces", tags=["workspaces"])

T = TypeVar("T")

READ = WorkspaceRole.viewer
WRITE = WorkspaceRole.editor


def _kind(plural: str) -> str:
    kind = kind_for(plural)
    if kind is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"Unknown resource type: {plural}")
    return kind


async def _authorize(
    *,
    request: Request,
    principal: Principal,
    authz: WorkspaceAuthz,
    settings: Settings,
    name: str,
    kind: str,
    min_role: WorkspaceRole,
    resource_name: str | None = None,
    collection: bool = False,
) -> tuple[Workspace, AuditContext, str]:
    # Existence first: an unknown workspace is a 404 for everyone, before any role check.
    workspace = await authz.get_workspace(name)
    action = method_to_action(request.method, collection=collection)

    def ctx_for(role: WorkspaceRole | None) -> AuditContext:
        return create_audit_context(
            workspace.name,
            workspace.namespace_name,
            principal.email or principal.username,
            role,
            kind,
            auth_provider=principal.provider,
            path=request.url.path,
            method=request.method,
            enabled=settings.audit_logging_enabled,
        )

    try:
        decision = authz.authorize(principal, workspace, min_role)
    except AccessDenied as e:
        audit_denied(ctx_for(e.current), action, resource_name, str(e))
        raise
    return workspace, ctx_for(decision.role), action


async def _audited(
    ctx: AuditContext,
    action: str,
    resource_name: str | None,
    call: Callable[[], Awaitable[T]],
    *,
    metadata: Callable[[T], dict[str, Any]] | None = None,
) -> T:
    try:
        result = await call()
    except KubernetesApiError as e:
        audit_error(ctx, action, resource_name, e.message, e.status_code)
        raise
    except CredentialIssuanceError as e:
        audit_error(ctx, action, resource_name, e)
        raise
    audit_success(ctx, action, resource_name, metadata=metadata(result) if metadata else None)
    return result


async def _audited_get(
    ctx: AuditContext,
    action: str,
    resource: str,
    call: Callable[[], Awaitable[dict[str, Any] | None]],
) -> dict[str, Any] | None:
    try:
        obj = await call()
    except KubernetesApiError as e:
        audit_error(ctx, action, resource, e.message, e.status_code)
        raise
    except CredentialIssuanceError as e:
        audit_error(ctx, action, resource, e)
        raise
    if obj is None:
        audit_error(ctx, action, resource, "not found", HTTP_404_NOT_FOUND)
    else:
        audit_success(ctx, action, resource)
    return obj


@router.get("")
async def list_workspaces(
    min_role: str | None = Query(default=None, alias="minRole"),
    principal: Principal = Depends(require_authenticated),
    authz: WorkspaceAuthz = Depends(authz_dep),
) -> list[dict[str, Any]]:
    try:
        required = WorkspaceRole.parse(min_role) if min_role else None
    except ValueError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e
    pairs = await authz.accessible_workspaces(principal, required)
    return [
        {
            "name": ws.name,
            "displayName": ws.display_name or ws.name,
            "namespace": ws.namespace_name,
            "access": decision.as_dict(),
        }
        for ws, decision in pairs
    ]


@router.get("/{name}/access")
async def get_workspace_access(
    name: str,
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
) -> dict[str, Any]:
    workspace = await authz.get_workspace(name)
    return {"workspace": workspace.name, **authz.resolve(principal, workspace).as_dict()}


@router.get("/{name}/configmaps/{configmap}")
async def get_config_map(
    request: Request,
    name: str,
    configmap: str,
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, str]:
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind="ConfigMap",
        min_role=READ,
        resource_name=configmap,
    )
    data = await _audited_get(
        ctx, action, configmap, lambda: crd.read_config_map(workspace, READ, configmap)
    )
    if data is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"ConfigMap not found: {configmap}")
    return data


@router.get("/{name}/{plural}")
async def list_resources(
    request: Request,
    name: str,
    plural: str,
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> list[dict[str, Any]]:
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=_kind(plural),
        min_role=READ,
        collection=True,
    )
    return await _audited(
        ctx,
        action,
        None,
        lambda: crd.list(workspace, READ, plural),
        metadata=lambda items: {"count": len(items)},
    )


@router.post("/{name}/{plural}", status_code=HTTP_201_CREATED)
async def create_resource(
    request: Request,
    name: str,
    plural: str,
    body: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    resource_name = metadata_name(body)
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=_kind(plural),
        min_role=WRITE,
        resource_name=resource_name,
    )
    return await _audited(
        ctx, action, resource_name, lambda: crd.create(workspace, WRITE, plural, body)
    )


@router.get("/{name}/{plural}/{resource}")
async def get_resource(
    request: Request,
    name: str,
    plural: str,
    resource: str,
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    kind = _kind(plural)
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=kind,
        min_role=READ,
        resource_name=resource,
    )
    obj = await _audited_get(
        ctx, action, resource, lambda: crd.get(workspace, READ, plural, resource)
    )
    if obj is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"{kind} not found: {resource}")
    return obj


@router.put("/{name}/{plural}/{resource}")
async def replace_resource(
    request: Request,
    name: str,
    plural: str,
    resource: str,
    body: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=_kind(plural),
        min_role=WRITE,
        resource_name=resource,
    )
    return await _audited(
        ctx, action, resource, lambda: crd.replace(workspace, WRITE, plural, resource, body)
    )


@router.patch("/{name}/{plural}/{resource}")
async def patch_resource(
    request: Request,
    name: str,
    plural: str,
    resource: str,
    patch: dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=_kind(plural),
        min_role=WRITE,
        resource_name=resource,
    )
    return await _audited(
        ctx, action, resource, lambda: crd.patch(workspace, WRITE, plural, resource, patch)
    )


@router.delete("/{name}/{plural}/{resource}", status_code=HTTP_204_NO_CONTENT)
async def delete_resource(
    request: Request,
    name: str,
    plural: str,
    resource: str,
    principal: Principal = Depends(get_principal),
    authz: WorkspaceAuthz = Depends(authz_dep),
    crd: CrdOperations = Depends(crd_dep),
    settings: Settings = Depends(settings_dep),
) -> Response:
    workspace, ctx, action = await _authorize(
        request=request,
        principal=principal,
        authz=authz,
        settings=settings,
        name=name,
        kind=_kind(plural),
        min_role=WRITE,
        resource_name=resource,
    )
    await _audited(ctx, action, resource, lambda: crd.delete(workspace, WRITE, plural, resource))
    return Response(status_code=HTTP_204_NO_CONTENT)


# --- Module Notes -----------------------------------------------------------
# Anonymous callers reach the handlers (so unknown workspaces stay 404) but are always
# denied by the resolver; shared catalogs are served elsewhere with system access.
