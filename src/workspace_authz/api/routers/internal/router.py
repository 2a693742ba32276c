"""
workspace_authz.api.routers.internal.router

Internal maintenance endpoints for the scoped credential caches.

Responsibilities:
- Report token cache statistics.
- Prune expired tokens and invalidate tokens per workspace or globally
  (e.g. after a workspace's ServiceAccounts were rotated).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import Response
from starlette.status import HTTP_204_NO_CONTENT

from workspace_authz.api.deps import authz_dep
from workspace_authz.auth.deps import require_admin
from workspace_authz.observability.logging import get_logger
from workspace_authz.services.workspace_authz import WorkspaceAuthz

log = get_logger(__name__)

router = APIRouter(
    prefix="/internal/v1/token-cache",
    tags=["internal"],
    dependencies=[Depends(require_admin)],
)


@router.get("")
async def token_cache_stats(authz: WorkspaceAuthz = Depends(authz_dep)) -> dict[str, Any]:
    return {
        "tokens": authz.get_token_cache_stats().as_dict(),
        "access": authz.access_cache.stats(),
    }


@router.post("/prune")
async def prune_token_cache(authz: WorkspaceAuthz = Depends(authz_dep)) -> dict[str, int]:
    return {"removed": authz.prune_expired_tokens()}


@router.delete("/{workspace}")
async def invalidate_workspace(
    workspace: str, authz: WorkspaceAuthz = Depends(authz_dep)
) -> dict[str, int]:
    removed = authz.invalidate_workspace_tokens(workspace)
    # Bindings usually changed too; drop cached decisions so they are re-resolved.
    authz.invalidate_workspace_access(workspace)
    return {"removed": removed}


@router.delete("", status_code=HTTP_204_NO_CONTENT)
async def clear_token_cache(authz: WorkspaceAuthz = Depends(authz_dep)) -> Response:
    authz.clear_token_cache()
    log.info("token_cache_cleared")
    return Response(status_code=HTTP_204_NO_CONTENT)
