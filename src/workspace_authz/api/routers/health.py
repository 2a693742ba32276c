"""
workspace_authz.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) reporting the token cache state.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from workspace_authz.api.deps import authz_dep
from workspace_authz.services.workspace_authz import WorkspaceAuthz

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(authz: WorkspaceAuthz = Depends(authz_dep)) -> dict[str, Any]:
    # The service holds no persistent state; ready as soon as the caches are wired.
    return {"status": "ready", "tokenCache": authz.get_token_cache_stats().as_dict()}
