"""
workspace_authz.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer session token into a typed `Principal` (anonymous when absent).
- Gate global admin endpoints via a reusable dependency factory.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from workspace_authz.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    decode_and_validate,
    principal_from_claims,
)
from workspace_authz.auth.models import ANONYMOUS, Principal
from workspace_authz.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)


def _settings(request: Request) -> Settings:
    # Prefer the settings the app was built with; fall back to the env-driven singleton.
    return getattr(request.app.state, "settings", None) or get_settings()


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(_settings),
) -> Principal:
    if creds is None or not creds.credentials:
        return ANONYMOUS

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
        return principal_from_claims(payload)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e


def require_authenticated(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.is_anonymous:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return principal


def require_admin(principal: Principal = Depends(require_authenticated)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Admin role required")
    return principal


# --- Module Notes -----------------------------------------------------------
# Workspace-level checks are not dependencies here; they need the workspace lookup and
# live in `api.routers.workspaces` via `services.workspace_authz`.
