"""
workspace_authz.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and the shared service objects.
- Encapsulate app.state access patterns (authz service, CRD operations).
"""

from __future__ import annotations

from fastapi import Request

from workspace_authz.k8s.crd import CrdOperations
from workspace_authz.services.workspace_authz import WorkspaceAuthz
from workspace_authz.settings import Settings


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[attr-defined]


def authz_dep(request: Request) -> WorkspaceAuthz:
    # Created once in `workspace_authz.api.app.create_app`; shared by every request.
    return request.app.state.authz  # type: ignore[attr-defined]


def crd_dep(request: Request) -> CrdOperations:
    return request.app.state.crd  # type: ignore[attr-defined]


# --- Module Notes -----------------------------------------------------------
# Tests swap collaborators by passing them to `create_app`, not by overriding these.
