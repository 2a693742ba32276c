"""
workspace_authz.api.app

FastAPI app factory for the workspace authorization service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Wire the shared collaborators once (HTTP client, caches, issuer, authz service).
- Start and stop the periodic cache pruning task (lifespan).
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

import httpx
from fastapi import FastAPI

from workspace_authz.api.errors import register_error_handlers
from workspace_authz.api.routers.dev_auth import router as dev_auth_router
from workspace_authz.api.routers.health import router as health_router
from workspace_authz.api.routers.internal.router import router as internal_router
from workspace_authz.api.routers.workspaces import router as workspaces_router
from workspace_authz.auth.access_cache import AccessCache
from workspace_authz.credentials.issuer import (
    CredentialIssuer,
    KubernetesTokenIssuer,
    TokenIssuer,
)
from workspace_authz.credentials.scoped import ScopedCredentials
from workspace_authz.credentials.token_cache import TokenCache
from workspace_authz.k8s.client import KubernetesClient, create_http_client
from workspace_authz.k8s.crd import CrdOperations
from workspace_authz.k8s.workspaces import WorkspaceDirectory
from workspace_authz.observability.logging import configure_logging, get_logger
from workspace_authz.observability.middleware import RequestContextMiddleware
from workspace_authz.services.workspace_authz import (
    WorkspaceAuthz,
    WorkspaceLookup,
    prune_periodically,
)
from workspace_authz.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
    workspaces: WorkspaceLookup | None = None,
    token_issuer: TokenIssuer | None = None,
) -> FastAPI:
    """
    `transport`, `workspaces` and `token_issuer` replace the cluster-facing collaborators
    (tests, local dev without a cluster); by default everything talks to `k8s_api_url`.
    """
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        json_logs=settings.env != "dev",
    )

    http = create_http_client(settings, transport=transport)
    client = KubernetesClient(settings=settings, http=http)
    issuer = CredentialIssuer(
        token_issuer
        or KubernetesTokenIssuer(
            client=client,
            system_token=settings.k8s_token,
            expiration_seconds=settings.token_request_expiration_seconds,
        )
    )
    scoped = ScopedCredentials(cache=TokenCache.from_settings(settings), issuer=issuer)
    authz = WorkspaceAuthz(
        workspaces=workspaces or WorkspaceDirectory(client=client, system_token=settings.k8s_token),
        access_cache=AccessCache.from_settings(settings),
        scoped=scoped,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, k8s_api_url=settings.k8s_api_url)
        pruner = asyncio.create_task(
            prune_periodically(authz, interval_seconds=settings.cache_prune_interval_seconds)
        )
        try:
            yield
        finally:
            pruner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pruner
            authz.clear_token_cache()
            await http.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="Workspace Authorization Service",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.http = http
    app.state.authz = authz
    app.state.crd = CrdOperations(client=client, scoped=scoped)

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(workspaces_router)
    app.include_router(internal_router)

    return app


# --- Module Notes -----------------------------------------------------------
# One `TokenCache` per process: replicas do not share tokens, a cold replica just pays
# one TokenRequest per workspace/role.
