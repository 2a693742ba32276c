"""
workspace_authz.api.errors

Mapping of typed service errors to HTTP responses.

Responsibilities:
- Register one exception handler per error family on the FastAPI app.
- Keep response bodies stable: `{"error": <reason phrase>, "message": ...}`.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from workspace_authz.errors import (
    AccessDenied,
    Conflict,
    CredentialIssuanceError,
    Forbidden,
    Invalid,
    KubernetesApiError,
    NotFound,
    WorkspaceNotFound,
)
from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)


def _body(status: int, error: str, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, "message": message, **extra})


async def _access_denied(_: Request, exc: AccessDenied) -> JSONResponse:
    return _body(
        HTTP_403_FORBIDDEN,
        "Forbidden",
        str(exc),
        workspace=exc.workspace,
        required=exc.required.label if exc.required is not None else None,
        current=exc.current.label if exc.current is not None else None,
    )


async def _workspace_not_found(_: Request, exc: WorkspaceNotFound) -> JSONResponse:
    return _body(HTTP_404_NOT_FOUND, "Not Found", str(exc), workspace=exc.workspace)


async def _credential_issuance(_: Request, exc: CredentialIssuanceError) -> JSONResponse:
    log.error("credential_issuance_error", workspace=exc.workspace, role=exc.role.label)
    return _body(HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", str(exc))


async def _kubernetes(_: Request, exc: KubernetesApiError) -> JSONResponse:
    if isinstance(exc, NotFound):
        return _body(HTTP_404_NOT_FOUND, "Not Found", exc.message)
    if isinstance(exc, Forbidden):
        return _body(HTTP_403_FORBIDDEN, "Forbidden", exc.message)
    if isinstance(exc, Conflict):
        return _body(HTTP_409_CONFLICT, "Conflict", exc.message)
    if isinstance(exc, Invalid):
        return _body(HTTP_400_BAD_REQUEST, "Bad Request", exc.message)
    # CredentialRejected after the retry, and every other upstream failure.
    log.error("kubernetes_api_error", status_code=exc.status_code, error=exc.message)
    return _body(HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", exc.message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccessDenied, _access_denied)  # type: ignore[arg-type]
    app.add_exception_handler(WorkspaceNotFound, _workspace_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(CredentialIssuanceError, _credential_issuance)  # type: ignore[arg-type]
    app.add_exception_handler(KubernetesApiError, _kubernetes)  # type: ignore[arg-type]
