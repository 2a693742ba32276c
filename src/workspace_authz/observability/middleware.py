"""
workspace_authz.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata (and the target workspace, when the path names one) into
  structlog contextvars so audit events carry it too.
- Emit one completion line per request with status and latency.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from workspace_authz.observability.logging import get_logger

log = get_logger(__name__)

WORKSPACE_PREFIX = "/api/workspaces/"


def workspace_from_path(path: str) -> str | None:
    if not path.startswith(WORKSPACE_PREFIX):
        return None
    name = path[len(WORKSPACE_PREFIX) :].split("/", 1)[0]
    return name or None


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        workspace = workspace_from_path(request.url.path)
        if workspace:
            structlog.contextvars.bind_contextvars(workspace=workspace)

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            log.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# Audit events pass `workspace` explicitly; their value wins over the contextvar.
