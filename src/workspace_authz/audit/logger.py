"""
workspace_authz.audit.logger

Structured audit events for workspace resource operations.

Responsibilities:
- Bundle the request-level audit context (workspace, actor, role, resource kind).
- Emit success/denied/error events synchronously, one event per call.
- Never fail the request because auditing failed.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, Protocol

import structlog

from workspace_authz.auth.roles import WorkspaceRole

Outcome = Literal["success", "denied", "error"]

_fallback = logging.getLogger("workspace_authz.audit.fallback")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    workspace: str
    namespace: str
    actor: str
    role: str | None
    resource_kind: str
    action: str
    outcome: Outcome
    resource_name: str | None = None
    status_code: int | None = None
    detail: str | None = None
    auth_provider: str | None = None
    path: str | None = None
    method: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(tz=UTC).isoformat())

    def as_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class AuditSink(Protocol):
    def emit(self, event: AuditEvent) -> None: ...


class StructlogAuditSink:
    def __init__(self, logger: Any | None = None) -> None:
        self._log = logger or structlog.get_logger("workspace_authz.audit")

    def emit(self, event: AuditEvent) -> None:
        self._log.info("audit", **event.as_dict())


_default_sink: AuditSink = StructlogAuditSink()


@dataclass(frozen=True, slots=True)
class AuditContext:
    workspace: str
    namespace: str
    actor: str
    role: WorkspaceRole | None
    resource_kind: str
    auth_provider: str | None = None
    path: str | None = None
    method: str | None = None
    sink: AuditSink = field(default=_default_sink, repr=False, compare=False)
    enabled: bool = True


def create_audit_context(
    workspace: str,
    namespace: str,
    actor: str,
    role: WorkspaceRole | None,
    resource_kind: str,
    *,
    auth_provider: str | None = None,
    path: str | None = None,
    method: str | None = None,
    sink: AuditSink | None = None,
    enabled: bool = True,
) -> AuditContext:
    return AuditContext(
        workspace=workspace,
        namespace=namespace,
        actor=actor,
        role=role,
        resource_kind=resource_kind,
        auth_provider=auth_provider,
        path=path,
        method=method,
        sink=sink or _default_sink,
        enabled=enabled,
    )


def _emit(
    ctx: AuditContext,
    *,
    action: str,
    outcome: Outcome,
    resource_name: str | None,
    status_code: int | None = None,
    detail: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    if not ctx.enabled:
        return
    try:
        ctx.sink.emit(
            AuditEvent(
                workspace=ctx.workspace,
                namespace=ctx.namespace,
                actor=ctx.actor,
                role=ctx.role.label if ctx.role is not None else None,
                resource_kind=ctx.resource_kind,
                action=action,
                outcome=outcome,
                resource_name=resource_name,
                status_code=status_code,
                detail=detail,
                auth_provider=ctx.auth_provider,
                path=ctx.path,
                method=ctx.method,
                metadata=metadata,
            )
        )
    except Exception:  # noqa: BLE001 - audit emission must never fail the request
        _fallback.exception("audit sink failed: %s %s/%s", action, ctx.workspace, resource_name)


def audit_success(
    ctx: AuditContext,
    action: str,
    resource_name: str | None = None,
    detail: str | None = None,
    *,
    metadata: dict[str, Any] | None = None,
) -> None:
    _emit(
        ctx,
        action=action,
        outcome="success",
        resource_name=resource_name,
        detail=detail,
        metadata=metadata,
    )


def audit_denied(
    ctx: AuditContext,
    action: str,
    resource_name: str | None = None,
    reason: str | None = None,
) -> None:
    _emit(
        ctx,
        action=action,
        outcome="denied",
        resource_name=resource_name,
        status_code=403,
        detail=reason,
    )


def audit_error(
    ctx: AuditContext,
    action: str,
    resource_name: str | None = None,
    error: BaseException | str | None = None,
    status_code: int | None = None,
) -> None:
    _emit(
        ctx,
        action=action,
        outcome="error",
        resource_name=resource_name,
        status_code=status_code if status_code is not None else 500,
        detail=str(error) if error is not None else None,
    )


_ACTIONS = {
    "GET": "get",
    "POST": "create",
    "PUT": "update",
    "PATCH": "patch",
    "DELETE": "delete",
}


def method_to_action(method: str, *, collection: bool = False) -> str:
    action = _ACTIONS.get(method.upper(), "get")
    if action == "get" and collection:
        return "list"
    return action


# --- Module Notes -----------------------------------------------------------
# The default sink inherits request_id/path/method from structlog contextvars bound by
# `observability.middleware`, so events correlate with the request log lines.
