"""
workspace_authz.auth.resolver

Workspace access resolution.

Responsibilities:
- Collect the roles a principal holds in a workspace (group bindings + direct grants).
- Combine them into one effective role (`resolve_effective_role`).
- Gate callers on a minimum role (`require_minimum_role`).

Policy: roles from all sources are combined by maximum. A direct grant never lowers
the role a group binding already gives; it can only raise it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import UTC, datetime

from workspace_authz.auth.models import AccessDecision, Principal, Workspace
from workspace_authz.auth.roles import WorkspaceRole, role_satisfies_minimum
from workspace_authz.errors import AccessDenied


def _candidate_roles(
    principal: Principal, workspace: Workspace, *, now: datetime
) -> Iterator[WorkspaceRole]:
    for binding in workspace.role_bindings:
        if any(group in principal.groups for group in binding.groups):
            yield binding.role

    identities = principal.identities
    for grant in workspace.direct_grants:
        if grant.is_expired(now):
            continue
        if grant.user.lower() in identities:
            yield grant.role


def combine_roles(roles: Iterable[WorkspaceRole]) -> WorkspaceRole | None:
    return max(roles, default=None)


def resolve_effective_role(
    principal: Principal,
    workspace: Workspace,
    *,
    now: datetime | None = None,
) -> WorkspaceRole | None:
    if principal.is_anonymous:
        return None
    now = now or datetime.now(tz=UTC)
    return combine_roles(_candidate_roles(principal, workspace, now=now))


def resolve_access(
    principal: Principal,
    workspace: Workspace,
    *,
    now: datetime | None = None,
) -> AccessDecision:
    role = resolve_effective_role(principal, workspace, now=now)
    if role is None:
        return AccessDecision.denied()
    return AccessDecision.for_role(role)


def decide(
    workspace_name: str,
    role: WorkspaceRole | None,
    min_role: WorkspaceRole | None = None,
) -> AccessDecision:
    """
    Turn an already-resolved role into a decision, raising when it is insufficient.
    """
    if role is None:
        raise AccessDenied(workspace=workspace_name, required=min_role)
    if min_role is not None and not role_satisfies_minimum(role, min_role):
        raise AccessDenied(workspace=workspace_name, required=min_role, current=role)
    return AccessDecision.for_role(role)


def require_minimum_role(
    principal: Principal,
    workspace: Workspace,
    min_role: WorkspaceRole,
    *,
    now: datetime | None = None,
) -> AccessDecision:
    return decide(workspace.name, resolve_effective_role(principal, workspace, now=now), min_role)


# --- Module Notes -----------------------------------------------------------
# Shared/cluster-scoped read-only resources (e.g. system ToolRegistries) never come
# through here; anonymous principals are denied unconditionally.
