"""
workspace_authz.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Define the read-only workspace access declaration (`Workspace`, bindings, grants).
- Define the result of access resolution (`AccessDecision`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from workspace_authz.auth.roles import (
    NO_PERMISSIONS,
    Permissions,
    WorkspaceRole,
    permissions_for,
)

AuthProvider = Literal["oauth", "builtin", "anonymous"]


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, built once per request from the session.
    """

    id: str
    username: str
    provider: AuthProvider
    groups: frozenset[str] = frozenset()
    email: str | None = None
    # Global dashboard role hint from the session (e.g. "admin"); not a workspace role.
    role: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.provider == "anonymous"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def identities(self) -> frozenset[str]:
        # Names a direct grant may refer to; compared case-insensitively.
        names = {self.id, self.username}
        if self.email:
            names.add(self.email)
        return frozenset(n.lower() for n in names if n)

    @property
    def cache_key(self) -> str:
        return (self.email or self.id).lower()


ANONYMOUS = Principal(id="anonymous", username="anonymous", provider="anonymous")


@dataclass(frozen=True, slots=True)
class RoleBinding:
    groups: tuple[str, ...]
    role: WorkspaceRole


@dataclass(frozen=True, slots=True)
class DirectGrant:
    user: str
    role: WorkspaceRole
    expires: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires is not None and self.expires <= now


@dataclass(frozen=True, slots=True)
class Workspace:
    name: str
    namespace_name: str
    role_bindings: tuple[RoleBinding, ...] = ()
    direct_grants: tuple[DirectGrant, ...] = ()
    display_name: str | None = None

    @classmethod
    def from_resource(cls, obj: dict[str, Any]) -> Workspace:
        """
        Parse a `Workspace` custom resource as returned by the Kubernetes API.
        """
        if not isinstance(obj, dict):
            raise ValueError("workspace resource is not an object")
        metadata = _mapping(obj, "metadata")
        spec = _mapping(obj, "spec")
        name = str(metadata.get("name", ""))
        if not name:
            raise ValueError("workspace resource has no metadata.name")
        namespace = str(_mapping(spec, "namespace").get("name") or "")
        if not namespace:
            raise ValueError(f"workspace {name} has no spec.namespace.name")

        bindings = tuple(
            RoleBinding(
                groups=_groups(b),
                role=WorkspaceRole.parse(b["role"]),
            )
            for b in _items(spec, "roleBindings")
        )
        grants = tuple(
            DirectGrant(
                user=str(g["user"]),
                role=WorkspaceRole.parse(g["role"]),
                expires=_parse_timestamp(g.get("expires")),
            )
            for g in _items(spec, "directGrants")
        )
        return cls(
            name=name,
            namespace_name=namespace,
            role_bindings=bindings,
            direct_grants=grants,
            display_name=spec.get("displayName"),
        )


def _mapping(obj: dict[str, Any], key: str) -> dict[str, Any]:
    value = obj.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"workspace field {key} is not an object")
    return value


def _items(spec: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = spec.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise ValueError(f"workspace field spec.{key} is not a list of objects")
    return value


def _groups(binding: dict[str, Any]) -> tuple[str, ...]:
    groups = binding.get("groups") or []
    if not isinstance(groups, list):
        raise ValueError("role binding groups is not a list")
    return tuple(str(g) for g in groups)


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"grant expiry is not a timestamp: {value!r}")
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


@dataclass(frozen=True, slots=True)
class AccessDecision:
    granted: bool
    role: WorkspaceRole | None
    permissions: Permissions = field(default=NO_PERMISSIONS)

    @classmethod
    def for_role(cls, role: WorkspaceRole) -> AccessDecision:
        return cls(granted=True, role=role, permissions=permissions_for(role))

    @classmethod
    def denied(cls) -> AccessDecision:
        return cls(granted=False, role=None, permissions=NO_PERMISSIONS)

    def as_dict(self) -> dict[str, Any]:
        return {
            "granted": self.granted,
            "role": self.role.label if self.role is not None else None,
            "permissions": self.permissions.as_dict(),
        }


# --- Module Notes -----------------------------------------------------------
# Workspaces are reconciled by the operator; this service only ever reads them.
