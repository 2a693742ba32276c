"""
workspace_authz.auth.roles

Workspace role model.

Responsibilities:
- Define the ordered `WorkspaceRole` enum (viewer < editor < owner).
- Map each role to its fixed `Permissions` record.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class WorkspaceRole(enum.IntEnum):
    viewer = 1
    editor = 2
    owner = 3

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: str | WorkspaceRole) -> WorkspaceRole:
        if isinstance(value, WorkspaceRole):
            return value
        try:
            return cls[str(value).strip().lower()]
        except KeyError:
            raise ValueError(f"unknown workspace role: {value!r}") from None


@dataclass(frozen=True, slots=True)
class Permissions:
    read: bool = False
    write: bool = False
    delete: bool = False
    manage_members: bool = False

    def as_dict(self) -> dict[str, bool]:
        return {
            "read": self.read,
            "write": self.write,
            "delete": self.delete,
            "manageMembers": self.manage_members,
        }


NO_PERMISSIONS = Permissions()

_ROLE_PERMISSIONS: dict[WorkspaceRole, Permissions] = {
    WorkspaceRole.viewer: Permissions(read=True),
    WorkspaceRole.editor: Permissions(read=True, write=True, delete=True),
    WorkspaceRole.owner: Permissions(read=True, write=True, delete=True, manage_members=True),
}


def permissions_for(role: WorkspaceRole) -> Permissions:
    return _ROLE_PERMISSIONS[role]


def role_satisfies_minimum(role: WorkspaceRole | None, min_role: WorkspaceRole) -> bool:
    return role is not None and role >= min_role


# --- Module Notes -----------------------------------------------------------
# `Permissions` instances are frozen and shared; callers must not rely on identity.
