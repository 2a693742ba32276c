"""
tests.test_roles

Role ordering and the role -> permissions table.
"""

from __future__ import annotations

import pytest

from workspace_authz.auth.roles import (
    NO_PERMISSIONS,
    Permissions,
    WorkspaceRole,
    permissions_for,
    role_satisfies_minimum,
)


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (WorkspaceRole.viewer, Permissions(read=True)),
        (WorkspaceRole.editor, Permissions(read=True, write=True, delete=True)),
        (
            WorkspaceRole.owner,
            Permissions(read=True, write=True, delete=True, manage_members=True),
        ),
    ],
)
def test_permissions_table(role: WorkspaceRole, expected: Permissions) -> None:
    assert permissions_for(role) == expected
    # Same input, same output: no hidden state between calls.
    assert permissions_for(role) == permissions_for(role)


def test_no_permissions_is_all_false() -> None:
    assert NO_PERMISSIONS.as_dict() == {
        "read": False,
        "write": False,
        "delete": False,
        "manageMembers": False,
    }


def test_role_order() -> None:
    assert WorkspaceRole.owner > WorkspaceRole.editor > WorkspaceRole.viewer


@pytest.mark.parametrize(
    ("role", "minimum", "ok"),
    [
        (WorkspaceRole.owner, WorkspaceRole.editor, True),
        (WorkspaceRole.editor, WorkspaceRole.editor, True),
        (WorkspaceRole.viewer, WorkspaceRole.editor, False),
        (None, WorkspaceRole.viewer, False),
    ],
)
def test_role_satisfies_minimum(
    role: WorkspaceRole | None, minimum: WorkspaceRole, ok: bool
) -> None:
    assert role_satisfies_minimum(role, minimum) is ok


def test_parse_role() -> None:
    assert WorkspaceRole.parse("Editor") is WorkspaceRole.editor
    assert WorkspaceRole.parse(WorkspaceRole.owner) is WorkspaceRole.owner
    with pytest.raises(ValueError):
        WorkspaceRole.parse("admin")
