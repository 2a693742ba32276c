"""
workspace_authz.errors

Typed error hierarchy shared by the authz, credential and Kubernetes layers.

Responsibilities:
- Represent authorization outcomes (denied, not found) as exceptions callers can map.
- Classify Kubernetes API failures once, at the HTTP boundary, into tagged variants.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from workspace_authz.auth.roles import WorkspaceRole


class WorkspaceAuthzError(Exception):
    pass


class AccessDenied(WorkspaceAuthzError):
    """
    Principal is authenticated but lacks a sufficient role in the workspace.

    `current` is the role actually held (None when the principal has no role at all),
    `required` the minimum that was asked for (None when any role would do).
    """

    def __init__(
        self,
        *,
        workspace: str,
        required: WorkspaceRole | None = None,
        current: WorkspaceRole | None = None,
    ) -> None:
        self.workspace = workspace
        self.required = required
        self.current = current
        super().__init__(self._message())

    def _message(self) -> str:
        if self.current is None:
            return f"Access denied to workspace: {self.workspace}"
        required = self.required.label if self.required is not None else "any"
        return (
            "Insufficient workspace permissions: "
            f"requires {required}, have {self.current.label}"
        )


class WorkspaceNotFound(WorkspaceAuthzError):
    def __init__(self, workspace: str) -> None:
        self.workspace = workspace
        super().__init__(f"Workspace not found: {workspace}")


class CredentialIssuanceError(WorkspaceAuthzError):
    def __init__(self, *, workspace: str, role: WorkspaceRole, cause: Exception | str) -> None:
        self.workspace = workspace
        self.role = role
        self.cause = cause
        super().__init__(
            f"Failed to issue {role.label} credential for workspace {workspace}: {cause}"
        )


class KubernetesApiError(WorkspaceAuthzError):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")


class NotFound(KubernetesApiError):
    pass


class Forbidden(KubernetesApiError):
    pass


class CredentialRejected(KubernetesApiError):
    pass


class Conflict(KubernetesApiError):
    pass


class Invalid(KubernetesApiError):
    pass


class UpstreamError(KubernetesApiError):
    pass


_BY_STATUS: dict[int, type[KubernetesApiError]] = {
    400: Invalid,
    401: CredentialRejected,
    403: Forbidden,
    404: NotFound,
    409: Conflict,
    422: Invalid,
}


def classify_status(status_code: int, message: str) -> KubernetesApiError:
    return _BY_STATUS.get(status_code, UpstreamError)(status_code, message)


# --- Module Notes -----------------------------------------------------------
# 403 from the cluster is a legitimate RBAC denial for an already-authorized caller and
# is never retried; only 401 (`CredentialRejected`) signals a stale scoped token.
