"""
workspace_authz.k8s

Kubernetes boundary package.

Responsibilities:
- HTTP client for the API server (custom objects, ConfigMaps, TokenRequest).
- Workspace lookup with the system credential.
- Workspace-scoped CRD operations that always run under a scoped credential.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Callers above this package never see httpx types or raw status codes.
