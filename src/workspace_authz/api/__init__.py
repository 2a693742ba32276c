"""
workspace_authz.api

HTTP API package.

Responsibilities:
- FastAPI app factory, dependencies, routers and error mapping.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: authorization lives in `services`, Kubernetes I/O in `k8s`.
