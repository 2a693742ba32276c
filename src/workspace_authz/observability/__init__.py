"""
workspace_authz.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment (audit events included).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Audit events ride on the same structlog pipeline; see `workspace_authz.audit`.
