"""
workspace_authz.audit

Audit package.

Responsibilities:
- Emit one structured audit event per workspace resource decision.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Audit events are write-once log records; nothing in this service reads them back.
