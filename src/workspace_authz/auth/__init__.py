"""
workspace_authz.auth

Authentication/authorization package.

Responsibilities:
- Session JWT helpers and the FastAPI principal dependency.
- Workspace role model, access resolution and its decision cache.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `roles` and `resolver` are pure; keep I/O out of them so they stay trivially testable.
