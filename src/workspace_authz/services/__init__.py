"""
workspace_authz.services

Service layer package.

Responsibilities:
- Compose workspace lookup, access resolution and scoped credentials for the API layer.
"""

# Package marker.
