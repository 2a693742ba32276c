"""
workspace_authz.api.routers.internal

Internal/operator endpoints package.
"""
