"""
workspace_authz.api.routers

Router package.
"""
