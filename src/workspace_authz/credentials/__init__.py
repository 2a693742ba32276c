"""
workspace_authz.credentials

Scoped credential package.

Responsibilities:
- Cache workspace/role scoped ServiceAccount tokens.
- Mint new tokens through the cluster TokenRequest API.
- Run downstream calls with a scoped token and one-shot staleness recovery.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package decides *whether* a caller may act; that is `auth.resolver`.
