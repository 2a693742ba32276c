"""
workspace_authz.auth.jwt

Session JWT issuing and validation helpers.

Responsibilities:
- Issue session tokens for dev scenarios and for the built-in login.
- Decode and validate session tokens with strict claim requirements (iss/aud/exp/iat/sub).
- Turn validated claims into a `Principal`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from workspace_authz.auth.models import Principal
from workspace_authz.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    username: str | None = None,
    email: str | None = None,
    groups: list[str] | None = None,
    provider: str = "builtin",
    role: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "preferred_username": username or subject,
        "groups": groups or [],
        "provider": provider,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if email:
        payload["email"] = email
    if role:
        payload["role"] = role
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    subject = str(payload.get("sub", ""))
    if not subject:
        raise JwtValidationError("missing subject")

    groups_raw = payload.get("groups", [])
    if not isinstance(groups_raw, list):
        raise JwtValidationError("groups claim must be a list")

    provider = payload.get("provider", "oauth")
    # Sessions are never anonymous; an anonymous principal only arises from no token.
    if provider not in ("oauth", "builtin"):
        raise JwtValidationError(f"unsupported provider: {provider}")

    role = payload.get("role")
    return Principal(
        id=subject,
        username=str(payload.get("preferred_username") or subject),
        provider=provider,
        groups=frozenset(str(g) for g in groups_raw),
        email=payload.get("email"),
        role=str(role) if role else None,
    )


# --- Module Notes -----------------------------------------------------------
# The OAuth callback mints the same token shape, with provider="oauth" and the IdP
# group claim copied into `groups`.
