"""
workspace_authz.api.routers.dev_auth

Dev-only session token minting.

Responsibilities:
- Mint a session JWT for an arbitrary principal outside prod, for local testing
  against a cluster without an IdP.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from workspace_authz.api.deps import settings_dep
from workspace_authz.auth.jwt import JwtConfig, issue_token
from workspace_authz.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    username: str | None = Field(default=None, max_length=256)
    email: str | None = Field(default=None, max_length=256)
    groups: list[str] = Field(default_factory=list)
    provider: Literal["oauth", "builtin"] = "builtin"
    role: str | None = None
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        username=body.username,
        email=body.email,
        groups=body.groups,
        provider=body.provider,
        role=body.role,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
