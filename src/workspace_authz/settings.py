"""
workspace_authz.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (session JWT secret, cluster token).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration shared by the API, authz and credential layers.
    Defaults are safe for local dev against a kind/minikube cluster.
    """

    model_config = SettingsConfigDict(env_prefix="WSAUTHZ_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "workspace-authz"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Session auth (tokens minted by the OAuth callback or the built-in login).
    jwt_alg: str = "HS256"
    jwt_issuer: str = "workspace-authz"
    jwt_audience: str = "workspace-dashboard"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Kubernetes. `k8s_token` is the dashboard's own ServiceAccount credential; it is only
    # used for workspace lookup and TokenRequest, never for workspace resources.
    k8s_api_url: str = "https://kubernetes.default.svc"
    k8s_token: str = Field(default="", repr=False)
    k8s_verify_tls: bool = True
    k8s_timeout_seconds: float = 10.0
    crd_group: str = "omnia.altairalabs.ai"
    crd_version: str = "v1alpha1"

    # Scoped token cache.
    token_cache_max_size: int = Field(default=100, ge=1)
    token_default_ttl_seconds: int = Field(default=50 * 60, ge=1)
    token_safety_margin_seconds: int = Field(default=5 * 60, ge=0)
    token_request_expiration_seconds: int = Field(default=60 * 60, ge=600)

    # Access decision cache.
    access_cache_max_size: int = Field(default=1000, ge=1)
    access_cache_ttl_seconds: int = Field(default=5 * 60, ge=1)
    cache_prune_interval_seconds: float = Field(default=60.0, gt=0)

    audit_logging_enabled: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The default TTL (50 min) sits inside the minted token lifetime (60 min) minus the
# safety margin (5 min); keep the three values consistent when changing any of them.
