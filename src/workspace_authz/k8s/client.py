"""
workspace_authz.k8s.client

HTTP client boundary for the Kubernetes API server.

Responsibilities:
- Attach a caller-supplied bearer token to every request.
- Call the custom-object, ConfigMap and TokenRequest endpoints.
- Classify non-2xx responses once into the typed errors of `workspace_authz.errors`.
"""

from __future__ import annotations

from typing import Any

import httpx

from workspace_authz.errors import NotFound, UpstreamError, classify_status
from workspace_authz.settings import Settings

MERGE_PATCH = "application/merge-patch+json"


def create_http_client(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.k8s_api_url,
        verify=settings.k8s_verify_tls,
        timeout=settings.k8s_timeout_seconds,
        transport=transport,
    )


def _error_message(r: httpx.Response) -> str:
    # Kubernetes returns a `Status` object; fall back to the raw body otherwise.
    try:
        body = r.json()
    except ValueError:
        return r.text or r.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return r.text or r.reason_phrase


def raise_for_status(r: httpx.Response) -> None:
    if r.is_success:
        return
    raise classify_status(r.status_code, _error_message(r))


class KubernetesClient:
    """
    Thin async wrapper over the API server; holds no credential of its own.
    """

    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._http = http
        self._group = settings.crd_group
        self._version = settings.crd_version

    @staticmethod
    def _auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _crd_path(self, namespace: str, plural: str, name: str | None = None) -> str:
        path = f"/apis/{self._group}/{self._version}/namespaces/{namespace}/{plural}"
        return f"{path}/{name}" if name else path

    async def _send(
        self,
        method: str,
        path: str,
        *,
        token: str,
        json: Any = None,
        content_type: str | None = None,
    ) -> Any:
        headers = self._auth(token)
        if content_type:
            # Explicit headers take precedence over the json= default content type.
            headers["Content-Type"] = content_type
        try:
            r = await self._http.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as e:
            raise UpstreamError(503, f"{method} {path}: {e}") from e
        raise_for_status(r)
        if not r.content:
            return None
        return r.json()

    async def list_custom_objects(
        self, *, token: str, namespace: str, plural: str
    ) -> list[dict[str, Any]]:
        body = await self._send("GET", self._crd_path(namespace, plural), token=token)
        return list((body or {}).get("items") or [])

    async def get_custom_object(
        self, *, token: str, namespace: str, plural: str, name: str
    ) -> dict[str, Any] | None:
        try:
            return await self._send("GET", self._crd_path(namespace, plural, name), token=token)
        except NotFound:
            return None

    async def create_custom_object(
        self, *, token: str, namespace: str, plural: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._send("POST", self._crd_path(namespace, plural), token=token, json=body)

    async def replace_custom_object(
        self, *, token: str, namespace: str, plural: str, name: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._send(
            "PUT", self._crd_path(namespace, plural, name), token=token, json=body
        )

    async def patch_custom_object(
        self, *, token: str, namespace: str, plural: str, name: str, patch: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._send(
            "PATCH",
            self._crd_path(namespace, plural, name),
            token=token,
            json=patch,
            content_type=MERGE_PATCH,
        )

    async def delete_custom_object(
        self, *, token: str, namespace: str, plural: str, name: str
    ) -> None:
        await self._send("DELETE", self._crd_path(namespace, plural, name), token=token)

    async def read_config_map(
        self, *, token: str, namespace: str, name: str
    ) -> dict[str, str] | None:
        try:
            body = await self._send(
                "GET", f"/api/v1/namespaces/{namespace}/configmaps/{name}", token=token
            )
        except NotFound:
            return None
        return dict((body or {}).get("data") or {})

    # Cluster-scoped workspaces (read with the system credential).

    async def list_workspaces(self, *, token: str) -> list[dict[str, Any]]:
        body = await self._send(
            "GET", f"/apis/{self._group}/{self._version}/workspaces", token=token
        )
        return list((body or {}).get("items") or [])

    async def get_workspace(self, *, token: str, name: str) -> dict[str, Any] | None:
        try:
            return await self._send(
                "GET", f"/apis/{self._group}/{self._version}/workspaces/{name}", token=token
            )
        except NotFound:
            return None

    async def create_token_request(
        self,
        *,
        token: str,
        namespace: str,
        service_account: str,
        expiration_seconds: int,
    ) -> dict[str, Any]:
        return await self._send(
            "POST",
            f"/api/v1/namespaces/{namespace}/serviceaccounts/{service_account}/token",
            token=token,
            json={
                "apiVersion": "authentication.k8s.io/v1",
                "kind": "TokenRequest",
                "spec": {"expirationSeconds": expiration_seconds},
            },
        )


# --- Module Notes -----------------------------------------------------------
# This is the only module that inspects HTTP status codes; everything above it works
# with the tagged error classes.
