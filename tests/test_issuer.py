"""
tests.test_issuer

TokenRequest issuance, workspace lookup and Kubernetes status classification,
against `httpx.MockTransport`.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from workspace_authz.auth.models import Workspace
from workspace_authz.auth.roles import WorkspaceRole
from workspace_authz.credentials.issuer import (
    CredentialIssuer,
    KubernetesTokenIssuer,
    service_account_name,
)
from workspace_authz.errors import (
    Conflict,
    CredentialIssuanceError,
    CredentialRejected,
    Forbidden,
    Invalid,
    NotFound,
    UpstreamError,
    classify_status,
)
from workspace_authz.k8s.client import KubernetesClient, create_http_client
from workspace_authz.k8s.workspaces import WorkspaceDirectory
from workspace_authz.settings import Settings

W = Workspace(name="W", namespace_name="ns-w")


def _client(handler) -> tuple[KubernetesClient, httpx.AsyncClient]:
    settings = Settings(env="test", k8s_api_url="https://k8s.test")
    http = create_http_client(settings, transport=httpx.MockTransport(handler))
    return KubernetesClient(settings=settings, http=http), http


def test_service_account_name() -> None:
    assert service_account_name("W", WorkspaceRole.editor) == "workspace-W-editor-sa"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, Invalid),
        (401, CredentialRejected),
        (403, Forbidden),
        (404, NotFound),
        (409, Conflict),
        (422, Invalid),
        (500, UpstreamError),
        (503, UpstreamError),
    ],
)
def test_classify_status(status: int, expected: type) -> None:
    err = classify_status(status, "msg")
    assert type(err) is expected
    assert err.status_code == status
    assert err.message == "msg"


@pytest.mark.asyncio
async def test_token_request_is_sent_for_role_service_account() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            201,
            json={
                "kind": "TokenRequest",
                "status": {"token": "scoped-123", "expirationTimestamp": "2030-01-01T00:00:00Z"},
            },
        )

    client, http = _client(handler)
    async with http:
        issuer = KubernetesTokenIssuer(client=client, system_token="system", expiration_seconds=3600)
        cred = await issuer.issue_scoped_token(W, WorkspaceRole.editor)

    assert cred.token == "scoped-123"
    assert cred.expires_at == datetime(2030, 1, 1, tzinfo=UTC)
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/api/v1/namespaces/ns-w/serviceaccounts/workspace-W-editor-sa/token"
    assert request.headers["Authorization"] == "Bearer system"
    assert json.loads(request.content)["spec"] == {"expirationSeconds": 3600}


@pytest.mark.asyncio
async def test_issuance_errors_are_wrapped() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"kind": "Status", "message": "serviceaccounts not found"})

    client, http = _client(handler)
    async with http:
        issuer = CredentialIssuer(KubernetesTokenIssuer(client=client, system_token="system"))
        with pytest.raises(CredentialIssuanceError) as info:
            await issuer.issue_credential(W, WorkspaceRole.viewer)

    assert isinstance(info.value.cause, NotFound)
    assert "serviceaccounts not found" in str(info.value)


@pytest.mark.asyncio
async def test_missing_token_in_response_is_an_issuance_error() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"status": {}})

    client, http = _client(handler)
    async with http:
        issuer = CredentialIssuer(KubernetesTokenIssuer(client=client, system_token="system"))
        with pytest.raises(CredentialIssuanceError):
            await issuer.issue_credential(W, WorkspaceRole.owner)


@pytest.mark.asyncio
async def test_transport_failure_is_an_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, http = _client(handler)
    async with http:
        with pytest.raises(UpstreamError) as info:
            await client.list_custom_objects(token="t", namespace="ns-w", plural="agentruntimes")
    assert info.value.status_code == 503


@pytest.mark.asyncio
async def test_get_returns_none_on_404_and_patch_uses_merge_patch() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json={"metadata": {"name": "a"}})

    client, http = _client(handler)
    async with http:
        assert (
            await client.get_custom_object(
                token="t", namespace="ns-w", plural="agentruntimes", name="a"
            )
            is None
        )
        await client.patch_custom_object(
            token="t", namespace="ns-w", plural="agentruntimes", name="a", patch={"spec": {}}
        )

    assert seen[0].url.path == "/apis/omnia.altairalabs.ai/v1alpha1/namespaces/ns-w/agentruntimes/a"
    assert seen[1].headers["Content-Type"] == "application/merge-patch+json"


@pytest.mark.asyncio
async def test_workspace_directory_reads_cluster_scoped_workspaces() -> None:
    items = [
        {"metadata": {"name": "team-a"}, "spec": {"namespace": {"name": "team-a-ns"}}},
        {"metadata": {"name": "broken"}, "spec": {}},
        {"metadata": "x", "spec": "oops"},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer system"
        if request.url.path.endswith("/workspaces"):
            return httpx.Response(200, json={"items": items})
        if request.url.path.endswith("/workspaces/team-a"):
            return httpx.Response(200, json=items[0])
        return httpx.Response(404, json={"message": "not found"})

    client, http = _client(handler)
    async with http:
        directory = WorkspaceDirectory(client=client, system_token="system")
        assert [ws.name for ws in await directory.list_workspaces()] == ["team-a"]
        ws = await directory.get_workspace("team-a")
        assert ws is not None and ws.namespace_name == "team-a-ns"
        assert await directory.get_workspace("missing") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"status": "oops"},
        {"status": {"token": "t", "expirationTimestamp": 12345}},
        {"status": {"token": ""}},
        [1],
    ],
)
async def test_malformed_token_response_is_an_issuance_error(body) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=body)

    client, http = _client(handler)
    async with http:
        issuer = CredentialIssuer(KubernetesTokenIssuer(client=client, system_token="system"))
        with pytest.raises(CredentialIssuanceError) as info:
            await issuer.issue_credential(W, WorkspaceRole.editor)

    assert isinstance(info.value.cause, ValueError)


@pytest.mark.asyncio
async def test_any_issuer_failure_is_wrapped() -> None:
    class BrokenIssuer:
        async def issue_scoped_token(self, workspace, role):
            raise RuntimeError("boom")

    with pytest.raises(CredentialIssuanceError) as info:
        await CredentialIssuer(BrokenIssuer()).issue_credential(W, WorkspaceRole.viewer)

    assert isinstance(info.value.cause, RuntimeError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "resource",
    [
        {"metadata": {"name": "team-a"}, "spec": "oops"},
        {"metadata": "x", "spec": {"namespace": {"name": "team-a-ns"}}},
        {
            "metadata": {"name": "team-a"},
            "spec": {"namespace": {"name": "team-a-ns"}, "roleBindings": [{"groups": ["g"]}]},
        },
    ],
)
async def test_malformed_workspace_is_an_upstream_error(resource) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=resource)

    client, http = _client(handler)
    async with http:
        directory = WorkspaceDirectory(client=client, system_token="system")
        with pytest.raises(UpstreamError) as info:
            await directory.get_workspace("team-a")

    assert info.value.status_code == 500
    assert "team-a" in info.value.message
