from __future__ import annotations

import json

import httpx
import pytest

from portal.core.errors import PlatformError
from portal.infrastructure import PlatformClient

API_BASE = "https://platform.example.org"


def _client(handler) -> PlatformClient:
    transport = httpx.MockTransport(handler)
    return PlatformClient(API_BASE, token="TOKEN", http_client=httpx.Client(transport=transport))


@pytest.mark.parametrize(("status_code", "expected"), [(200, True), (204, True), (503, False), (500, False)])
def test_api_available_status_codes(status_code, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/status"
        return httpx.Response(status_code, json={"ok": expected})

    assert _client(handler).api_available() is expected


def test_api_available_treats_transport_errors_as_outage():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    assert _client(handler).api_available() is False


def test_push_acl_sends_entry():
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["path"] = request.url.raw_path.decode("ascii")
        captured["auth"] = request.headers.get("Authorization")
        captured["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"usersUpdated": captured["body"], "usersNotFound": []})

    client = _client(handler)
    entry = client.build_acl_entry("editor@example.com", "WRITER", True, False)
    client.push_acl("single-cell-portal", "my study", entry)

    assert captured["method"] == "PATCH"
    assert captured["path"] == "/api/workspaces/single-cell-portal/my%20study/acl"
    assert captured["auth"] == "Bearer TOKEN"
    assert captured["body"] == [
        {"email": "editor@example.com", "accessLevel": "WRITER", "canShare": True, "canCompute": False}
    ]


def test_push_acl_raises_on_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "insufficient permissions"})

    client = _client(handler)
    with pytest.raises(PlatformError, match="insufficient permissions"):
        client.push_acl("p", "w", client.build_acl_entry("a@example.com", "READER"))


def test_push_acl_raises_when_principal_unknown():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"usersNotFound": [{"email": "ghost@example.com"}]})

    client = _client(handler)
    with pytest.raises(PlatformError, match="ghost@example.com"):
        client.push_acl("p", "w", client.build_acl_entry("ghost@example.com", "NO ACCESS"))


def test_api_base_requires_scheme():
    with pytest.raises(ValueError):
        PlatformClient("platform.example.org")
