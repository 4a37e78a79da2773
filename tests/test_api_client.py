from __future__ import annotations

import httpx
import pytest

from entitystore.domain.error_codes import ErrorCode
from entitystore.domain.models import ResourceDefinition
from entitystore.infra.http.api_client import ApiError, StoreApiClient
from entitystore.infra.http.resource_adapter import HttpResourceAdapter


def make_client(responder, retries: int = 2, apiToken: str | None = None) -> StoreApiClient:
    return StoreApiClient(
        baseUrl="https://api.local/",
        apiToken=apiToken,
        retries=retries,
        retryBackoffSeconds=0,
        transport=httpx.MockTransport(responder),
    )


def test_get_json_sends_bearer_token_and_params():
    captured: dict = {}

    def responder(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers.get("Authorization")
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={"ok": True})

    client = make_client(responder, apiToken="secret")

    assert client.getJson("/documents/1", {"expand": "owner"}) == {"ok": True}
    assert captured["auth"] == "Bearer secret"
    assert captured["params"] == {"expand": "owner"}


def test_retries_on_5xx_then_succeeds():
    attempts = {"n": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        if attempts["n"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": 1})

    client = make_client(responder, retries=2)

    assert client.getJson("/documents/1") == {"id": 1}
    assert client.getRetryAttempts() == 2


def test_404_is_not_retried_and_maps_to_not_found():
    attempts = {"n": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        return httpx.Response(404, text="no such document")

    client = make_client(responder)

    with pytest.raises(ApiError) as excinfo:
        client.getJson("/documents/1")

    assert attempts["n"] == 1
    assert excinfo.value.code == "HTTP_404"
    assert excinfo.value.error_code == ErrorCode.NOT_FOUND
    assert excinfo.value.body_snippet == "no such document"
    assert "not found" in str(excinfo.value).lower()


def test_network_error_after_retries():
    def responder(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = make_client(responder, retries=1)

    with pytest.raises(ApiError) as excinfo:
        client.getJson("/documents/1")

    assert excinfo.value.code == ErrorCode.NETWORK_ERROR.value
    assert client.getRetryAttempts() == 1


def test_invalid_json_response():
    client = make_client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(ApiError) as excinfo:
        client.getJson("/documents/1")

    assert excinfo.value.code == ErrorCode.INVALID_JSON.value


def test_adapter_requests_item_path_and_rejects_non_object_payload():
    paths: list[str] = []

    def responder(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/2"):
            return httpx.Response(200, json=[1, 2])
        return httpx.Response(200, json={"id": 1})

    adapter = HttpResourceAdapter(make_client(responder))
    definition = ResourceDefinition("document", endpoint="/documents")

    assert adapter.find(definition, 1) == {"id": 1}
    with pytest.raises(ApiError) as excinfo:
        adapter.find(definition, 2)

    assert excinfo.value.code == ErrorCode.INVALID_PAYLOAD.value
    assert paths == ["/documents/1", "/documents/2"]
