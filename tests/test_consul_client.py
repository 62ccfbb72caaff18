from __future__ import annotations

import json

import httpx
import pytest

from aclctl.domain.error_codes import ErrorCode
from aclctl.infra.http.consul_client import ApiError, ConsulApiClient, buildBaseUrl, buildSslContext


def make_client(transport: httpx.BaseTransport, *, retries: int = 0, **kwargs) -> ConsulApiClient:
    return ConsulApiClient(
        baseUrl="http://consul.local:8500",
        retries=retries,
        retryBackoffSeconds=0,
        transport=transport,
        **kwargs,
    )


def test_get_json_sends_token_and_datacenter():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/v1/acl/policies"
        assert request.headers["X-Consul-Token"] == "secret-token"
        assert request.url.params["dc"] == "dc2"
        assert "stale" in request.url.params
        return httpx.Response(200, json=[{"ID": "p1"}])

    client = make_client(httpx.MockTransport(responder), token="secret-token", datacenter="dc2", stale=True)

    assert client.getJson("/v1/acl/policies") == [{"ID": "p1"}]


def test_no_token_header_when_token_missing():
    def responder(request: httpx.Request) -> httpx.Response:
        assert "X-Consul-Token" not in request.headers
        assert "dc" not in request.url.params
        return httpx.Response(200, json=[])

    client = make_client(httpx.MockTransport(responder))

    assert client.getJson("/v1/acl/policies") == []


def test_request_json_sends_payload():
    payload = {"Description": "x", "Local": False, "Policies": [{"ID": "p1"}]}

    def responder(request: httpx.Request) -> httpx.Response:
        assert request.method == "PUT"
        assert json.loads(request.content.decode("utf-8")) == payload
        return httpx.Response(200, json={"AccessorID": "a"})

    client = make_client(httpx.MockTransport(responder))

    status, data = client.requestJson("put", "/v1/acl/token", jsonBody=payload)

    assert status == 200
    assert data == {"AccessorID": "a"}


def test_get_json_retries_on_500_and_succeeds():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(500, text="fail")
        return httpx.Response(200, json=[])

    client = make_client(httpx.MockTransport(responder), retries=1)

    assert client.getJson("/v1/acl/policies") == []
    assert client.getRetryAttempts() == 1


def test_request_json_without_retry_fails_on_first_500():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(500, text="rpc error")

    client = make_client(httpx.MockTransport(responder), retries=3)

    with pytest.raises(ApiError) as exc:
        client.requestJson("PUT", "/v1/acl/token", jsonBody={}, allowRetry=False)

    assert calls["count"] == 1
    assert exc.value.status_code == 500
    assert exc.value.code == "HTTP_500"
    assert "rpc error" in str(exc.value)


def test_forbidden_maps_to_error_code():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="Permission denied")

    client = make_client(httpx.MockTransport(responder))

    with pytest.raises(ApiError) as exc:
        client.getJson("/v1/acl/policies")

    assert exc.value.error_code == ErrorCode.FORBIDDEN
    assert exc.value.body_snippet == "Permission denied"
    assert exc.value.retryable is False


def test_invalid_json_raises_api_error():
    def responder(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json")

    client = make_client(httpx.MockTransport(responder))

    with pytest.raises(ApiError) as exc:
        client.getJson("/v1/acl/policies")

    assert exc.value.code == "INVALID_JSON"


def test_network_error_after_retries():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("boom")

    client = make_client(httpx.MockTransport(responder), retries=2)

    with pytest.raises(ApiError) as exc:
        client.getJson("/v1/acl/policies")

    assert exc.value.code == "NETWORK_ERROR"
    assert exc.value.error_code == ErrorCode.NETWORK_ERROR
    assert calls["count"] == 3
    assert client.getRetryAttempts() == 2


@pytest.mark.parametrize(
    "addr, use_ssl, expected",
    [
        (None, False, "http://127.0.0.1:8500"),
        ("", False, "http://127.0.0.1:8500"),
        ("10.0.0.5:8500", False, "http://10.0.0.5:8500"),
        ("10.0.0.5:8501", True, "https://10.0.0.5:8501"),
        ("https://consul.example.com/", False, "https://consul.example.com"),
    ],
)
def test_build_base_url(addr, use_ssl, expected):
    assert buildBaseUrl(addr, use_ssl) == expected


def test_build_base_url_rejects_unix_socket():
    with pytest.raises(ValueError):
        buildBaseUrl("unix:///var/run/consul.sock")


def test_ssl_context_defaults_leave_httpx_verify():
    assert buildSslContext() is True
    assert buildSslContext(tlsSkipVerify=True) is False


def test_ssl_context_with_missing_ca_file_raises_os_error(tmp_path):
    with pytest.raises(OSError):
        buildSslContext(caFile=str(tmp_path / "missing-ca.pem"))
