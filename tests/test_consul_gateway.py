from __future__ import annotations

import json

import httpx
import pytest

from aclctl.domain.models import ACLTokenCreateRequest, ACLTokenPolicyLink
from aclctl.infra.acl.consul_gateway import ConsulAclGateway
from aclctl.infra.http.consul_client import ApiError, ConsulApiClient


def make_gateway(responder, *, retries: int = 0) -> ConsulAclGateway:
    client = ConsulApiClient(
        baseUrl="http://consul.local:8500",
        retries=retries,
        retryBackoffSeconds=0,
        transport=httpx.MockTransport(responder),
    )
    return ConsulAclGateway(client)


def test_list_policies_parses_entries():
    def responder(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/acl/policies"
        return httpx.Response(
            200,
            json=[
                {
                    "ID": "00000000-0000-0000-0000-000000000001",
                    "Name": "global-management",
                    "Description": "Builtin Policy that grants unlimited access",
                    "Datacenters": None,
                    "CreateIndex": 4,
                    "ModifyIndex": 4,
                },
                {"ID": "b52fc3de-5111-4c1e-8c5a-000000000001", "Name": "acl-replication", "Datacenters": ["dc1"]},
                "garbage",
            ],
        )

    policies = make_gateway(responder).list_policies()

    assert [p.id for p in policies] == [
        "00000000-0000-0000-0000-000000000001",
        "b52fc3de-5111-4c1e-8c5a-000000000001",
    ]
    assert policies[0].name == "global-management"
    assert policies[0].create_index == 4
    assert policies[1].datacenters == ("dc1",)


def test_list_tokens_and_roles():
    def responder(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/acl/tokens":
            return httpx.Response(200, json=[{"AccessorID": "t1", "Description": "Anonymous Token", "Local": False}])
        if request.url.path == "/v1/acl/roles":
            return httpx.Response(200, json=[{"ID": "r1", "Name": "ops"}])
        return httpx.Response(404, text="not found")

    gateway = make_gateway(responder)

    assert [t.accessor_id for t in gateway.list_tokens()] == ["t1"]
    assert [r.name for r in gateway.list_roles()] == ["ops"]


def test_list_null_body_is_empty():
    gateway = make_gateway(lambda request: httpx.Response(200, text="null"))

    assert gateway.list_policies() == []


def test_list_non_list_payload_is_invalid_response():
    gateway = make_gateway(lambda request: httpx.Response(200, json={"ID": "x"}))

    with pytest.raises(ApiError) as exc:
        gateway.list_policies()

    assert exc.value.code == "INVALID_RESPONSE"


def test_create_token_sends_links_and_parses_token():
    seen: dict = {}

    def responder(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(
            200,
            json={
                "AccessorID": "6a1253d2-1785-24fd-91c2-f8e78c745511",
                "SecretID": "45a3bd52-07c7-47a4-52fd-0745e0cfe967",
                "Description": "Replication token",
                "Policies": [{"ID": "b52fc3de-5111-4c1e-8c5a-000000000001", "Name": "acl-replication"}],
                "Local": False,
                "CreateTime": "2018-10-24T12:25:06.921933-04:00",
                "Hash": "UuiRkOQPRCvoRZHRtUxxbrmwZ5crYrOdZ0Z1FTFbTbA=",
                "CreateIndex": 59,
                "ModifyIndex": 59,
            },
        )

    request = ACLTokenCreateRequest(
        description="Replication token",
        policies=(
            ACLTokenPolicyLink(name="acl-replication"),
            ACLTokenPolicyLink(id="b52fc3de-5111-4c1e-8c5a-000000000001"),
        ),
    )
    token = make_gateway(responder).create_token(request)

    assert seen["method"] == "PUT"
    assert seen["path"] == "/v1/acl/token"
    assert seen["body"] == {
        "Description": "Replication token",
        "Local": False,
        "Policies": [{"Name": "acl-replication"}, {"ID": "b52fc3de-5111-4c1e-8c5a-000000000001"}],
    }
    assert token.accessor_id == "6a1253d2-1785-24fd-91c2-f8e78c745511"
    assert token.create_index == 59
    assert token.policies[0].name == "acl-replication"


def test_create_token_is_not_retried():
    calls = {"count": 0}

    def responder(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503, text="No cluster leader")

    gateway = make_gateway(responder, retries=3)

    with pytest.raises(ApiError):
        gateway.create_token(ACLTokenCreateRequest(policies=(ACLTokenPolicyLink(name="x"),)))

    assert calls["count"] == 1
