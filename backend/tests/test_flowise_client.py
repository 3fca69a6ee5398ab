import json

import httpx
import pytest

from app.services.flowise_client import FlowiseClient
from app.utils.exceptions import FlowiseServiceError


@pytest.mark.asyncio
async def test_create_chatflow_sends_auth_and_picks_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"id": "cf-1", "name": "Flow", "deployed": False, "internal": "dropped"},
            request=request,
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local/", api_key="secret", client=client)
        created = await flowise.create_chatflow({"name": "Flow", "flowData": "{}"})

    assert seen["url"] == "http://flowise.local/api/v1/chatflows"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"name": "Flow", "flowData": "{}"}
    assert created["id"] == "cf-1"
    assert "internal" not in created
    assert created["category"] is None


@pytest.mark.asyncio
async def test_requests_without_api_key_have_no_auth_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "authorization" not in request.headers
        return httpx.Response(200, json={"id": "cf-1"}, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", api_key="", client=client)
        chatflow = await flowise.get_chatflow("cf-1")

    assert chatflow["id"] == "cf-1"


@pytest.mark.asyncio
async def test_list_chatflows_accepts_wrapped_and_plain_lists():
    responses = iter([
        {"data": [{"id": "a"}, {"id": "b"}]},
        [{"id": "c"}],
    ])

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["page"] == "2"
        assert request.url.params["limit"] == "5"
        return httpx.Response(200, json=next(responses), request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", client=client)
        wrapped = await flowise.list_chatflows(page=2, limit=5)
        plain = await flowise.list_chatflows(page=2, limit=5)

    assert [item["id"] for item in wrapped] == ["a", "b"]
    assert [item["id"] for item in plain] == ["c"]


@pytest.mark.asyncio
async def test_update_and_delete_chatflow():
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append((request.method, request.url.path))
        if request.method == "PUT":
            return httpx.Response(200, json={"id": "cf-1", "deployed": True}, request=request)
        return httpx.Response(200, json={}, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", client=client)
        updated = await flowise.update_chatflow("cf-1", {"deployed": True})
        deleted = await flowise.delete_chatflow("cf-1")

    assert updated["deployed"] is True
    assert deleted is True
    assert methods == [("PUT", "/api/v1/chatflows/cf-1"), ("DELETE", "/api/v1/chatflows/cf-1")]


@pytest.mark.asyncio
async def test_error_status_raises_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Chatflow not found", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", client=client)
        with pytest.raises(FlowiseServiceError) as exc_info:
            await flowise.get_chatflow("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == "Chatflow not found"
    assert str(exc_info.value).startswith("Flowise API error: 404")


@pytest.mark.asyncio
async def test_transport_error_raises_service_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", client=client)
        with pytest.raises(FlowiseServiceError) as exc_info:
            await flowise.delete_chatflow("cf-1")

    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.detail


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "cf-1"}, request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        flowise = FlowiseClient(base_url="http://flowise.local", client=client)
        await flowise.close()
        assert not client.is_closed
