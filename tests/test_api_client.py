"""Tests for the HTTP gateway."""
import json

import httpx
import pytest
from httpx import ASGITransport

from restock_console.core.config import Settings
from restock_console.core.errors import NetworkError
from restock_console.core.models import RestockPayload
from restock_console.services.api_client import APIClient, check_api

SETTINGS = Settings(api_base_url="http://api.test/", request_timeout=5)


def _client(handler) -> APIClient:
    return APIClient(settings=SETTINGS, transport=httpx.MockTransport(handler))


def test_base_url_trailing_slash_is_dropped() -> None:
    client = APIClient(settings=SETTINGS)
    assert client.base_url == "http://api.test"
    assert client.timeout == 5


@pytest.mark.asyncio
async def test_list_history_parses_rows() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/restock-history"
        return httpx.Response(200, json=[{
            "request_id": 17,
            "product_id": "p1",
            "product_name": "Tape",
            "quantity": 4,
            "requested_by": "e1",
            "requested_by_name": "Ann",
            "timestamp": "2025-01-01 09:00:00",
            "extra": "ignored",
        }])

    client = _client(handler)
    rows = await client.list_history()
    await client.close()

    assert rows[0].request_id == "17"
    assert rows[0].quantity == 4


@pytest.mark.asyncio
async def test_non_2xx_becomes_network_error() -> None:
    client = _client(lambda request: httpx.Response(503, text="down"))
    with pytest.raises(NetworkError) as exc_info:
        await client.list_products()
    await client.close()
    assert exc_info.value.status_code == 503
    assert exc_info.value.path == "/api/products"


@pytest.mark.asyncio
async def test_transport_error_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    with pytest.raises(NetworkError) as exc_info:
        await client.reset_demo_data()
    await client.close()
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_non_list_body_is_rejected() -> None:
    client = _client(lambda request: httpx.Response(200, json={"error": "nope"}))
    with pytest.raises(NetworkError):
        await client.list_employees()
    await client.close()


@pytest.mark.asyncio
async def test_malformed_rows_are_rejected() -> None:
    client = _client(lambda request: httpx.Response(200, json=[{"name": "Tape"}]))
    with pytest.raises(NetworkError):
        await client.list_products()
    await client.close()


@pytest.mark.asyncio
async def test_submit_sends_denormalised_payload() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"request_id": "r1"})

    client = _client(handler)
    result = await client.submit_restock(
        RestockPayload(product_id="p1", name="Tape", quantity=5, requested_by="e1")
    )
    await client.close()

    assert seen == {
        "method": "POST",
        "path": "/api/restock",
        "body": {"product_id": "p1", "name": "Tape", "quantity": 5, "requested_by": "e1"},
    }
    assert result == {"request_id": "r1"}


@pytest.mark.asyncio
async def test_delete_uses_request_path() -> None:
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append((request.method, request.url.path))
        return httpx.Response(204)

    client = _client(handler)
    await client.delete_request("abc-123")
    await client.close()
    assert paths == [("DELETE", "/api/restock-request/abc-123")]


@pytest.mark.asyncio
async def test_check_api_reports_failure(capsys) -> None:
    client = _client(lambda request: httpx.Response(500))
    assert await check_api(client) == 1
    assert "API check failed" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_round_trip_against_demo_api() -> None:
    """Drive the real demo API in-process through the gateway."""

    from app.main import app
    from app.store import store

    await store.reset(0)
    client = APIClient(settings=SETTINGS, transport=ASGITransport(app=app))
    try:
        products, employees = await client.list_reference_data()
        tape = next(p for p in products if p.name == "Packing Tape")
        await client.submit_restock(
            RestockPayload(
                product_id=tape.product_id,
                name=tape.name,
                quantity=3,
                requested_by=employees[0].employee_id,
            )
        )
        history = await client.list_history()
        assert [(row.product_name, row.quantity) for row in history] == [("Packing Tape", 3)]

        await client.delete_request(history[0].request_id)
        assert await client.list_history() == []

        with pytest.raises(NetworkError) as exc_info:
            await client.delete_request(history[0].request_id)
        assert exc_info.value.status_code == 404
        assert (await client.health())["status"] == "ok"
    finally:
        await client.close()
        await store.reset(0)


@pytest.mark.asyncio
async def test_undecodable_body_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
            stream=httpx.ByteStream(b"definitely not gzip"),
        )

    client = _client(handler)
    with pytest.raises(NetworkError):
        await client.list_history()
    await client.close()


@pytest.mark.asyncio
async def test_redirect_loop_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.TooManyRedirects("redirect loop", request=request)

    client = _client(handler)
    with pytest.raises(NetworkError):
        await client.delete_request("r1")
    await client.close()
