"""Test fixtures for the demo API."""
import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DEMO_REQUEST_COUNT", "3")
os.environ.setdefault("DEMO_SEED", "7")

from app.main import app  # noqa: E402
from app.store import store  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def reset_store() -> None:
    """Start every test from an empty request table."""

    await store.reset(0)
    yield
    await store.reset(0)


@pytest_asyncio.fixture
async def client() -> AsyncClient:
    """Provide an HTTP client bound to the ASGI app."""

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
