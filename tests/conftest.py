"""Shared fixtures for the client-side tests."""
from __future__ import annotations

import pytest

from fakes import FakeGateway, NoticeSink
from restock_console.core.events import RefreshBus


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def bus() -> RefreshBus:
    return RefreshBus()


@pytest.fixture
def notices() -> NoticeSink:
    return NoticeSink()
