"""Tests for the demo data reset control."""
import asyncio

import pytest

from fakes import FakeGateway, NoticeSink, Prompt
from restock_console.core.events import RefreshBus
from restock_console.modules.admin.controller import (
    CONFIRM_MESSAGE,
    FAILURE_MESSAGE,
    RESET_REASON,
    SUCCESS_MESSAGE,
    ResetController,
)


class OverlaySpy:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, visible: bool) -> None:
        self.calls.append(visible)


@pytest.mark.asyncio
async def test_declined_reset_makes_no_call(gateway: FakeGateway, bus: RefreshBus) -> None:
    prompt = Prompt(False)
    overlay = OverlaySpy()
    controller = ResetController(gateway, bus, confirm=prompt, overlay=overlay, settle_seconds=0)

    assert await controller.reset() is False

    assert prompt.messages == [CONFIRM_MESSAGE]
    assert gateway.calls.get("reset_demo_data", 0) == 0
    assert overlay.calls == []
    assert bus.token == 0


@pytest.mark.asyncio
async def test_reset_without_confirm_callback_is_refused(gateway: FakeGateway, bus: RefreshBus) -> None:
    controller = ResetController(gateway, bus, settle_seconds=0)
    assert await controller.reset() is False
    assert gateway.calls.get("reset_demo_data", 0) == 0


@pytest.mark.asyncio
async def test_successful_reset_publishes(gateway: FakeGateway, bus: RefreshBus, notices: NoticeSink) -> None:
    overlay = OverlaySpy()
    received = []
    bus.subscribe(received.append)
    controller = ResetController(
        gateway, bus, confirm=Prompt(True), notify=notices, overlay=overlay, settle_seconds=0
    )

    assert await controller.reset() is True

    assert gateway.calls["reset_demo_data"] == 1
    assert overlay.calls == [True, False]
    assert [(e.reason, e.origin) for e in received] == [(RESET_REASON, "admin")]
    assert bus.token == 1
    assert notices.last.message == SUCCESS_MESSAGE
    assert not controller.is_resetting


@pytest.mark.asyncio
async def test_failed_reset_dismisses_overlay_and_keeps_token(
    gateway: FakeGateway, bus: RefreshBus, notices: NoticeSink
) -> None:
    gateway.fail.add("reset_demo_data")
    overlay = OverlaySpy()
    controller = ResetController(
        gateway, bus, confirm=Prompt(True), notify=notices, overlay=overlay, settle_seconds=0
    )

    assert await controller.reset() is False

    assert overlay.calls == [True, False]
    assert notices.levels() == ["error"]
    assert notices.last.message == FAILURE_MESSAGE
    assert bus.token == 0
    assert controller.enabled


@pytest.mark.asyncio
async def test_reset_is_disabled_while_running(gateway: FakeGateway, bus: RefreshBus) -> None:
    prompt = Prompt(True)
    controller = ResetController(gateway, bus, confirm=prompt, settle_seconds=0.02)

    first = asyncio.ensure_future(controller.reset())
    await asyncio.sleep(0)
    assert controller.is_resetting
    assert not controller.enabled

    assert await controller.reset() is False
    assert await first is True
    assert len(prompt.messages) == 1
    assert gateway.calls["reset_demo_data"] == 1
