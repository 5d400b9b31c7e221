"""Tests for the dashboard refresh controller and its recovery strategies."""
import asyncio

import pytest

from fakes import NoticeSink
from restock_console.core.events import RefreshBus
from restock_console.modules.dashboard.controller import RELOAD_ADVICE, DashboardRefreshController
from restock_console.modules.dashboard.strategies import (
    NativeRefreshStrategy,
    RecreateStrategy,
    SourceResetStrategy,
    StrategyOutcome,
    WidgetConfig,
    WidgetHandle,
    default_strategies,
    settle_native_refresh,
)

CONFIG = WidgetConfig(url="https://dash.example/views/inventory")


class PlainHandle:
    """Embedded view with no native refresh."""

    def __init__(self, config: WidgetConfig) -> None:
        self.config = config
        self.history = []
        self._source = config.url
        self.disposed = False

    @property
    def source(self) -> str:
        return self._source

    @source.setter
    def source(self, value: str) -> None:
        self.history.append(value)
        self._source = value

    def dispose(self) -> None:
        self.disposed = True


class NativeHandle(PlainHandle):
    def __init__(self, config: WidgetConfig, fail: bool = False) -> None:
        super().__init__(config)
        self.fail = fail
        self.refreshes = 0

    async def refresh_data(self) -> None:
        self.refreshes += 1
        if self.fail:
            raise RuntimeError("refreshDataAsync rejected")


class LockedHandle(PlainHandle):
    """A view whose source can no longer be reassigned."""

    @property
    def source(self) -> str:
        return self._source

    @source.setter
    def source(self, value: str) -> None:
        raise RuntimeError("view detached")


class Factory:
    def __init__(self, make=PlainHandle, fail: bool = False) -> None:
        self.make = make
        self.fail = fail
        self.created = []

    def __call__(self, config: WidgetConfig):
        if self.fail:
            raise RuntimeError("cannot build view")
        handle = self.make(config)
        self.created.append(handle)
        return handle


def _controller(factory: Factory, **kwargs) -> DashboardRefreshController:
    kwargs.setdefault("min_busy_seconds", 0)
    kwargs.setdefault("source_reset_delay", 0)
    return DashboardRefreshController(factory, CONFIG, **kwargs)


def test_widget_config_attributes() -> None:
    assert CONFIG.attributes() == {
        "src": "https://dash.example/views/inventory",
        "width": "100%",
        "height": "800",
        "toolbar": "bottom",
    }


def test_fake_handles_satisfy_protocol() -> None:
    assert isinstance(PlainHandle(CONFIG), WidgetHandle)


def test_mount_creates_handle() -> None:
    factory = Factory()
    controller = _controller(factory)
    handle = controller.mount()
    assert handle is factory.created[0]
    assert controller.last_outcome is StrategyOutcome.RECREATED
    assert controller.last_refreshed_at is not None


def test_mount_with_new_url_replaces_view() -> None:
    factory = Factory()
    controller = _controller(factory)
    first = controller.mount()
    second = controller.mount("https://dash.example/views/other")
    assert first.disposed
    assert second.config.url == "https://dash.example/views/other"
    assert controller.config.height == CONFIG.height


def test_mount_failure_notifies(notices: NoticeSink) -> None:
    controller = _controller(Factory(fail=True), notify=notices)
    assert controller.mount() is None
    assert notices.levels() == ["error"]


@pytest.mark.asyncio
async def test_native_refresh_wins_when_available() -> None:
    factory = Factory(make=NativeHandle)
    controller = _controller(factory)
    handle = controller.mount()

    assert await controller.refresh() is StrategyOutcome.REFRESHED
    assert handle.refreshes == 1
    assert handle.history == []
    assert controller.handle is handle
    assert not controller.busy


@pytest.mark.asyncio
async def test_source_reset_used_before_recreate() -> None:
    factory = Factory()
    controller = _controller(factory)
    handle = controller.mount()

    assert await controller.refresh() is StrategyOutcome.RELOADED
    assert handle.history == ["", CONFIG.url]
    assert len(factory.created) == 1


@pytest.mark.asyncio
async def test_failed_native_refresh_escalates_to_source_reset() -> None:
    factory = Factory(make=lambda config: NativeHandle(config, fail=True))
    controller = _controller(factory)
    handle = controller.mount()

    assert await controller.refresh() is StrategyOutcome.RELOADED
    assert handle.refreshes == 1
    assert handle.history == ["", CONFIG.url]


@pytest.mark.asyncio
async def test_recreate_when_source_reset_fails() -> None:
    factory = Factory(make=LockedHandle)
    controller = _controller(factory)
    old = controller.mount()

    assert await controller.refresh() is StrategyOutcome.RECREATED
    assert old.disposed
    assert controller.handle is factory.created[-1]
    assert controller.handle is not old


@pytest.mark.asyncio
async def test_missing_handle_goes_straight_to_recreate() -> None:
    factory = Factory()
    controller = _controller(factory)

    assert await controller.refresh() is StrategyOutcome.RECREATED
    assert controller.handle is factory.created[0]


@pytest.mark.asyncio
async def test_all_strategies_failing_notifies_without_raising(notices: NoticeSink) -> None:
    factory = Factory(make=LockedHandle)
    controller = _controller(factory, notify=notices)
    controller.mount()
    factory.fail = True

    assert await controller.refresh() is None

    assert controller.last_outcome is None
    assert notices.last.message == RELOAD_ADVICE
    assert not controller.busy
    assert controller.handle is factory.created[0]


@pytest.mark.asyncio
async def test_busy_while_refreshing() -> None:
    seen = []
    controller = _controller(Factory(make=NativeHandle))
    controller.mount()
    controller.changed.connect(lambda: seen.append(controller.busy))

    await controller.refresh()

    assert seen[0] is True
    assert seen[-1] is False


@pytest.mark.asyncio
async def test_bus_event_triggers_one_refresh() -> None:
    bus = RefreshBus()
    factory = Factory(make=NativeHandle)
    controller = _controller(factory, bus=bus)
    handle = controller.mount()
    controller.attach()

    bus.publish(reason="request_submitted", origin="restock_form")
    await controller.background_tasks.join()
    assert handle.refreshes == 1

    controller.close()
    bus.publish(reason="request_deleted", origin="history")
    assert len(controller.background_tasks) == 0
    assert handle.disposed


@pytest.mark.asyncio
async def test_custom_strategy_order_is_respected() -> None:
    factory = Factory()
    controller = _controller(factory, strategies=[RecreateStrategy(factory), SourceResetStrategy(0)])
    controller.mount()
    assert await controller.refresh() is StrategyOutcome.RECREATED


@pytest.mark.asyncio
async def test_native_strategy_skips_handles_without_refresh() -> None:
    handle = PlainHandle(CONFIG)
    result = await NativeRefreshStrategy().apply(handle, CONFIG)
    assert result == (handle, StrategyOutcome.SKIPPED)


@pytest.mark.asyncio
@pytest.mark.parametrize("make", [PlainHandle, LockedHandle], ids=["reloaded", "recreated"])
async def test_busy_held_for_minimum_after_reload_or_recreate(make) -> None:
    controller = _controller(Factory(make=make), min_busy_seconds=0.05)
    controller.mount()
    loop = asyncio.get_running_loop()

    started = loop.time()
    task = asyncio.ensure_future(controller.refresh())
    await asyncio.sleep(0.02)
    assert controller.busy

    assert await task in (StrategyOutcome.RELOADED, StrategyOutcome.RECREATED)
    assert loop.time() - started >= 0.045
    assert not controller.busy


@pytest.mark.asyncio
async def test_native_refresh_is_busy_only_for_the_call() -> None:
    controller = _controller(Factory(make=NativeHandle), min_busy_seconds=5)
    controller.mount()
    loop = asyncio.get_running_loop()

    started = loop.time()
    assert await controller.refresh() is StrategyOutcome.REFRESHED
    assert loop.time() - started < 1
    assert not controller.busy


@pytest.mark.asyncio
async def test_exhausted_refresh_does_not_hold_busy(notices: NoticeSink) -> None:
    factory = Factory(make=LockedHandle)
    controller = _controller(factory, notify=notices, min_busy_seconds=5)
    controller.mount()
    factory.fail = True
    loop = asyncio.get_running_loop()

    started = loop.time()
    assert await controller.refresh() is None
    assert loop.time() - started < 1
    assert not controller.busy


def test_default_strategies_escalate_in_order() -> None:
    assert [s.name for s in default_strategies(Factory())] == ["native", "source_reset", "recreate"]


class ScriptedPage:
    """Stands in for the web page: answers the start call, then a queue of states."""

    def __init__(self, started: object, states) -> None:
        self.started = started
        self.states = list(states)
        self.reads = 0

    async def start(self) -> object:
        return self.started

    async def read_state(self) -> object:
        self.reads += 1
        return self.states.pop(0) if self.states else "pending"


@pytest.mark.asyncio
async def test_native_refresh_waits_for_promise_to_resolve() -> None:
    page = ScriptedPage(True, ["pending", "pending", "ok"])
    await settle_native_refresh(page.start, page.read_state, timeout=1, poll=0)
    assert page.reads == 3


@pytest.mark.asyncio
async def test_native_refresh_rejection_raises() -> None:
    page = ScriptedPage(True, ["pending", "error"])
    with pytest.raises(RuntimeError):
        await settle_native_refresh(page.start, page.read_state, timeout=1, poll=0)


@pytest.mark.asyncio
async def test_native_refresh_times_out() -> None:
    page = ScriptedPage(True, [])
    with pytest.raises(TimeoutError):
        await settle_native_refresh(page.start, page.read_state, timeout=0.03, poll=0.005)


@pytest.mark.asyncio
async def test_missing_native_refresh_raises() -> None:
    page = ScriptedPage(False, [])
    with pytest.raises(RuntimeError):
        await settle_native_refresh(page.start, page.read_state, timeout=1, poll=0)
    assert page.reads == 0


@pytest.mark.asyncio
async def test_asynchronous_rejection_escalates_to_source_reset() -> None:
    class PromiseHandle(PlainHandle):
        async def refresh_data(self) -> None:
            page = ScriptedPage(True, ["pending", "error"])
            await settle_native_refresh(page.start, page.read_state, timeout=1, poll=0)

    factory = Factory(make=PromiseHandle)
    controller = _controller(factory)
    handle = controller.mount()

    assert await controller.refresh() is StrategyOutcome.RELOADED
    assert handle.history == ["", CONFIG.url]
