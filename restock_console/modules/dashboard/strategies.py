"""Recovery strategies for the embedded dashboard.

The embedded view's own refresh API is unreliable, so a refresh walks an
ordered list of strategies. Each one maps (current handle, target config)
to (handle to keep, outcome). A strategy that does not apply to the handle
returns ``SKIPPED``; one that fails raises :class:`WidgetRefreshError` and
the controller moves on to the next.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ...core.errors import WidgetRefreshError
from ...core.logging_config import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class WidgetConfig:
    """What the embedded view is bound to and how it is laid out."""

    url: str
    width: str = "100%"
    height: int = 800
    toolbar: str = "bottom"

    def attributes(self) -> Dict[str, str]:
        return {
            "src": self.url,
            "width": self.width,
            "height": str(self.height),
            "toolbar": self.toolbar,
        }


@runtime_checkable
class WidgetHandle(Protocol):
    """A mounted embedded view.

    Implementations may also provide ``async refresh_data()`` (native
    refresh) and ``dispose()`` (detach from the host surface).
    """

    source: str


WidgetFactory = Callable[[WidgetConfig], WidgetHandle]


class StrategyOutcome(str, enum.Enum):
    SKIPPED = "skipped"
    REFRESHED = "refreshed"
    RELOADED = "reloaded"
    RECREATED = "recreated"


StrategyResult = Tuple[Optional[WidgetHandle], StrategyOutcome]


class RefreshStrategy(Protocol):
    name: str

    async def apply(self, handle: Optional[WidgetHandle], config: WidgetConfig) -> StrategyResult: ...


def native_refresh_of(handle: Optional[WidgetHandle]):
    """Return the handle's native async refresh callable, or None."""

    if handle is None:
        return None
    method = getattr(handle, "refresh_data", None)
    return method if callable(method) else None


async def settle_native_refresh(
    start: Callable[[], Awaitable[object]],
    read_state: Callable[[], Awaitable[object]],
    *,
    timeout: float = 10.0,
    poll: float = 0.1,
) -> None:
    """Start a native refresh and poll its state until it reports ``ok``.

    ``start`` returns True once the refresh promise is running. ``read_state``
    returns ``"pending"``, ``"ok"`` or ``"error"``. Raises on rejection, on a
    missing native refresh and when ``timeout`` elapses first.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    if await asyncio.wait_for(start(), timeout=timeout) is not True:
        raise RuntimeError("dashboard has no native data refresh")
    while True:
        state = await asyncio.wait_for(read_state(), timeout=max(deadline - loop.time(), poll))
        if state == "ok":
            return
        if state == "error":
            raise RuntimeError("native data refresh was rejected")
        if loop.time() >= deadline:
            raise TimeoutError("native data refresh did not finish in time")
        await asyncio.sleep(poll)


def dispose_handle(handle: Optional[WidgetHandle]) -> None:
    if handle is None:
        return
    dispose = getattr(handle, "dispose", None)
    if callable(dispose):
        dispose()


class NativeRefreshStrategy:
    """Stage 1: ask the view to re-query its data in place."""

    name = "native"

    async def apply(self, handle: Optional[WidgetHandle], config: WidgetConfig) -> StrategyResult:
        refresh = native_refresh_of(handle)
        if refresh is None:
            return handle, StrategyOutcome.SKIPPED
        try:
            await refresh()
        except Exception as exc:
            raise WidgetRefreshError(self.name, exc) from exc
        return handle, StrategyOutcome.REFRESHED


class SourceResetStrategy:
    """Stage 2: blank the source, wait, then assign it back to force a reload."""

    name = "source_reset"

    def __init__(self, delay: float = 0.1) -> None:
        self.delay = delay

    async def apply(self, handle: Optional[WidgetHandle], config: WidgetConfig) -> StrategyResult:
        if handle is None:
            return handle, StrategyOutcome.SKIPPED
        try:
            source = handle.source or config.url
            handle.source = ""
            # Reassigning the same value straight away is a no-op for the view.
            await asyncio.sleep(self.delay)
            handle.source = source
        except Exception as exc:
            raise WidgetRefreshError(self.name, exc) from exc
        return handle, StrategyOutcome.RELOADED


class RecreateStrategy:
    """Stage 3: throw the current view away and build a new one."""

    name = "recreate"

    def __init__(self, factory: WidgetFactory) -> None:
        self.factory = factory

    async def apply(self, handle: Optional[WidgetHandle], config: WidgetConfig) -> StrategyResult:
        try:
            new_handle = self.factory(config)
        except Exception as exc:
            raise WidgetRefreshError(self.name, exc) from exc
        # The old view stays in place until its replacement exists.
        try:
            dispose_handle(handle)
        except Exception as exc:
            log.warning("Disposing dashboard view failed: %s", exc, extra={"strategy": self.name})
        return new_handle, StrategyOutcome.RECREATED


def default_strategies(factory: WidgetFactory, *, source_reset_delay: float = 0.1) -> Sequence[RefreshStrategy]:
    """Escalation order: native refresh, source reset, recreation."""

    return (
        NativeRefreshStrategy(),
        SourceResetStrategy(delay=source_reset_delay),
        RecreateStrategy(factory),
    )
