"""Lifecycle of the embedded analytics dashboard."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from ...core.errors import WidgetRefreshError
from ...core.events import RefreshBus, RefreshEvent, Subscription
from ...core.logging_config import get_logger
from ...core.models import Notice
from ...core.polling import BackgroundTasks
from .strategies import (
    RefreshStrategy,
    StrategyOutcome,
    WidgetConfig,
    WidgetFactory,
    WidgetHandle,
    default_strategies,
    dispose_handle,
)

log = get_logger(__name__)

RELOAD_ADVICE = (
    "Dashboard refresh attempted. If data doesn't update, please manually "
    "refresh the window (F5 or Ctrl+R)."
)


class DashboardRefreshController(QObject):
    """Owns the mounted dashboard view and keeps it current.

    ``refresh()`` walks the recovery strategies in order and stops at the
    first that succeeds. It never raises: when every strategy fails the user
    gets a notice advising a manual reload and the view stays usable.
    """

    changed = Signal()

    def __init__(
        self,
        factory: WidgetFactory,
        config: WidgetConfig,
        *,
        bus: Optional[RefreshBus] = None,
        notify: Optional[Callable[[Notice], None]] = None,
        strategies: Optional[Sequence[RefreshStrategy]] = None,
        min_busy_seconds: float = 2.0,
        source_reset_delay: float = 0.1,
    ) -> None:
        super().__init__()
        self._factory = factory
        self._config = config
        self._bus = bus
        self._notify = notify or (lambda notice: None)
        self._strategies: Sequence[RefreshStrategy] = (
            strategies if strategies is not None
            else default_strategies(factory, source_reset_delay=source_reset_delay)
        )
        self._min_busy_seconds = min_busy_seconds

        self._handle: Optional[WidgetHandle] = None
        self._busy_depth = 0
        self._last_refreshed_at: Optional[datetime] = None
        self._last_outcome: Optional[StrategyOutcome] = None
        self._subscription: Optional[Subscription] = None
        self._last_seen_token = 0
        self._tasks = BackgroundTasks()

    # ---- state ----
    @property
    def handle(self) -> Optional[WidgetHandle]:
        return self._handle

    @property
    def config(self) -> WidgetConfig:
        return self._config

    @property
    def busy(self) -> bool:
        return self._busy_depth > 0

    @property
    def last_refreshed_at(self) -> Optional[datetime]:
        return self._last_refreshed_at

    @property
    def last_outcome(self) -> Optional[StrategyOutcome]:
        return self._last_outcome

    @property
    def background_tasks(self) -> BackgroundTasks:
        return self._tasks

    # ---- lifecycle ----
    def mount(self, url: Optional[str] = None) -> Optional[WidgetHandle]:
        """Create the view bound to ``url`` (or the configured one)."""

        if url and url != self._config.url:
            self._config = WidgetConfig(
                url=url,
                width=self._config.width,
                height=self._config.height,
                toolbar=self._config.toolbar,
            )
        dispose_handle(self._handle)
        self._handle = None
        try:
            self._handle = self._factory(self._config)
        except Exception as exc:
            log.error("Failed to initialise dashboard: %s", exc, extra={"url": self._config.url})
            self._notify(Notice(level="error", message="Dashboard could not be loaded. Check the dashboard URL."))
        else:
            self._last_refreshed_at = datetime.now()
            self._last_outcome = StrategyOutcome.RECREATED
            log.info("Dashboard mounted", extra={"url": self._config.url})
        self.changed.emit()
        return self._handle

    def attach(self, bus: Optional[RefreshBus] = None) -> None:
        """Start following the refresh bus."""

        if bus is not None:
            self._bus = bus
        if self._bus is None or self._subscription is not None:
            return
        self._last_seen_token = self._bus.token
        self._subscription = self._bus.subscribe(self._on_refresh_event)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def close(self) -> None:
        """Tear down: stop listening, cancel pending refreshes, drop the view."""

        self.detach()
        self._tasks.cancel_all()
        dispose_handle(self._handle)
        self._handle = None

    def _on_refresh_event(self, event: RefreshEvent) -> None:
        if event.token == self._last_seen_token:
            return
        self._last_seen_token = event.token
        self._tasks.spawn(self.refresh(), name=f"dashboard-refresh-{event.token}")

    # ---- refresh ----
    async def refresh(self) -> Optional[StrategyOutcome]:
        """Bring the view up to date; returns the winning outcome or None."""

        loop = asyncio.get_running_loop()
        started = loop.time()
        self._busy_depth += 1
        self.changed.emit()
        try:
            outcome = await self._run_strategies()
            if outcome in (StrategyOutcome.RELOADED, StrategyOutcome.RECREATED):
                # Keep the busy indicator up long enough to be seen.
                remaining = self._min_busy_seconds - (loop.time() - started)
                if remaining > 0:
                    await asyncio.sleep(remaining)
            return outcome
        finally:
            self._busy_depth -= 1
            self.changed.emit()

    async def _run_strategies(self) -> Optional[StrategyOutcome]:
        for strategy in self._strategies:
            try:
                handle, outcome = await strategy.apply(self._handle, self._config)
            except WidgetRefreshError as exc:
                log.warning("Dashboard refresh stage failed: %s", exc, extra={"strategy": exc.strategy})
                continue
            self._handle = handle
            if outcome is StrategyOutcome.SKIPPED:
                continue
            self._last_refreshed_at = datetime.now()
            self._last_outcome = outcome
            log.info("Dashboard refreshed", extra={"strategy": strategy.name, "outcome": outcome.value})
            return outcome

        log.error("Dashboard refresh exhausted every strategy")
        self._last_outcome = None
        self._notify(Notice(level="error", message=RELOAD_ADVICE))
        return None
