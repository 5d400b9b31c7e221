"""Restock history list: polling, on-demand refresh and optimistic delete."""

from __future__ import annotations

import asyncio
import enum
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from PySide6.QtCore import QObject, Signal

from ...core.errors import NetworkError
from ...core.events import RefreshBus, RefreshEvent, Subscription
from ...core.logging_config import get_logger
from ...core.models import DeletionState, Notice, RestockRequest
from ...core.polling import BackgroundTasks, PollingLease, start_polling
from ...services.api_client import APIClient

log = get_logger(__name__)

ORIGIN = "history"


class HistoryState(str, enum.Enum):
    COLLAPSED = "collapsed"
    LOADING = "loading"
    IDLE = "idle"
    DELETING = "deleting"


class HistorySynchronizer(QObject):
    """Keeps the cached history list in step with the server.

    While expanded the list is fetched immediately, then every
    ``poll_interval`` seconds, on manual refresh and whenever another
    component publishes on the refresh bus. Fetches are not coalesced:
    each carries a sequence number and a response older than the one on
    screen is dropped.
    """

    changed = Signal()

    def __init__(
        self,
        client: APIClient,
        bus: RefreshBus,
        *,
        confirm: Optional[Callable[[str], bool]] = None,
        notify: Optional[Callable[[Notice], None]] = None,
        poll_interval: float = 60.0,
    ) -> None:
        super().__init__()
        self._client = client
        self._bus = bus
        self._confirm = confirm or (lambda message: True)
        self._notify = notify or (lambda notice: None)
        self._poll_interval = poll_interval

        self._expanded = False
        self._items: List[RestockRequest] = []
        self._last_updated: Optional[datetime] = None
        self._last_error: Optional[str] = None

        self._fetch_seq = 0
        self._displayed_seq = 0
        self._fetches_in_flight = 0

        self._deleting: set[str] = set()
        self._deletion_states: Dict[str, DeletionState] = {}

        self._lease: Optional[PollingLease] = None
        self._subscription: Optional[Subscription] = None
        self._last_seen_token = bus.token
        self._tasks = BackgroundTasks()

    # ---- state ----
    @property
    def expanded(self) -> bool:
        return self._expanded

    @property
    def state(self) -> HistoryState:
        if not self._expanded:
            return HistoryState.COLLAPSED
        if self._fetches_in_flight:
            return HistoryState.LOADING
        if self._deleting:
            return HistoryState.DELETING
        return HistoryState.IDLE

    @property
    def items(self) -> Tuple[RestockRequest, ...]:
        return tuple(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def is_loading(self) -> bool:
        return self._fetches_in_flight > 0

    @property
    def is_empty(self) -> bool:
        """True only when the list is empty and nothing is loading."""
        return not self._items and not self.is_loading

    @property
    def deleting_ids(self) -> FrozenSet[str]:
        return frozenset(self._deleting)

    @property
    def deletion_states(self) -> Dict[str, DeletionState]:
        return dict(self._deletion_states)

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._last_updated

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def polling(self) -> bool:
        return self._lease is not None and self._lease.active

    @property
    def background_tasks(self) -> BackgroundTasks:
        return self._tasks

    def is_deleting(self, request_id: str) -> bool:
        return request_id in self._deleting

    # ---- lifecycle ----
    def attach(self) -> None:
        if self._subscription is None:
            self._last_seen_token = self._bus.token
            self._subscription = self._bus.subscribe(self._on_refresh_event)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def expand(self) -> Optional[asyncio.Task]:
        """Open the panel: fetch now and start the recurring refresh."""

        if self._expanded:
            return None
        self._expanded = True
        self._lease = start_polling(self.refresh, self._poll_interval, name="history-poll")
        log.debug("History expanded", extra={"interval": self._poll_interval})
        task = self._tasks.spawn(self.refresh(), name="history-expand")
        self.changed.emit()
        return task

    def collapse(self) -> None:
        """Close the panel; no further fetches start until it is expanded again."""

        if not self._expanded:
            return
        self._expanded = False
        if self._lease is not None:
            self._lease.cancel()
            self._lease = None
        log.debug("History collapsed")
        self.changed.emit()

    def toggle(self) -> Optional[asyncio.Task]:
        if self._expanded:
            self.collapse()
            return None
        return self.expand()

    def close(self) -> None:
        self.collapse()
        self.detach()
        self._tasks.cancel_all()

    def _on_refresh_event(self, event: RefreshEvent) -> None:
        if event.token == self._last_seen_token:
            return
        self._last_seen_token = event.token
        # Our own deletes already updated the cache in place.
        if event.origin == ORIGIN or not self._expanded:
            return
        self._tasks.spawn(self.refresh(), name=f"history-refresh-{event.token}")

    # ---- fetch ----
    async def refresh(self) -> bool:
        """Fetch the full list and replace the cache if this response is newest."""

        self._fetch_seq += 1
        seq = self._fetch_seq
        self._fetches_in_flight += 1
        self.changed.emit()
        try:
            rows = await self._client.list_history()
        except NetworkError as exc:
            log.error("Failed to fetch history: %s", exc)
            self._last_error = "Failed to refresh history"
            return False
        finally:
            self._fetches_in_flight -= 1
            self.changed.emit()

        if seq < self._displayed_seq:
            log.debug("Discarding stale history response", extra={"seq": seq, "displayed": self._displayed_seq})
            return False
        self._displayed_seq = seq
        self._items = list(rows)
        self._prune_deletion_states()
        self._last_updated = datetime.now()
        self._last_error = None
        self.changed.emit()
        return True

    # ---- delete ----
    def _prune_deletion_states(self) -> None:
        """Forget delete outcomes for rows no longer listed."""
        keep = {item.request_id for item in self._items} | self._deleting
        for request_id in list(self._deletion_states):
            if request_id not in keep:
                del self._deletion_states[request_id]

    def _find(self, request_id: str) -> Optional[RestockRequest]:
        for item in self._items:
            if item.request_id == request_id:
                return item
        return None

    async def delete(self, request_id: str) -> bool:
        """Delete one request after confirmation; returns True when committed.

        The row leaves the cache only once the server confirms; a failure
        leaves it where it was.
        """
        if request_id in self._deleting:
            return False
        item = self._find(request_id)
        if item is None:
            return False
        if not self._confirm(f"Delete restock request for {item.product_name} by {item.requested_by_name}?"):
            return False

        self._deleting.add(request_id)
        self._deletion_states[request_id] = DeletionState.PENDING
        self.changed.emit()
        try:
            await self._client.delete_request(request_id)
        except NetworkError as exc:
            log.error("Failed to delete request: %s", exc, extra={"request_id": request_id})
            self._deletion_states[request_id] = DeletionState.ROLLED_BACK
            self._notify(Notice(level="error", message="Failed to delete request"))
            return False
        except (Exception, asyncio.CancelledError):
            self._deletion_states[request_id] = DeletionState.ROLLED_BACK
            raise
        finally:
            self._deleting.discard(request_id)
            self.changed.emit()

        self._items = [row for row in self._items if row.request_id != request_id]
        self._deletion_states[request_id] = DeletionState.COMMITTED
        self.changed.emit()
        self._bus.publish(reason="request_deleted", origin=ORIGIN)
        self._notify(
            Notice(
                level="success",
                message=f"Request for {item.product_name} by {item.requested_by_name} has been deleted.",
                transient=True,
            )
        )
        return True
