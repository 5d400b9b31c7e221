"""Application-wide refresh signalling.

These are lightweight Qt signals that allow widgets living in separate
modules (the request form, the history panel, the embedded dashboard and
the admin reset control) to react to shared state changes without calling
each other directly. Producers publish after a successful submit, delete or
reset; consumers subscribe when they mount and close the subscription on
teardown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from PySide6.QtCore import QObject, Signal

from .logging_config import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RefreshEvent:
    """Immutable notice that shared data changed; carries no payload."""

    token: int
    reason: str = ""
    origin: str = ""


class Subscription:
    """Handle returned by ``subscribe``; ``close()`` may be called any number of times."""

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def close(self) -> None:
        if self._unsubscribe is None:
            return
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        unsubscribe()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class RefreshBus(QObject):
    """Monotonic refresh token broadcast through the ``refreshed`` signal."""

    refreshed = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._token = 0
        self._slots: Dict[int, Callable[[RefreshEvent], None]] = {}
        self._next_id = 0

    @property
    def token(self) -> int:
        return self._token

    @property
    def subscriber_count(self) -> int:
        return len(self._slots)

    def has_changed(self, last_seen: int) -> bool:
        return self._token != last_seen

    def subscribe(self, callback: Callable[[RefreshEvent], None]) -> Subscription:
        """Connect ``callback`` to ``refreshed``; a failing callback is logged, not propagated."""

        def _slot(event: RefreshEvent) -> None:
            try:
                callback(event)
            except Exception:
                log.exception("Refresh subscriber %r failed", callback)

        key = self._next_id
        self._next_id += 1
        self._slots[key] = _slot
        self.refreshed.connect(_slot)

        def _unsubscribe() -> None:
            slot = self._slots.pop(key, None)
            if slot is not None:
                self.refreshed.disconnect(slot)

        return Subscription(_unsubscribe)

    def publish(self, reason: str = "", origin: str = "") -> RefreshEvent:
        """Increment the token and emit the new event to every subscriber."""

        self._token += 1
        event = RefreshEvent(token=self._token, reason=reason, origin=origin)
        log.info(
            "Refresh published",
            extra={"token": event.token, "reason": reason, "origin": origin},
        )
        self.refreshed.emit(event)
        return event


# Single shared bus that other modules can import and subscribe to.
refresh_bus = RefreshBus()
