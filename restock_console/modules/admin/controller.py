"""Admin control that wipes and regenerates the demo data set."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from ...core.errors import NetworkError
from ...core.events import RefreshBus
from ...core.logging_config import get_logger
from ...core.models import Notice
from ...core.polling import BackgroundTasks
from ...services.api_client import APIClient

log = get_logger(__name__)

ORIGIN = "admin"
RESET_REASON = "demo_data_reset"

CONFIRM_MESSAGE = (
    "This will clear all existing data and generate fresh demo data.\n\n"
    "This action cannot be undone. Continue?"
)
SUCCESS_MESSAGE = "Demo data generated successfully! All tables have been reset."
FAILURE_MESSAGE = "Failed to generate demo data. Please try again."


class ResetController(QObject):
    """Destructive reset gated by confirmation, with a blocking overlay while it runs."""

    changed = Signal()

    def __init__(
        self,
        client: APIClient,
        bus: RefreshBus,
        *,
        confirm: Optional[Callable[[str], bool]] = None,
        notify: Optional[Callable[[Notice], None]] = None,
        overlay: Optional[Callable[[bool], None]] = None,
        settle_seconds: float = 5.0,
    ) -> None:
        super().__init__()
        self._client = client
        self._bus = bus
        self._confirm = confirm or (lambda message: False)
        self._notify = notify or (lambda notice: None)
        self._overlay = overlay or (lambda visible: None)
        self._settle_seconds = settle_seconds
        self._is_resetting = False
        self._tasks = BackgroundTasks()

    @property
    def is_resetting(self) -> bool:
        return self._is_resetting

    @property
    def background_tasks(self) -> BackgroundTasks:
        return self._tasks

    @property
    def enabled(self) -> bool:
        return not self._is_resetting

    async def reset(self) -> bool:
        """Ask for confirmation, reset the backend and tell every surface to reload."""

        if self._is_resetting:
            return False
        if not self._confirm(CONFIRM_MESSAGE):
            return False

        self._is_resetting = True
        self._overlay(True)
        self.changed.emit()
        try:
            await self._client.reset_demo_data()
            # Give the backend time to finish regenerating before anyone re-reads.
            if self._settle_seconds > 0:
                await asyncio.sleep(self._settle_seconds)
        except NetworkError as exc:
            log.error("Failed to generate demo data: %s", exc)
            self._notify(Notice(level="error", message=FAILURE_MESSAGE))
            return False
        finally:
            self._is_resetting = False
            self._overlay(False)
            self.changed.emit()

        self._bus.publish(reason=RESET_REASON, origin=ORIGIN)
        self._notify(Notice(level="success", message=SUCCESS_MESSAGE))
        return True
