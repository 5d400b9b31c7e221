# restock_console/app.py
import sys

from PySide6 import QtAsyncio
from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from .core.config import Settings
from .core.events import refresh_bus
from .core.logging_config import get_logger
from .services.api_client import APIClient
from .ui.main_window import MainWindow

log = get_logger(__name__)


def run_app(settings: Settings) -> int:
    # High-DPI normalization
    QGuiApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Restock Console")
    app.setOrganizationName("Inventory Operations")
    # The session coroutine below decides when to stop.
    app.setQuitOnLastWindowClosed(False)

    client = APIClient(settings=settings)
    win = MainWindow(client, refresh_bus, settings)

    async def _session() -> None:
        log.info("Restock console started", extra={"api_base_url": client.base_url})
        win.start()
        await win.closed.wait()
        await client.close()
        log.info("Restock console closed")

    win.showMaximized()
    QtAsyncio.run(_session(), keep_running=False, handle_sigint=True)
    return 0
