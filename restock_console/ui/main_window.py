from __future__ import annotations

import asyncio

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from ..core.config import Settings
from ..core.events import RefreshBus
from ..core.logging_config import get_logger
from ..core.models import Notice
from ..modules.admin.controller import ResetController
from ..modules.admin.ui.reset_button import BusyOverlay, ResetPanel
from ..modules.dashboard.controller import DashboardRefreshController
from ..modules.dashboard.strategies import WidgetConfig
from ..modules.dashboard.ui.dashboard_view import DashboardView
from ..modules.history.controller import HistorySynchronizer
from ..modules.history.ui.history_panel import HistoryPanel
from ..modules.restock_form.controller import SubmissionController
from ..modules.restock_form.ui.restock_form import RestockFormWidget
from ..services.api_client import APIClient

log = get_logger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, client: APIClient, bus: RefreshBus, settings: Settings):
        super().__init__()
        self.setWindowTitle("Inventory Management System")
        self.resize(1450, 900)

        self.client = client
        self.bus = bus
        self.settings = settings
        self.closed = asyncio.Event()

        # ---------- Controllers ----------
        self.form_ctrl = SubmissionController(
            client, bus,
            notify=self.notify,
            success_notice_seconds=settings.success_notice_seconds,
        )
        self.history_ctrl = HistorySynchronizer(
            client, bus,
            confirm=self.confirm,
            notify=self.notify,
            poll_interval=settings.history_poll_interval,
        )
        self.reset_ctrl = ResetController(
            client, bus,
            confirm=self.confirm_destructive,
            notify=self.notify,
            overlay=self._set_overlay,
            settle_seconds=settings.reset_settle_seconds,
        )
        widget_config = WidgetConfig(
            url=settings.dashboard_url,
            width=settings.dashboard_width,
            height=settings.dashboard_height,
            toolbar=settings.dashboard_toolbar,
        )

        def _dashboard_controller(factory):
            return DashboardRefreshController(
                factory, widget_config,
                bus=bus,
                notify=self.notify,
                min_busy_seconds=settings.min_busy_seconds,
                source_reset_delay=settings.source_reset_delay,
            )

        # ---------- Layout ----------
        host = QWidget(self)
        root = QVBoxLayout(host)
        root.setContentsMargins(16, 12, 16, 12)
        root.setSpacing(12)

        header = QHBoxLayout()
        titles = QVBoxLayout()
        title = QLabel("Inventory Management System", host)
        title.setStyleSheet("font-size: 22px; font-weight: 700;")
        subtitle = QLabel("Submit restock requests and monitor inventory levels in real-time", host)
        subtitle.setStyleSheet("color: #666;")
        titles.addWidget(title)
        titles.addWidget(subtitle)
        header.addLayout(titles)
        header.addStretch(1)
        self.reset_panel = ResetPanel(self.reset_ctrl, host)
        header.addWidget(self.reset_panel, 0, Qt.AlignTop)
        root.addLayout(header)

        body = QHBoxLayout()
        left = QWidget(host)
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.setSpacing(12)
        self.form = RestockFormWidget(self.form_ctrl, left)
        self.history = HistoryPanel(self.history_ctrl, left)
        left_layout.addWidget(self.form)
        left_layout.addWidget(self.history, 1)

        left_scroll = QScrollArea(host)
        left_scroll.setWidgetResizable(True)
        left_scroll.setWidget(left)
        body.addWidget(left_scroll, 1)

        self.dashboard = DashboardView(_dashboard_controller, host)
        body.addWidget(self.dashboard, 4)
        root.addLayout(body, 1)

        self.setCentralWidget(host)
        self.setStatusBar(QStatusBar(self))
        self.overlay = BusyOverlay(self)

    # ===== Lifecycle =====
    def start(self) -> None:
        """Mount the surfaces; needs the running event loop."""
        self.form_ctrl.mount()
        self.dashboard.mount()

    def closeEvent(self, event):
        self.form.teardown()
        self.history.teardown()
        self.dashboard.teardown()
        self.closed.set()
        super().closeEvent(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self.overlay.isVisible():
            self.overlay.setGeometry(self.rect())

    # ===== UI callbacks handed to the controllers =====
    def confirm(self, message: str) -> bool:
        return QMessageBox.question(self, "Confirm", message) == QMessageBox.Yes

    def confirm_destructive(self, message: str) -> bool:
        box = QMessageBox(QMessageBox.Warning, "Reset demo data", message, QMessageBox.Yes | QMessageBox.Cancel, self)
        box.setDefaultButton(QMessageBox.Cancel)
        return box.exec() == QMessageBox.Yes

    def notify(self, notice: Notice) -> None:
        if notice.transient:
            timeout_ms = int(self.settings.success_notice_seconds * 1000)
            self.statusBar().showMessage(notice.message, timeout_ms)
            return
        if notice.level == "error":
            QMessageBox.warning(self, "Error", notice.message)
        else:
            QMessageBox.information(self, "Done", notice.message)

    def _set_overlay(self, visible: bool) -> None:
        self.overlay.set_visible(visible)
