"""Embedded analytics dashboard view."""

from __future__ import annotations

import asyncio
import html
import json
from typing import Optional

from PySide6.QtCore import QUrl
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..controller import DashboardRefreshController
from ..strategies import WidgetConfig, settle_native_refresh

EMBED_SCRIPT = "https://public.tableau.com/javascripts/api/tableau.embedding.3.latest.min.js"

_NATIVE_REFRESH_JS = """
(function () {
  const viz = document.getElementById('viz');
  if (!viz || typeof viz.refreshDataAsync !== 'function') { return false; }
  window.__refreshState = 'pending';
  Promise.resolve(viz.refreshDataAsync()).then(
    function () { window.__refreshState = 'ok'; },
    function () { window.__refreshState = 'error'; }
  );
  return true;
})()
"""

_REFRESH_STATE_JS = "window.__refreshState || 'none'"

NATIVE_REFRESH_TIMEOUT = 10.0
NATIVE_REFRESH_POLL = 0.1


def render_embed_page(config: WidgetConfig) -> str:
    """HTML host page carrying a single ``<tableau-viz>`` element."""

    attrs = " ".join(f'{name}="{html.escape(value, quote=True)}"' for name, value in config.attributes().items())
    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'>"
        f"<script type='module' src='{EMBED_SCRIPT}'></script>"
        "<style>body{margin:0}</style></head>"
        f"<body><tableau-viz id='viz' {attrs}></tableau-viz></body></html>"
    )


class WebViewHandle:
    """Dashboard handle backed by a QWebEngineView placed in ``host_layout``."""

    def __init__(self, config: WidgetConfig, host_layout: QVBoxLayout, parent: QWidget | None = None) -> None:
        self._config = config
        self._source = config.url
        self._layout = host_layout
        self.view = QWebEngineView(parent)
        self.view.setMinimumHeight(min(config.height, 600))
        self.view.setHtml(render_embed_page(config), QUrl(config.url))
        host_layout.addWidget(self.view, 1)

    @property
    def source(self) -> str:
        return self._source

    @source.setter
    def source(self, value: str) -> None:
        self._source = value
        script = f"document.getElementById('viz').setAttribute('src', {json.dumps(value)});"
        self.view.page().runJavaScript(script, 0)

    async def _run_js(self, script: str, timeout: float = NATIVE_REFRESH_TIMEOUT) -> object:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _done(result: object) -> None:
            if not future.done():
                future.set_result(result)

        self.view.page().runJavaScript(script, 0, _done)
        return await asyncio.wait_for(future, timeout=timeout)

    async def refresh_data(self) -> None:
        """Run the viz's own data refresh and wait for its promise to settle."""

        await settle_native_refresh(
            lambda: self._run_js(_NATIVE_REFRESH_JS),
            lambda: self._run_js(_REFRESH_STATE_JS),
            timeout=NATIVE_REFRESH_TIMEOUT,
            poll=NATIVE_REFRESH_POLL,
        )

    def dispose(self) -> None:
        self._layout.removeWidget(self.view)
        self.view.setParent(None)
        self.view.deleteLater()


class DashboardView(QFrame):
    """Card showing the embedded dashboard with a manual refresh button."""

    def __init__(self, controller_factory, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.setObjectName("DashboardCard")

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 10, 12, 12)
        root.setSpacing(8)

        header = QHBoxLayout()
        title = QLabel("Inventory Dashboard", self)
        title.setStyleSheet("font-size: 18px; font-weight: 700;")
        header.addWidget(title)
        header.addStretch(1)

        self._updated_lbl = QLabel("", self)
        self._updated_lbl.setStyleSheet("color: #666;")
        header.addWidget(self._updated_lbl)

        self._refresh_btn = QPushButton("Refresh Dashboard", self)
        self._refresh_btn.clicked.connect(self._on_refresh_clicked)
        header.addWidget(self._refresh_btn)
        root.addLayout(header)

        self._host_layout = QVBoxLayout()
        self._host_layout.setContentsMargins(0, 0, 0, 0)
        root.addLayout(self._host_layout, 1)

        tips = QLabel(
            "Tips: refresh after submitting new requests. If the dashboard does not "
            "update, reload the window. Data may take 5-10 seconds to appear.",
            self,
        )
        tips.setWordWrap(True)
        tips.setStyleSheet("color: #1d4ed8; background: #eff6ff; padding: 6px; border-radius: 4px;")
        root.addWidget(tips)

        self.controller: DashboardRefreshController = controller_factory(self.create_handle)
        self.controller.changed.connect(self._render)

    def create_handle(self, config: WidgetConfig) -> WebViewHandle:
        return WebViewHandle(config, self._host_layout, self)

    def mount(self, url: Optional[str] = None) -> None:
        self.controller.mount(url)
        self.controller.attach()

    def _on_refresh_clicked(self) -> None:
        self.controller.background_tasks.spawn(self.controller.refresh(), name="dashboard-manual-refresh")

    def _render(self) -> None:
        busy = self.controller.busy
        self._refresh_btn.setEnabled(not busy)
        self._refresh_btn.setText("Refreshing..." if busy else "Refresh Dashboard")
        when = self.controller.last_refreshed_at
        self._updated_lbl.setText(f"Updated: {when.strftime('%H:%M:%S')}" if when else "")

    def teardown(self) -> None:
        self.controller.close()
