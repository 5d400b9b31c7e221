"""Collapsible restock history table."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ..controller import HistorySynchronizer

COLUMNS = ("Timestamp", "Product", "Qty", "Requested By", "Action")


class HistoryPanel(QFrame):
    """Toggle button plus the expandable request table."""

    def __init__(self, controller: HistorySynchronizer, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.controller = controller

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 10, 12, 12)
        root.setSpacing(8)

        self._toggle_btn = QPushButton("", self)
        self._toggle_btn.setStyleSheet("text-align: left; font-weight: 600;")
        self._toggle_btn.clicked.connect(self._on_toggle)
        root.addWidget(self._toggle_btn)

        self._body = QWidget(self)
        body = QVBoxLayout(self._body)
        body.setContentsMargins(0, 0, 0, 0)
        body.setSpacing(6)

        header = QHBoxLayout()
        title = QLabel("Recent Restock Requests", self._body)
        title.setStyleSheet("font-weight: 600;")
        header.addWidget(title)
        header.addStretch(1)
        self._updated_lbl = QLabel("", self._body)
        self._updated_lbl.setStyleSheet("color: #666;")
        header.addWidget(self._updated_lbl)
        self._refresh_btn = QPushButton("Refresh", self._body)
        self._refresh_btn.clicked.connect(self._on_refresh)
        header.addWidget(self._refresh_btn)
        body.addLayout(header)

        self._table = QTableWidget(0, len(COLUMNS), self._body)
        self._table.setHorizontalHeaderLabels(list(COLUMNS))
        self._table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self._table.setSelectionMode(QAbstractItemView.NoSelection)
        self._table.verticalHeader().setVisible(False)
        self._table.horizontalHeader().setStretchLastSection(True)
        body.addWidget(self._table, 1)

        self._placeholder = QLabel("", self._body)
        self._placeholder.setAlignment(Qt.AlignCenter)
        self._placeholder.setStyleSheet("color: #777; font-style: italic;")
        body.addWidget(self._placeholder)

        self._error_lbl = QLabel("", self._body)
        self._error_lbl.setStyleSheet("color: #b00020;")
        body.addWidget(self._error_lbl)

        root.addWidget(self._body, 1)

        controller.changed.connect(self._render)
        controller.attach()
        self._render()

    # ---- events ----
    def _on_toggle(self) -> None:
        self.controller.toggle()

    def _on_refresh(self) -> None:
        self.controller.background_tasks.spawn(self.controller.refresh(), name="history-manual-refresh")

    def _on_delete(self, request_id: str) -> None:
        self.controller.background_tasks.spawn(self.controller.delete(request_id), name=f"history-delete-{request_id}")

    # ---- rendering ----
    def _render(self) -> None:
        ctrl = self.controller
        arrow = "▴" if ctrl.expanded else "▾"
        self._toggle_btn.setText(f"{arrow} Show History ({ctrl.count} requests)")
        self._body.setVisible(ctrl.expanded)
        if not ctrl.expanded:
            return

        self._refresh_btn.setEnabled(not ctrl.is_loading)
        self._updated_lbl.setText(
            f"Updated {ctrl.last_updated.strftime('%H:%M:%S')}" if ctrl.last_updated else ""
        )
        self._error_lbl.setText(ctrl.last_error or "")

        # Loading wins over the empty state.
        if ctrl.is_loading:
            self._placeholder.setText("Loading history...")
        elif ctrl.is_empty:
            self._placeholder.setText("No restock requests found")
        else:
            self._placeholder.setText("")
        self._placeholder.setVisible(bool(self._placeholder.text()))

        items = ctrl.items
        self._table.setRowCount(len(items))
        for row, request in enumerate(items):
            values = (request.timestamp, request.product_name, str(request.quantity), request.requested_by_name)
            for col, value in enumerate(values):
                self._table.setItem(row, col, QTableWidgetItem(value))
            deleting = ctrl.is_deleting(request.request_id)
            btn = QPushButton("Deleting..." if deleting else "Undo", self._table)
            btn.setEnabled(not deleting)
            btn.setStyleSheet("color: #dc2626;")
            btn.clicked.connect(lambda _=False, rid=request.request_id: self._on_delete(rid))
            self._table.setCellWidget(row, len(COLUMNS) - 1, btn)

    def teardown(self) -> None:
        self.controller.close()
