"""Admin reset control and the blocking overlay shown while it runs."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFrame,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..controller import ResetController


class BusyOverlay(QWidget):
    """Semi-transparent cover over the whole window; swallows mouse input."""

    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setStyleSheet("background: rgba(0, 0, 0, 128);")
        self.hide()

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)
        card = QFrame(self)
        card.setStyleSheet("background: white; border-radius: 8px; padding: 24px;")
        inner = QVBoxLayout(card)
        title = QLabel("Generating Demo Data", card)
        title.setStyleSheet("font-size: 16px; font-weight: 600;")
        title.setAlignment(Qt.AlignCenter)
        inner.addWidget(title)
        detail = QLabel("Please wait while we reset all tables and refresh the dashboard...", card)
        detail.setAlignment(Qt.AlignCenter)
        detail.setStyleSheet("color: #555;")
        inner.addWidget(detail)
        layout.addWidget(card)

    def set_visible(self, visible: bool) -> None:
        if visible:
            self.setGeometry(self.parentWidget().rect())
            self.raise_()
            self.show()
        else:
            self.hide()


class ResetPanel(QFrame):
    """Admin controls card holding the reset button."""

    def __init__(self, controller: ResetController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.controller = controller

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 10)
        title = QLabel("Admin Controls", self)
        title.setStyleSheet("font-weight: 600; color: #444;")
        layout.addWidget(title)

        self._button = QPushButton("Reset Demo Data", self)
        self._button.setStyleSheet("background: #dc2626; color: white; padding: 6px;")
        self._button.clicked.connect(self._on_clicked)
        layout.addWidget(self._button)

        controller.changed.connect(self._render)
        self._render()

    def _on_clicked(self) -> None:
        self.controller.background_tasks.spawn(self.controller.reset(), name="demo-reset")

    def _render(self) -> None:
        resetting = self.controller.is_resetting
        self._button.setEnabled(not resetting)
        self._button.setText("Generating..." if resetting else "Reset Demo Data")
