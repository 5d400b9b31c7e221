"""Restock request submission form."""

from __future__ import annotations

from typing import Dict

from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QFrame,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..controller import SubmissionController

_ERROR_STYLE = "border: 1px solid #ef4444;"


class RestockFormWidget(QFrame):
    """Product / quantity / requester inputs bound to a SubmissionController."""

    def __init__(self, controller: SubmissionController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.controller = controller
        self._syncing = False

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 10, 12, 12)
        root.setSpacing(8)

        title = QLabel("Submit Restock Request", self)
        title.setStyleSheet("font-size: 16px; font-weight: 700;")
        root.addWidget(title)

        form = QFormLayout()
        self._product = QComboBox(self)
        self._product.currentIndexChanged.connect(lambda _: self._on_combo("product_id", self._product))
        self._quantity = QLineEdit(self)
        self._quantity.setPlaceholderText("Enter quantity...")
        self._quantity.textEdited.connect(lambda text: self.controller.set_field("quantity", text))
        self._employee = QComboBox(self)
        self._employee.currentIndexChanged.connect(lambda _: self._on_combo("requested_by", self._employee))

        self._error_labels: Dict[str, QLabel] = {}
        for field, label, widget in (
            ("product_id", "Product *", self._product),
            ("quantity", "Quantity *", self._quantity),
            ("requested_by", "Requested By *", self._employee),
        ):
            host = QWidget(self)
            v = QVBoxLayout(host)
            v.setContentsMargins(0, 0, 0, 0)
            v.setSpacing(2)
            v.addWidget(widget)
            err = QLabel("", host)
            err.setStyleSheet("color: #ef4444; font-size: 11px;")
            err.setVisible(False)
            v.addWidget(err)
            self._error_labels[field] = err
            form.addRow(label, host)
        root.addLayout(form)

        self._submit_btn = QPushButton("Submit Restock Request", self)
        self._submit_btn.clicked.connect(self._on_submit)
        root.addWidget(self._submit_btn)

        self._status_lbl = QLabel("", self)
        self._status_lbl.setWordWrap(True)
        root.addWidget(self._status_lbl)
        root.addStretch(1)

        controller.changed.connect(self._render)
        controller.attach()
        self._render()

    def _on_combo(self, field: str, combo: QComboBox) -> None:
        if self._syncing:
            return
        self.controller.set_field(field, combo.currentData() or "")

    def _on_submit(self) -> None:
        self.controller.background_tasks.spawn(self.controller.submit(), name="restock-submit")

    def _fill_combo(self, combo: QComboBox, placeholder: str, options, selected: str) -> None:
        combo.clear()
        combo.addItem(placeholder, "")
        for value, text in options:
            combo.addItem(text, value)
        index = combo.findData(selected)
        combo.setCurrentIndex(index if index >= 0 else 0)

    def _render(self) -> None:
        ctrl = self.controller
        draft = ctrl.draft
        self._syncing = True
        try:
            self._fill_combo(
                self._product, "Select a product...",
                [(p.product_id, p.name) for p in ctrl.products], draft.product_id,
            )
            self._fill_combo(
                self._employee, "Select employee...",
                [(e.employee_id, e.label) for e in ctrl.employees], draft.requested_by,
            )
            if self._quantity.text() != draft.quantity:
                self._quantity.setText(draft.quantity)
        finally:
            self._syncing = False

        errors = ctrl.errors
        for field, label in self._error_labels.items():
            message = errors.get(field, "")
            label.setText(message)
            label.setVisible(bool(message))
        self._quantity.setStyleSheet(_ERROR_STYLE if "quantity" in errors else "")
        self._product.setStyleSheet(_ERROR_STYLE if "product_id" in errors else "")
        self._employee.setStyleSheet(_ERROR_STYLE if "requested_by" in errors else "")

        self._submit_btn.setEnabled(ctrl.can_submit)
        self._submit_btn.setText("Submitting Request..." if ctrl.is_submitting else "Submit Restock Request")

        color = {"success": "#16a34a", "error": "#dc2626"}.get(ctrl.status or "", "#333")
        self._status_lbl.setStyleSheet(f"color: {color};")
        self._status_lbl.setText(ctrl.status_message)

    def teardown(self) -> None:
        self.controller.close()
