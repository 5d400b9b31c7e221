"""Restock request form: reference data, validation and submission."""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Literal, Optional

from PySide6.QtCore import QObject, Signal

from ...core.errors import NetworkError, ValidationError
from ...core.events import RefreshBus, RefreshEvent, Subscription
from ...core.logging_config import get_logger
from ...core.models import Employee, Notice, Product, RestockDraft, RestockPayload
from ...core.polling import BackgroundTasks
from ...services.api_client import APIClient
from ..admin.controller import RESET_REASON

log = get_logger(__name__)

FIELDS = ("product_id", "quantity", "requested_by")

ERROR_MESSAGES: Dict[str, str] = {
    "product_id": "Please select a product",
    "quantity": "Quantity must be greater than 0",
    "requested_by": "Please select who is requesting",
}

SUCCESS_MESSAGE = "Request submitted successfully! The dashboard will update shortly."
FAILURE_MESSAGE = "Submission failed. Please try again."

SubmitStatus = Optional[Literal["success", "error"]]


def parse_quantity(raw: str) -> Optional[int]:
    """Return the quantity as a positive int, or None if it is not one."""

    text = (raw or "").strip()
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if value > 0 else None


def validate_draft(draft: RestockDraft) -> Dict[str, str]:
    """Return a field-keyed error map; empty when the draft can be sent."""

    errors: Dict[str, str] = {}
    if not draft.product_id:
        errors["product_id"] = ERROR_MESSAGES["product_id"]
    if parse_quantity(draft.quantity) is None:
        errors["quantity"] = ERROR_MESSAGES["quantity"]
    if not draft.requested_by:
        errors["requested_by"] = ERROR_MESSAGES["requested_by"]
    return errors


class SubmissionController(QObject):
    """Validates and submits new restock requests."""

    changed = Signal()

    def __init__(
        self,
        client: APIClient,
        bus: RefreshBus,
        *,
        notify: Optional[Callable[[Notice], None]] = None,
        success_notice_seconds: float = 3.0,
    ) -> None:
        super().__init__()
        self._client = client
        self._bus = bus
        self._notify = notify or (lambda notice: None)
        self._success_notice_seconds = success_notice_seconds

        self._draft = RestockDraft()
        self._errors: Dict[str, str] = {}
        self._products: List[Product] = []
        self._employees: List[Employee] = []
        self._is_submitting = False
        self._status: SubmitStatus = None
        self._status_clear: Optional[asyncio.TimerHandle] = None
        self._subscription: Optional[Subscription] = None
        self._tasks = BackgroundTasks()

    # ---- state ----
    @property
    def draft(self) -> RestockDraft:
        return self._draft.model_copy()

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def employees(self) -> List[Employee]:
        return list(self._employees)

    @property
    def is_submitting(self) -> bool:
        return self._is_submitting

    @property
    def can_submit(self) -> bool:
        return not self._is_submitting

    @property
    def background_tasks(self) -> BackgroundTasks:
        return self._tasks

    @property
    def status(self) -> SubmitStatus:
        return self._status

    @property
    def status_message(self) -> str:
        if self._status == "success":
            return SUCCESS_MESSAGE
        if self._status == "error":
            return FAILURE_MESSAGE
        return ""

    # ---- reference data ----
    def mount(self) -> asyncio.Task:
        """Kick off the one-time reference data load for a freshly shown form."""
        return self._tasks.spawn(self.load_reference_data(), name="restock-form-reference")

    async def load_reference_data(self) -> bool:
        """Load the product and employee dropdowns; lists stay empty on failure."""

        try:
            products, employees = await self._client.list_reference_data()
        except NetworkError as exc:
            log.error("Failed to fetch dropdown data: %s", exc)
            self._notify(Notice(level="error", message="Could not load products and employees."))
            return False
        self._products = list(products)
        self._employees = list(employees)
        self.changed.emit()
        return True

    def attach(self) -> None:
        """Reload the dropdowns whenever the demo data set is regenerated."""
        if self._subscription is None:
            self._subscription = self._bus.subscribe(self._on_refresh_event)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def _on_refresh_event(self, event: RefreshEvent) -> None:
        if event.reason == RESET_REASON:
            self._tasks.spawn(self.load_reference_data(), name=f"restock-form-reload-{event.token}")

    def set_reference_data(self, products: List[Product], employees: List[Employee]) -> None:
        self._products = list(products)
        self._employees = list(employees)
        self.changed.emit()

    # ---- editing ----
    def set_field(self, name: str, value: str) -> None:
        """Update one field and clear its error, if any."""

        if name not in FIELDS:
            raise KeyError(name)
        self._draft = self._draft.model_copy(update={name: value or ""})
        if name in self._errors:
            del self._errors[name]
        self.changed.emit()

    def validate(self) -> Dict[str, str]:
        self._errors = validate_draft(self._draft)
        self.changed.emit()
        return dict(self._errors)

    def build_payload(self) -> RestockPayload:
        """Turn the draft into a payload, denormalising the product name."""

        errors = validate_draft(self._draft)
        if errors:
            raise ValidationError(errors)
        name = next((p.name for p in self._products if p.product_id == self._draft.product_id), "")
        return RestockPayload(
            product_id=self._draft.product_id,
            name=name,
            quantity=parse_quantity(self._draft.quantity),
            requested_by=self._draft.requested_by,
        )

    # ---- submit ----
    async def submit(self) -> bool:
        """Validate, send, and on success reset the form and publish a refresh."""

        if self._is_submitting:
            return False
        if self.validate():
            return False
        payload = self.build_payload()

        self._is_submitting = True
        self._set_status(None)
        try:
            await self._client.submit_restock(payload)
        except NetworkError as exc:
            log.error("Submission failed: %s", exc, extra={"product_id": payload.product_id})
            # Keep what the user typed so they can retry.
            self._set_status("error")
            return False
        finally:
            self._is_submitting = False
            self.changed.emit()

        self._draft = RestockDraft()
        self._errors = {}
        self._set_status("success")
        self._schedule_status_clear()
        self._bus.publish(reason="request_submitted", origin="restock_form")
        return True

    def _set_status(self, status: SubmitStatus) -> None:
        if self._status_clear is not None:
            self._status_clear.cancel()
            self._status_clear = None
        self._status = status
        self.changed.emit()

    def _schedule_status_clear(self) -> None:
        loop = asyncio.get_running_loop()
        self._status_clear = loop.call_later(self._success_notice_seconds, self._clear_success)

    def _clear_success(self) -> None:
        self._status_clear = None
        if self._status == "success":
            self._status = None
            self.changed.emit()

    def close(self) -> None:
        self.detach()
        if self._status_clear is not None:
            self._status_clear.cancel()
            self._status_clear = None
        self._tasks.cancel_all()
