"""Pydantic models for the data the client reads and sends."""

from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Reference product row from /api/products."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    product_id: str
    name: str


class Employee(BaseModel):
    """Reference employee row from /api/employees."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    employee_id: str
    name: str
    role: str = ""

    @property
    def label(self) -> str:
        return f"{self.name} - {self.role}" if self.role else self.name


class RestockRequest(BaseModel):
    """A submitted request as returned by /api/restock-history.

    Never mutated in place; the history cache only adds or drops whole rows.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    request_id: str
    product_id: str = ""
    product_name: str = ""
    quantity: int
    requested_by: str = ""
    requested_by_name: str = ""
    timestamp: str = ""


class RestockDraft(BaseModel):
    """Raw form state, exactly as typed or selected by the user."""

    product_id: str = ""
    quantity: str = ""
    requested_by: str = ""


class RestockPayload(BaseModel):
    """Body for POST /api/restock; ``name`` is the denormalised product name."""

    product_id: str
    name: str
    quantity: int = Field(gt=0)
    requested_by: str


class DeletionState(str, enum.Enum):
    """Per-row state of an optimistic delete."""

    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


NoticeLevel = Literal["info", "success", "error"]


class Notice(BaseModel):
    """A message a controller wants shown to the user."""

    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    message: str
    transient: bool = False
