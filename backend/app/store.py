"""In-memory tables backing the demo API."""
from __future__ import annotations

import asyncio
import random
import uuid
from datetime import datetime, timedelta

from .schemas import EmployeeRead, ProductRead, RestockCreate, RestockRead

DEMO_PRODUCTS = [
    ProductRead(product_id="uuid-thermal-printer", name="Thermal Printer"),
    ProductRead(product_id="uuid-shipping-labels", name="Shipping Labels"),
    ProductRead(product_id="uuid-packing-tape", name="Packing Tape"),
]

DEMO_EMPLOYEES = [
    EmployeeRead(employee_id="uuid-vivian", name="Vivian Shang", role="Inventory Manager"),
    EmployeeRead(employee_id="uuid-alice", name="Alice Powers", role="Sales Rep"),
    EmployeeRead(employee_id="uuid-jason", name="Jason Wu", role="Coordinator"),
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class UnknownReferenceError(LookupError):
    """Raised when a payload points at a product or employee that does not exist."""


class RestockStore:
    """Products, employees and restock requests for a single demo tenant."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.products: list[ProductRead] = list(DEMO_PRODUCTS)
        self.employees: list[EmployeeRead] = list(DEMO_EMPLOYEES)
        self._requests: list[RestockRead] = []

    async def list_requests(self) -> list[RestockRead]:
        """Return requests most recent first."""

        async with self._lock:
            return list(reversed(self._requests))

    async def add_request(self, payload: RestockCreate, *, when: datetime | None = None) -> RestockRead:
        async with self._lock:
            return self._add(payload, when or datetime.now())

    def _add(self, payload: RestockCreate, when: datetime) -> RestockRead:
        product = next((p for p in self.products if p.product_id == payload.product_id), None)
        employee = next((e for e in self.employees if e.employee_id == payload.requested_by), None)
        if product is None:
            raise UnknownReferenceError(f"Unknown product {payload.product_id}")
        if employee is None:
            raise UnknownReferenceError(f"Unknown employee {payload.requested_by}")

        row = RestockRead(
            request_id=str(uuid.uuid4()),
            product_id=product.product_id,
            product_name=payload.name or product.name,
            quantity=payload.quantity,
            requested_by=employee.employee_id,
            requested_by_name=employee.name,
            timestamp=when.strftime(TIMESTAMP_FORMAT),
        )
        self._requests.append(row)
        return row

    async def delete_request(self, request_id: str) -> bool:
        async with self._lock:
            for index, row in enumerate(self._requests):
                if row.request_id == request_id:
                    del self._requests[index]
                    return True
            return False

    async def reset(self, request_count: int, seed: int | None = None) -> int:
        """Clear every table and regenerate demo rows; returns the request count."""

        rng = random.Random(seed)
        async with self._lock:
            self.products = list(DEMO_PRODUCTS)
            self.employees = list(DEMO_EMPLOYEES)
            self._requests = []
            start = datetime.now() - timedelta(hours=request_count)
            for offset in range(request_count):
                product = rng.choice(self.products)
                employee = rng.choice(self.employees)
                payload = RestockCreate(
                    product_id=product.product_id,
                    name=product.name,
                    quantity=rng.randint(1, 50),
                    requested_by=employee.employee_id,
                )
                self._add(payload, start + timedelta(hours=offset))
            return len(self._requests)


store = RestockStore()
