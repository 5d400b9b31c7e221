"""Pydantic schemas used across the demo API."""
from pydantic import BaseModel, Field


class ProductRead(BaseModel):
    """Product reference row."""

    product_id: str
    name: str


class EmployeeRead(BaseModel):
    """Employee reference row."""

    employee_id: str
    name: str
    role: str


class RestockCreate(BaseModel):
    """Payload sent by the request form; ``name`` is the product name."""

    product_id: str = Field(min_length=1)
    name: str = ""
    quantity: int = Field(gt=0)
    requested_by: str = Field(min_length=1)


class RestockRead(BaseModel):
    """A stored restock request with the joined display names."""

    request_id: str
    product_id: str
    product_name: str
    quantity: int
    requested_by: str
    requested_by_name: str
    timestamp: str


class DemoDataResult(BaseModel):
    """Summary returned after the demo tables are regenerated."""

    products: int
    employees: int
    requests: int
