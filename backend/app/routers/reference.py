"""Product and employee reference endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_store
from ..schemas import EmployeeRead, ProductRead
from ..store import RestockStore

router = APIRouter(prefix="/api", tags=["reference"])


@router.get("/products", response_model=list[ProductRead])
async def list_products(store: RestockStore = Depends(get_store)) -> list[ProductRead]:
    """Return every product that can be restocked."""

    return list(store.products)


@router.get("/employees", response_model=list[EmployeeRead])
async def list_employees(store: RestockStore = Depends(get_store)) -> list[EmployeeRead]:
    """Return every employee who may raise a request."""

    return list(store.employees)
