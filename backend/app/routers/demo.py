"""Demo data regeneration endpoint."""
from fastapi import APIRouter, Depends

from ..config import Settings
from ..dependencies import get_app_settings, get_store
from ..schemas import DemoDataResult
from ..store import RestockStore

router = APIRouter(prefix="/api", tags=["demo"])


@router.post("/demo-data", response_model=DemoDataResult)
async def generate_demo_data(
    store: RestockStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> DemoDataResult:
    """Clear every table and regenerate the demo data set."""

    requests = await store.reset(settings.demo_request_count, seed=settings.demo_seed)
    return DemoDataResult(
        products=len(store.products),
        employees=len(store.employees),
        requests=requests,
    )
