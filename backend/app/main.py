"""FastAPI application entry point for the restock demo API."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import get_settings
from .routers.demo import router as demo_router
from .routers.reference import router as reference_router
from .routers.restock import router as restock_router
from .store import store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the demo tables on startup."""

    settings = get_settings()
    await store.reset(settings.demo_request_count, seed=settings.demo_seed)
    yield


app = FastAPI(title="Restock Demo API", version="0.1.0", lifespan=lifespan)
app.include_router(reference_router)
app.include_router(restock_router)
app.include_router(demo_router)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple readiness probe for uptime checks."""

    return {"status": "ok"}
