"""Restock request endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..dependencies import get_store
from ..schemas import RestockCreate, RestockRead
from ..store import RestockStore, UnknownReferenceError

router = APIRouter(prefix="/api", tags=["restock"])


@router.post("/restock", response_model=RestockRead, status_code=status.HTTP_201_CREATED)
async def create_restock_request(
    payload: RestockCreate,
    store: RestockStore = Depends(get_store),
) -> RestockRead:
    """Record a new restock request."""

    try:
        return await store.add_request(payload)
    except UnknownReferenceError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.get("/restock-history", response_model=list[RestockRead])
async def restock_history(store: RestockStore = Depends(get_store)) -> list[RestockRead]:
    """Return all requests, most recent first."""

    return await store.list_requests()


@router.delete("/restock-request/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_restock_request(
    request_id: str,
    store: RestockStore = Depends(get_store),
) -> Response:
    """Delete a single request."""

    if not await store.delete_request(request_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restock request not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
