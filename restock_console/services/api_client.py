"""
HTTP API client for the restock backend.

Usage pattern (the controllers receive the client as a constructor argument):

    from restock_console.services.api_client import get_api_client

    client = get_api_client()

    products, employees = await client.list_reference_data()
    await client.submit_restock(payload)
    history = await client.list_history()
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..core.config import Settings, get_settings
from ..core.errors import NetworkError
from ..core.logging_config import get_logger
from ..core.models import Employee, Product, RestockPayload, RestockRequest

log = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


# -----------------------------
# Main API client
# -----------------------------


class APIClient:
    """
    Reusable HTTP client for the restock backend.

    Use APIClient.get() to obtain the process-wide instance. Every failure,
    whether a non-2xx status, a transport error or an unexpected body, is
    raised as NetworkError so callers have a single type to handle.
    """

    _instance: Optional["APIClient"] = None

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url: str = (base_url or settings.api_base_url).rstrip("/")
        self.timeout: float = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ---------- Singleton helper ----------

    @classmethod
    def get(cls) -> "APIClient":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    # ---------- Internal helpers ----------

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._ensure_client()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            log.error("%s %s request failure: %s", method, path, exc)
            raise NetworkError(f"{method} {path} failed: {exc}", path=path) from exc

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            log.error(
                "%s %s returned %s", method, path, resp.status_code,
                extra={"status_code": resp.status_code},
            )
            raise NetworkError(
                f"{method} {path} failed: {exc.response.status_code} {exc.response.text}",
                status_code=resp.status_code,
                path=path,
            ) from exc
        return resp

    async def _get_list(self, path: str) -> List[Any]:
        resp = await self._request("GET", path)
        try:
            data = resp.json()
        except ValueError as exc:
            raise NetworkError(f"GET {path} returned invalid JSON", path=path) from exc
        if not isinstance(data, list):
            raise NetworkError(f"Expected a list from {path}", path=path)
        return data

    @staticmethod
    def _parse_rows(model: Type[M], rows: List[Any], path: str) -> List[M]:
        try:
            return [model.model_validate(row) for row in rows]
        except ValueError as exc:
            raise NetworkError(f"Malformed payload from {path}", path=path) from exc

    # ---------- Public methods ----------

    async def close(self) -> None:
        """
        Close underlying HTTP connection pool.

        Call this once on app shutdown.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def health(self) -> dict:
        resp = await self._request("GET", "/health")
        return resp.json()

    # ---- Reference data ----

    async def list_products(self) -> List[Product]:
        """GET /api/products"""
        return self._parse_rows(Product, await self._get_list("/api/products"), "/api/products")

    async def list_employees(self) -> List[Employee]:
        """GET /api/employees"""
        return self._parse_rows(Employee, await self._get_list("/api/employees"), "/api/employees")

    async def list_reference_data(self) -> Tuple[List[Product], List[Employee]]:
        """Fetch products and employees concurrently."""
        products, employees = await asyncio.gather(self.list_products(), self.list_employees())
        return products, employees

    # ---- Restock requests ----

    async def submit_restock(self, payload: RestockPayload) -> Any:
        """
        POST /api/restock

        Body: {product_id, name, quantity, requested_by}. Returns the decoded
        response body, or None when the backend sends no JSON.
        """
        resp = await self._request("POST", "/api/restock", json=payload.model_dump())
        log.info(
            "Restock request submitted",
            extra={"product_id": payload.product_id, "quantity": payload.quantity},
        )
        try:
            return resp.json()
        except ValueError:
            return None

    async def list_history(self) -> List[RestockRequest]:
        """GET /api/restock-history, most recent first."""
        rows = await self._get_list("/api/restock-history")
        return self._parse_rows(RestockRequest, rows, "/api/restock-history")

    async def delete_request(self, request_id: str) -> None:
        """DELETE /api/restock-request/{request_id}"""
        await self._request("DELETE", f"/api/restock-request/{request_id}")
        log.info("Restock request deleted", extra={"request_id": request_id})

    async def reset_demo_data(self) -> None:
        """POST /api/demo-data; destructive, regenerates every table."""
        await self._request("POST", "/api/demo-data")
        log.warning("Demo data reset requested")


# -----------------------------
# Convenience wrapper for Qt UI
# -----------------------------


def get_api_client() -> APIClient:
    """Return the process-wide singleton APIClient."""
    return APIClient.get()


# -----------------------------
# Simple CLI test hook
# -----------------------------


async def check_api(client: Optional[APIClient] = None) -> int:
    """
    Fetch reference data once and print the counts.

    Used by ``python -m restock_console --check-api``; returns an exit code.
    """
    client = client or APIClient.get()
    print(f"Base URL: {client.base_url}")
    try:
        products, employees = await client.list_reference_data()
        history = await client.list_history()
    except NetworkError as exc:
        print(f"API check failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await client.close()

    print(f"Products: {len(products)}")
    print(f"Employees: {len(employees)}")
    print(f"Restock requests: {len(history)}")
    return 0
