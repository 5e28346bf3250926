"""Async client for the expense REST API."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from client.filters import FilterState, to_query_params

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
EXPENSES_PATH = "/api/expenses"


class ExpenseApiError(Exception):
    """Raised for any non-2xx response, carrying the server's message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ExpenseApiClient:
    """
    Thin wrapper over httpx.AsyncClient. Each call is one independent request;
    callers re-fetch after a mutation rather than patching local copies.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "ExpenseApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, fallback_message: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ExpenseApiError(f"{fallback_message}: {e}") from e

        if response.is_success:
            return response.json()

        try:
            message = response.json().get("message") or fallback_message
        except ValueError:
            message = fallback_message
        logger.error(f"{method} {path} returned {response.status_code}: {message}")
        raise ExpenseApiError(message, status_code=response.status_code)

    async def get_expenses(self, filters: Optional[FilterState] = None) -> List[Dict[str, Any]]:
        params = to_query_params(filters) if filters else {}
        return await self._request("GET", EXPENSES_PATH, "Failed to fetch expenses", params=params)

    async def get_summary(self, filters: Optional[FilterState] = None) -> Dict[str, Any]:
        params = to_query_params(filters, summary=True) if filters else {}
        return await self._request("GET", f"{EXPENSES_PATH}/summary", "Failed to fetch summary", params=params)

    async def get_expense(self, expense_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{EXPENSES_PATH}/{expense_id}", "Failed to fetch expense")

    async def create_expense(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", EXPENSES_PATH, "Failed to create expense", json=data)

    async def update_expense(self, expense_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"{EXPENSES_PATH}/{expense_id}", "Failed to update expense", json=data)

    async def delete_expense(self, expense_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"{EXPENSES_PATH}/{expense_id}", "Failed to delete expense")
