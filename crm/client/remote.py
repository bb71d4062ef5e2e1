from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from crm.core.logger import logger
from .entities import Customer, CustomerPayload
from .errors import ConflictError, CustomerAPIError, NotFoundError, TransportError


class RemoteCustomerService(Protocol):
    async def fetch_customers(self) -> List[Customer]: ...
    async def fetch_customer(self, customer_id: str) -> Customer: ...
    async def create_customer(self, payload: CustomerPayload) -> Customer: ...
    async def update_customer(self, customer_id: str, payload: CustomerPayload) -> Customer: ...
    async def delete_customer(self, customer_id: str) -> Customer: ...
    async def search_customers(self, query: str) -> List[Customer]: ...


class CustomerAPI:
    """HTTP client for the ``/customers`` REST API.

    Every non-2xx answer and every transport failure is raised as a
    ``CustomerAPIError`` subclass; callers never see raw httpx errors.
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 15,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            yield client

    @staticmethod
    def _error(status_code: int, body: Any, action: str) -> CustomerAPIError:
        if not isinstance(body, dict):
            return TransportError(f"Failed to {action}", status_code)
        message = str(body.get("message") or f"Failed to {action}")
        if status_code == 404:
            return NotFoundError(message, status_code)
        if status_code == 400 and "already exists" in message.lower():
            return ConflictError(message, status_code)
        return CustomerAPIError(message, status_code)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        action: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            async with self._session() as client:
                r = await client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.error("[CustomerAPI] %s %s timed out", method, path)
            raise TransportError(f"Failed to {action}: request timed out") from e
        except httpx.HTTPError as e:
            logger.error("[CustomerAPI] %s %s failed: %s", method, path, e)
            raise TransportError(f"Failed to {action}: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if r.status_code >= 300 or not isinstance(body, dict) or not body.get("success"):
            err = self._error(r.status_code, body, action)
            logger.error("[CustomerAPI] %s %s -> %s: %s", method, path, r.status_code, err.message)
            raise err

        return body.get("data")

    async def fetch_customers(self) -> List[Customer]:
        data = await self._request("GET", "/customers", action="fetch customers")
        return [Customer.from_api(d) for d in data or []]

    async def fetch_customer(self, customer_id: str) -> Customer:
        data = await self._request("GET", f"/customers/{quote(customer_id, safe='')}", action="fetch customer")
        return Customer.from_api(data)

    async def create_customer(self, payload: CustomerPayload) -> Customer:
        data = await self._request("POST", "/customers", action="create customer", json=payload.to_json())
        return Customer.from_api(data)

    async def update_customer(self, customer_id: str, payload: CustomerPayload) -> Customer:
        data = await self._request(
            "PUT",
            f"/customers/{quote(customer_id, safe='')}",
            action="update customer",
            json=payload.to_json(),
        )
        return Customer.from_api(data)

    async def delete_customer(self, customer_id: str) -> Customer:
        data = await self._request("DELETE", f"/customers/{quote(customer_id, safe='')}", action="delete customer")
        return Customer.from_api(data)

    async def search_customers(self, query: str) -> List[Customer]:
        data = await self._request("GET", "/customers/search", action="search customers", params={"query": query})
        return [Customer.from_api(d) for d in data or []]

    async def health(self) -> bool:
        try:
            await self._request("GET", "/health", action="reach server")
        except CustomerAPIError:
            return False
        return True
