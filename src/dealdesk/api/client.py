"""Async HTTP client for the deal-pipeline REST backend.

One httpx.AsyncClient per application, with the AuthInterceptor installed as
event hooks. Every failure leaves this module as an ApiError: error statuses
via ApiError.from_response, transport failures via
ApiError.from_transport_error. Requests are never retried.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from src.dealdesk.api.interceptor import AuthInterceptor
from src.dealdesk.core.errors import ApiError

logger = structlog.get_logger(__name__)


class ApiClient:
    """JSON-over-HTTP client bound to the backend base URL.

    Args:
        base_url: Backend API root, e.g. ``http://localhost:8081/api``.
        interceptor: Auth interceptor providing the request/response hooks.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        interceptor: AuthInterceptor,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            event_hooks=interceptor.event_hooks,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request and return the decoded JSON body (None when empty).

        Raises:
            ApiError: On any error status or transport failure.
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TransportError as e:
            logger.error("api.transport_error", method=method, path=path, error=str(e))
            raise ApiError.from_transport_error(e) from e

        if response.is_error:
            await response.aread()
            error = ApiError.from_response(response)
            logger.warning(
                "api.request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                kind=error.kind.value,
            )
            raise error

        logger.debug("api.request_completed", method=method, path=path, status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
