"""HTTP client for the remote API backend."""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from fastapi import Depends, Request

from adminpanel.core.config import settings
from adminpanel.core.errors import NetworkError, RequestError, SessionExpiredError
from adminpanel.core.session import TokenStore, get_token_store

logger = logging.getLogger(__name__)


def _decode_json(response: httpx.Response) -> Any:
    """Parse a JSON body, treating empty or malformed bodies as an empty object."""
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


def _error_message(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    for key in ("error", "message"):
        value = data.get(key)
        if value:
            return str(value)
    return None


class BackendClient:
    """Issue JSON requests to the API backend on behalf of one session.

    The client reads the credential from the token store but never writes it;
    clearing an expired session is left to the caller.
    """

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token_store = token_store
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self, requires_auth: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if requires_auth:
            credential = self.token_store.get()
            if credential:
                headers["Authorization"] = f"Bearer {credential}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        requires_auth: bool = False,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises ``RequestError`` for non-2xx answers, ``SessionExpiredError`` for
        a 401 on an authenticated call and ``NetworkError`` when no answer
        arrives before the timeout.
        """
        url = f"{self.base_url}{path}"
        query = {key: value for key, value in (params or {}).items() if value not in (None, "")}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method.upper(),
                    url,
                    params=query or None,
                    json=body,
                    headers=self._headers(requires_auth),
                )
        except httpx.TimeoutException as exc:
            logger.warning("Backend timeout for %s %s", method.upper(), path)
            raise NetworkError("The server took too long to respond.") from exc
        except httpx.TransportError as exc:
            logger.warning("Backend unreachable for %s %s: %s", method.upper(), path, exc)
            raise NetworkError("Could not reach the server.") from exc

        data = _decode_json(response)

        if response.is_success:
            return data

        detail = _error_message(data)
        message = detail or f"HTTP {response.status_code}"
        if requires_auth and response.status_code == 401:
            raise SessionExpiredError(response.status_code, detail or "Invalid or expired token", detail)

        logger.info("Backend rejected %s %s -> %s", method.upper(), path, response.status_code)
        raise RequestError(response.status_code, message, detail)

    async def get(self, path: str, params: dict[str, Any] | None = None, requires_auth: bool = True) -> Any:
        return await self.request("GET", path, params=params, requires_auth=requires_auth)

    async def post(self, path: str, body: Any = None, requires_auth: bool = True) -> Any:
        return await self.request("POST", path, body=body, requires_auth=requires_auth)

    async def put(self, path: str, body: Any = None, requires_auth: bool = True) -> Any:
        return await self.request("PUT", path, body=body, requires_auth=requires_auth)

    async def delete(self, path: str, requires_auth: bool = True) -> Any:
        return await self.request("DELETE", path, requires_auth=requires_auth)


def get_backend_transport(request: Request) -> httpx.AsyncBaseTransport | None:
    """Transport override hook; ``None`` means a real network transport."""
    return getattr(request.app.state, "backend_transport", None)


def get_backend_client(
    token_store: TokenStore = Depends(get_token_store),
    transport: httpx.AsyncBaseTransport | None = Depends(get_backend_transport),
) -> BackendClient:
    """Dependency returning a gateway client bound to the request's token store."""
    return BackendClient(token_store, transport=transport)


__all__ = ["BackendClient", "get_backend_client", "get_backend_transport"]
