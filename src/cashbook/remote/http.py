"""HTTP remote snapshot store."""

import logging
from typing import Any, Optional

import httpx

from cashbook.domain.errors import SyncTransportError
from cashbook.remote.base import RemoteStore

logger = logging.getLogger(__name__)


class HttpRemoteStore(RemoteStore):
    """Remote store speaking a small REST protocol.

    ``GET {base_url}/snapshots/{key}`` returns the payload (404 when absent)
    and ``PUT {base_url}/snapshots/{key}`` replaces it.

    Usage:
        store = HttpRemoteStore("https://sync.example.com/api", token="...")
        payload = await store.fetch("users/abc")
        await store.close()
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Service root URL
            token: Optional bearer token
            timeout: HTTP request timeout (seconds)
            transport: Custom httpx transport (used by tests)
        """
        if not base_url:
            raise ValueError("base_url is required")

        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the HTTP client (lazy initialization)."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch(self, key: str) -> Optional[dict[str, Any]]:
        client = await self._get_client()
        try:
            response = await client.get(f"/snapshots/{key}")
        except httpx.HTTPError as e:
            raise SyncTransportError(f"GET {key} failed: {e}") from e

        if response.status_code == 404:
            return None
        self._raise_for_status(response, "GET", key)

        try:
            payload = response.json()
        except ValueError as e:
            raise SyncTransportError(f"GET {key} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise SyncTransportError(f"GET {key} returned {type(payload).__name__}, not an object")
        return payload

    async def store(self, key: str, payload: dict[str, Any]) -> None:
        client = await self._get_client()
        try:
            response = await client.put(f"/snapshots/{key}", json=payload)
        except httpx.HTTPError as e:
            raise SyncTransportError(f"PUT {key} failed: {e}") from e
        self._raise_for_status(response, "PUT", key)
        logger.debug("PUT %s -> %d", key, response.status_code)

    @staticmethod
    def _raise_for_status(response: httpx.Response, method: str, key: str) -> None:
        if response.status_code in (401, 403):
            raise SyncTransportError(f"{method} {key} rejected: not authorized")
        if response.status_code >= 400:
            raise SyncTransportError(f"{method} {key} failed with HTTP {response.status_code}")
