"""
HTTP client for the remote entry API.

Talks to the REST resource served under /api/entries:
- GET    /api/entries?type=&limit=&offset=
- GET    /api/entries/search?q=&type=
- POST   /api/entries           -> 201 + entry
- PUT    /api/entries/{id}      -> 200 + entry
- DELETE /api/entries/{id}      -> 204
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from ..exceptions import AuthenticationError, RemoteAPIError, StorageConnectionError
from ..models import EntryData, EntryType
from ..storage.base import StorageConfig
from .base import RemoteEntryAPI

logger = logging.getLogger(__name__)

# Limit used when a caller asks for "everything" (cache refresh)
FULL_LISTING_LIMIT = 10000


class HttpEntryAPI(RemoteEntryAPI):
    """aiohttp implementation of RemoteEntryAPI.

    Example:
        >>> api = HttpEntryAPI("https://journal.example.com", token="abc")
        >>> entries = await api.list(EntryType.NOTE, limit=30)
        >>> await api.close()
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server base URL (without /api)
            token: Optional bearer token
            timeout: Total request timeout in seconds
            session: Optional externally owned client session
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: StorageConfig) -> HttpEntryAPI:
        """Create a client from storage configuration."""
        if not config.api_base_url:
            raise ValueError("api_base_url is required for the HTTP entry API")
        return cls(
            base_url=config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_session()

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(),
            ) as response:
                if response.status in (401, 403):
                    raise AuthenticationError(url, await response.text())
                if response.status >= 400:
                    raise RemoteAPIError(method, path, response.status, await response.text())
                if response.status == 204:
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise StorageConnectionError(url, e) from e

    async def create(self, entry: EntryData) -> int:
        data = await self._request(
            "POST", "/api/entries", json_body=entry.to_api(include_identity=False)
        )
        logger.debug(f"Created entry on server: {data['id']}")
        return int(data["id"])

    async def update(self, entry_id: int, fields: dict[str, Any]) -> None:
        await self._request("PUT", f"/api/entries/{entry_id}", json_body=fields)
        logger.debug(f"Updated entry on server: {entry_id}")

    async def delete(self, entry_id: int) -> None:
        await self._request("DELETE", f"/api/entries/{entry_id}")
        logger.debug(f"Deleted entry on server: {entry_id}")

    async def list(
        self,
        entry_type: EntryType | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[EntryData]:
        params: dict[str, Any] = {
            "limit": limit if limit is not None else FULL_LISTING_LIMIT,
            "offset": offset,
        }
        if entry_type is not None:
            params["type"] = entry_type.value
        data = await self._request("GET", "/api/entries", params=params)
        return [EntryData.from_api(item) for item in data or []]

    async def search(
        self,
        query: str,
        entry_type: EntryType | None = None,
    ) -> list[EntryData]:
        params: dict[str, Any] = {"q": query}
        if entry_type is not None:
            params["type"] = entry_type.value
        data = await self._request("GET", "/api/entries/search", params=params)
        return [EntryData.from_api(item) for item in data or []]

    async def close(self) -> None:
        """Close the client session if we own it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
