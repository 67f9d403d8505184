import httpx
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class JellyfinClient:
    """Client for interacting with Jellyfin API."""

    server_type = "jellyfin"

    def __init__(
        self,
        url: str,
        api_key: str,
        user_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        self.transport = transport
        self.headers = {
            "X-Emby-Token": api_key,
            "Content-Type": "application/json"
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    async def test_connection(self) -> dict:
        """Test the connection to Jellyfin and return server info."""
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/System/Info",
                headers=self.headers,
                timeout=10.0
            )
            response.raise_for_status()
            return response.json()

    async def get_libraries(self) -> list[dict]:
        """Get all media libraries from Jellyfin."""
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/Library/VirtualFolders",
                headers=self.headers,
                timeout=10.0
            )
            response.raise_for_status()

        return [
            {
                "id": str(lib.get("ItemId", "")),
                "title": lib.get("Name", ""),
                "type": lib.get("CollectionType", "")
            }
            for lib in response.json()
        ]

    async def get_items(self, library_id: str) -> list[dict]:
        """Get all movies and series in a library."""
        params = {
            "ParentId": library_id,
            "IncludeItemTypes": "Movie,Series",
            "Recursive": "true",
            "Fields": "ProviderIds,DateCreated"
        }
        if self.user_id:
            params["UserId"] = self.user_id

        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/Items",
                headers=self.headers,
                params=params,
                timeout=30.0
            )
            response.raise_for_status()
            return response.json().get("Items", [])

    async def get_collections(self, library_id: Optional[str] = None) -> list[dict]:
        """Get box sets (collections), optionally limited to one library."""
        params = {
            "IncludeItemTypes": "BoxSet",
            "Recursive": "true"
        }
        if library_id:
            params["ParentId"] = library_id

        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}/Items",
                headers=self.headers,
                params=params,
                timeout=30.0
            )
            response.raise_for_status()
            return response.json().get("Items", [])
