import httpx
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class PlexClient:
    """Client for interacting with Plex Media Server API."""

    server_type = "plex"

    def __init__(
        self,
        hostname: str,
        port: int,
        auth_token: str,
        ssl: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        hostname = hostname.rstrip("/")
        if "://" not in hostname:
            hostname = f"{'https' if ssl else 'http'}://{hostname}"
        self.base_url = f"{hostname}:{port}"
        self.auth_token = auth_token
        self.transport = transport
        self.headers = {
            "X-Plex-Token": auth_token,
            "Accept": "application/json"
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    async def _get_container(self, path: str, timeout: float = 10.0) -> dict:
        async with self._client() as client:
            response = await client.get(
                f"{self.base_url}{path}",
                headers=self.headers,
                timeout=timeout
            )
            response.raise_for_status()
            return response.json().get("MediaContainer", {})

    async def test_connection(self) -> dict:
        """Test the connection to Plex and return server identity."""
        return await self._get_container("/identity")

    async def get_libraries(self) -> list[dict]:
        """Get all library sections from Plex."""
        container = await self._get_container("/library/sections")
        return [
            {
                "id": str(section.get("key", "")),
                "title": section.get("title", ""),
                "type": section.get("type", "")
            }
            for section in container.get("Directory", [])
        ]

    async def get_items(self, library_id: str) -> list[dict]:
        """Get all items in a library section."""
        container = await self._get_container(f"/library/sections/{library_id}/all", timeout=30.0)
        return container.get("Metadata", [])

    async def get_collections(self, library_id: str) -> list[dict]:
        """Get collections in a library section."""
        container = await self._get_container(f"/library/sections/{library_id}/collections", timeout=30.0)
        return container.get("Metadata", [])
