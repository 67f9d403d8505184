import httpx
from typing import Optional
import logging

logger = logging.getLogger(__name__)

ARR_SERVICES = ("radarr", "sonarr")


class ArrClient:
    """Minimal client for Radarr and Sonarr (both expose the v3 API)."""

    def __init__(self, url: str, api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = url.rstrip("/")
        self.api_key = api_key
        self.transport = transport
        self.headers = {
            "X-Api-Key": api_key,
            "Content-Type": "application/json"
        }

    async def test_connection(self) -> dict:
        """Test the connection and return system status."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.get(
                f"{self.base_url}/api/v3/system/status",
                headers=self.headers,
                timeout=10.0
            )
            response.raise_for_status()
            return response.json()
