from typing import Optional, Union
import logging

from curatarr.config import RuntimeSettings, runtime_settings
from curatarr.services.jellyfin import JellyfinClient
from curatarr.services.plex import PlexClient

logger = logging.getLogger(__name__)

MediaServerClient = Union[PlexClient, JellyfinClient]


def build_client(server_type: str, config: RuntimeSettings) -> Optional[MediaServerClient]:
    """Build a client from cached credentials, or None if not configured."""
    if not config.is_configured(server_type):
        return None

    creds = config.credentials[server_type]
    if server_type == "plex":
        return PlexClient(
            creds["plex_hostname"],
            creds["plex_port"],
            creds["plex_auth_token"],
            ssl=bool(creds.get("plex_ssl"))
        )
    if server_type == "jellyfin":
        return JellyfinClient(
            creds["jellyfin_url"],
            creds["jellyfin_api_key"],
            user_id=creds.get("jellyfin_user_id")
        )
    return None


class MediaServerFactory:
    """Holds one live client per media server type."""

    def __init__(self, config: Optional[RuntimeSettings] = None):
        self.config = config or runtime_settings
        self._clients: dict[str, MediaServerClient] = {}

    def get_client(self, server_type: Optional[str] = None) -> Optional[MediaServerClient]:
        """Client for ``server_type`` (default: the active media server)."""
        server_type = server_type or self.config.media_server_type
        if not server_type:
            return None

        client = self._clients.get(server_type)
        if client is None:
            client = build_client(server_type, self.config)
            if client is not None:
                self._clients[server_type] = client
                logger.info(f"Initialized {server_type} client")
        return client

    def is_initialized(self, server_type: str) -> bool:
        return server_type in self._clients

    def uninitialize(self, server_type: Optional[str]):
        """Release the live client for a media server type."""
        if server_type and self._clients.pop(server_type, None) is not None:
            logger.info(f"Uninitialized {server_type} client")


# Global factory instance
media_server_factory = MediaServerFactory()
