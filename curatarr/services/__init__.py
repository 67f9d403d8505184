from curatarr.services.arr import ArrClient
from curatarr.services.jellyfin import JellyfinClient
from curatarr.services.plex import PlexClient
from curatarr.services.media_server import MediaServerFactory, media_server_factory

__all__ = [
    "ArrClient",
    "JellyfinClient",
    "PlexClient",
    "MediaServerFactory",
    "media_server_factory"
]
