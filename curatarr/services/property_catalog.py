"""
Rule property catalogs.

Each media server application exposes a fixed list of properties that rules
can reference as ``[application_id, property_id]``. Property IDs only mean
something relative to their application. Two properties in different
applications that share a ``name`` describe the same concept, even when their
IDs differ. ``fallback_name`` names a different property to use as a degraded
substitute when the target application lacks the concept entirely.
"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class Application(IntEnum):
    """Application IDs as stored in rule JSON. 5 is retired."""
    PLEX = 0
    RADARR = 1
    SONARR = 2
    SEERR = 3
    TAUTULLI = 4
    JELLYFIN = 6


class MediaServerType(str, Enum):
    PLEX = "plex"
    JELLYFIN = "jellyfin"


class UnknownMediaServerError(ValueError):
    """Raised for a media server type or application without a catalog."""


@dataclass(frozen=True)
class PropertyDefinition:
    id: int
    name: str
    fallback_name: Optional[str] = None


def _props(*entries) -> tuple[PropertyDefinition, ...]:
    return tuple(PropertyDefinition(*entry) for entry in entries)


# Properties shared by Plex and Jellyfin at identical IDs
_SHARED_PROPERTIES = (
    (0, "addDate"),
    (1, "seenBy"),
    (2, "releaseDate"),
    (3, "rating_user"),
    (4, "people"),
    (5, "viewCount"),
    (6, "collections"),
    (7, "lastViewedAt"),
    (8, "fileVideoResolution"),
    (9, "fileBitrate"),
    (10, "fileVideoCodec"),
    (11, "genre"),
    (12, "sw_allEpisodesSeenBy"),
    (13, "sw_lastWatched"),
    (14, "sw_episodes"),
    (15, "sw_viewedEpisodes"),
    (16, "sw_lastEpisodeAddedAt"),
    (17, "sw_amountOfViews"),
    (18, "sw_watchers"),
    (19, "collection_names"),
    (20, "playlists"),
    (21, "playlist_names"),
    (22, "rating_critics"),
    (23, "rating_audience"),
    (24, "labels"),
    (25, "sw_collections_including_parent"),
    (26, "sw_collection_names_including_parent"),
    (27, "sw_lastEpisodeAiredAt"),
    (29, "sw_seasonLastEpisodeAiredAt"),
    (31, "rating_imdb"),
    (32, "rating_rottenTomatoesCritic"),
    (33, "rating_rottenTomatoesAudience"),
    (34, "rating_tmdb"),
    (35, "rating_imdbShow"),
    (36, "rating_rottenTomatoesCriticShow"),
    (37, "rating_rottenTomatoesAudienceShow"),
    (38, "rating_tmdbShow"),
)

PLEX_PROPERTIES = _props(
    *_SHARED_PROPERTIES,
    # Plex-only: watchlists
    (28, "watchlist_isListedByUsers"),
    (30, "watchlist_isWatchlisted"),
    # Plex-only: smart collections, degraded to regular collections elsewhere
    (39, "collectionsIncludingSmart", "collections"),
    (40, "sw_collections_including_parent_and_smart", "sw_collections_including_parent"),
    (41, "sw_collection_names_including_parent_and_smart", "sw_collection_names_including_parent"),
    (42, "collection_names_including_smart", "collection_names"),
)

JELLYFIN_PROPERTIES = _props(*_SHARED_PROPERTIES)

PROPERTY_CATALOGS: dict[int, tuple[PropertyDefinition, ...]] = {
    Application.PLEX: PLEX_PROPERTIES,
    Application.JELLYFIN: JELLYFIN_PROPERTIES,
}

MEDIA_SERVER_APPLICATIONS: dict[MediaServerType, Application] = {
    MediaServerType.PLEX: Application.PLEX,
    MediaServerType.JELLYFIN: Application.JELLYFIN,
}


def normalize_server_type(server_type) -> str:
    """'plex' / 'jellyfin' for an enum member or string; rejects anything else."""
    try:
        return MediaServerType(server_type).value
    except ValueError:
        raise UnknownMediaServerError(f"Unknown media server type: {server_type}")


def get_application_id(server_type) -> Application:
    """Map a media server type (enum or its string value) to its application ID."""
    try:
        return MEDIA_SERVER_APPLICATIONS[MediaServerType(server_type)]
    except (ValueError, KeyError):
        raise UnknownMediaServerError(f"Unknown media server type: {server_type}")


def get_catalog(app: int) -> tuple[PropertyDefinition, ...]:
    try:
        return PROPERTY_CATALOGS[app]
    except KeyError:
        raise UnknownMediaServerError(f"No property catalog for application {app}")


def is_media_server_application(app) -> bool:
    if isinstance(app, bool) or not isinstance(app, int):
        return False
    return app in PROPERTY_CATALOGS


def has_property(app: int, property_id: int) -> bool:
    return any(prop.id == property_id for prop in PROPERTY_CATALOGS.get(app, ()))


def get_property_name(app: int, property_id: int) -> str:
    """Human-readable property name, for logs and skipped-rule details."""
    for prop in PROPERTY_CATALOGS.get(app, ()):
        if prop.id == property_id:
            return prop.name
    return f"property_{property_id}"
