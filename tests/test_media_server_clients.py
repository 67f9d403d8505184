"""
Tests for the media server clients and the client factory.
"""
import httpx
import pytest

from curatarr.config import RuntimeSettings
from curatarr.services import ArrClient, JellyfinClient, MediaServerFactory, PlexClient
from curatarr.services.media_server import build_client
from tests.factories import JELLYFIN_CREDENTIALS, PLEX_CREDENTIALS


def mock_transport(routes: dict, seen: list):
    """Transport answering from a path -> JSON table and recording requests."""
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path not in routes:
            return httpx.Response(404)
        return httpx.Response(200, json=routes[request.url.path])
    return httpx.MockTransport(handler)


class TestPlexClient:
    """Tests for PlexClient."""

    def test_base_url(self):
        assert PlexClient("plex.local", 32400, "t").base_url == "http://plex.local:32400"
        assert PlexClient("plex.local", 32400, "t", ssl=True).base_url == "https://plex.local:32400"
        assert PlexClient("http://10.0.0.2/", 32400, "t").base_url == "http://10.0.0.2:32400"

    async def test_get_libraries(self):
        seen = []
        transport = mock_transport({
            "/library/sections": {"MediaContainer": {"Directory": [
                {"key": 1, "title": "Movies", "type": "movie"},
                {"key": 2, "title": "Shows", "type": "show"},
            ]}},
        }, seen)

        libraries = await PlexClient("plex.local", 32400, "tok", transport=transport).get_libraries()

        assert libraries == [
            {"id": "1", "title": "Movies", "type": "movie"},
            {"id": "2", "title": "Shows", "type": "show"},
        ]
        assert seen[0].headers["X-Plex-Token"] == "tok"

    async def test_get_collections(self):
        seen = []
        transport = mock_transport({
            "/library/sections/3/collections": {"MediaContainer": {"Metadata": [{"ratingKey": "99"}]}},
        }, seen)

        collections = await PlexClient("plex.local", 32400, "tok", transport=transport).get_collections("3")

        assert collections == [{"ratingKey": "99"}]

    async def test_error_status_raises(self):
        client = PlexClient("plex.local", 32400, "tok", transport=mock_transport({}, []))
        with pytest.raises(httpx.HTTPStatusError):
            await client.test_connection()


class TestJellyfinClient:
    """Tests for JellyfinClient."""

    async def test_get_libraries(self):
        seen = []
        transport = mock_transport({
            "/Library/VirtualFolders": [
                {"ItemId": "abc", "Name": "Movies", "CollectionType": "movies"},
            ],
        }, seen)

        client = JellyfinClient("http://jellyfin.local:8096/", "key", transport=transport)
        libraries = await client.get_libraries()

        assert libraries == [{"id": "abc", "title": "Movies", "type": "movies"}]
        assert seen[0].headers["X-Emby-Token"] == "key"

    async def test_get_items_sends_user(self):
        seen = []
        transport = mock_transport({"/Items": {"Items": [{"Id": "1"}]}}, seen)

        client = JellyfinClient("http://jellyfin.local:8096", "key", user_id="u1", transport=transport)
        items = await client.get_items("lib")

        assert items == [{"Id": "1"}]
        params = seen[0].url.params
        assert params["ParentId"] == "lib"
        assert params["UserId"] == "u1"

    async def test_get_collections(self):
        seen = []
        transport = mock_transport({"/Items": {"Items": []}}, seen)

        await JellyfinClient("http://jf", "key", transport=transport).get_collections()

        assert seen[0].url.params["IncludeItemTypes"] == "BoxSet"
        assert "ParentId" not in seen[0].url.params


class TestArrClient:
    async def test_connection(self):
        seen = []
        transport = mock_transport({"/api/v3/system/status": {"version": "5.0"}}, seen)

        status = await ArrClient("http://radarr:7878", "k", transport=transport).test_connection()

        assert status == {"version": "5.0"}
        assert seen[0].headers["X-Api-Key"] == "k"


@pytest.fixture
def configured():
    config = RuntimeSettings()
    config.stored_media_server_type = "plex"
    config.credentials = {
        "plex": dict(PLEX_CREDENTIALS),
        "jellyfin": dict(JELLYFIN_CREDENTIALS),
    }
    return config


class TestMediaServerFactory:
    """Tests for MediaServerFactory."""

    def test_build_client(self, configured):
        assert isinstance(build_client("plex", configured), PlexClient)
        assert isinstance(build_client("jellyfin", configured), JellyfinClient)
        assert build_client("plex", RuntimeSettings()) is None

    def test_defaults_to_active_server(self, configured):
        factory = MediaServerFactory(configured)
        client = factory.get_client()

        assert client.server_type == "plex"
        assert factory.get_client("plex") is client
        assert factory.is_initialized("plex")
        assert not factory.is_initialized("jellyfin")

    def test_no_active_server(self):
        assert MediaServerFactory(RuntimeSettings()).get_client() is None

    def test_uninitialize(self, configured):
        factory = MediaServerFactory(configured)
        first = factory.get_client("plex")

        factory.uninitialize("plex")
        factory.uninitialize("jellyfin")
        factory.uninitialize(None)

        assert not factory.is_initialized("plex")
        assert factory.get_client("plex") is not first
