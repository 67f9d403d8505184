"""
Tests for the runtime settings cache.
"""
import pytest
from sqlalchemy import select

from curatarr.config import (
    RuntimeSettings,
    load_settings_from_db,
    runtime_settings,
    save_media_server_credentials,
)
from curatarr.models import AppSettings
from tests.factories import JELLYFIN_CREDENTIALS, PLEX_CREDENTIALS


class TestRuntimeSettings:
    def test_empty(self):
        config = RuntimeSettings()
        assert config.media_server_type is None
        assert not config.is_configured("plex")

    def test_stored_type_wins(self):
        config = RuntimeSettings()
        config.apply(AppSettings(media_server_type="jellyfin", **PLEX_CREDENTIALS))
        assert config.media_server_type == "jellyfin"

    def test_inferred_from_single_credential_block(self):
        """Legacy installs without a stored type use whichever server is configured."""
        config = RuntimeSettings()
        config.apply(AppSettings(**PLEX_CREDENTIALS))
        assert config.media_server_type == "plex"

    def test_not_inferred_when_both_configured(self):
        config = RuntimeSettings()
        config.apply(AppSettings(**PLEX_CREDENTIALS, **JELLYFIN_CREDENTIALS))
        assert config.media_server_type is None

    def test_partial_credentials_are_not_configured(self):
        config = RuntimeSettings()
        config.apply(AppSettings(plex_hostname="plex.local"))
        assert not config.is_configured("plex")

    def test_apply_none_resets(self):
        config = RuntimeSettings()
        config.apply(AppSettings(media_server_type="plex", seerr_url="u", seerr_api_key="k"))
        config.apply(None)
        assert config.media_server_type is None
        assert not config.seerr_configured()

    def test_to_dict(self):
        config = RuntimeSettings()
        config.apply(AppSettings(media_server_type="plex", tautulli_url="u", tautulli_api_key="k", **PLEX_CREDENTIALS))
        assert config.to_dict() == {
            "media_server_type": "plex",
            "plex_configured": True,
            "jellyfin_configured": False,
            "seerr_configured": False,
            "tautulli_configured": True,
        }


class TestPersistence:
    async def test_load_without_row(self, session_factory):
        await load_settings_from_db(session_factory)
        assert runtime_settings.media_server_type is None

    async def test_load(self, session_factory, plex_settings_row):
        await load_settings_from_db(session_factory)
        assert runtime_settings.media_server_type == "plex"
        assert runtime_settings.credentials["plex"]["plex_auth_token"] == "plex-token"

    async def test_save_creates_row(self, session_factory):
        """Saving credentials on a fresh install creates the settings row."""
        await save_media_server_credentials("jellyfin", JELLYFIN_CREDENTIALS, session_factory)

        async with session_factory() as session:
            row = (await session.execute(select(AppSettings))).scalar_one()
        assert row.jellyfin_url == JELLYFIN_CREDENTIALS["jellyfin_url"]
        assert row.media_server_type is None
        assert runtime_settings.media_server_type == "jellyfin"

    async def test_save_ignores_other_fields(self, session_factory, plex_settings_row):
        await save_media_server_credentials(
            "plex", {"plex_auth_token": "new-token", "media_server_type": "jellyfin"}, session_factory
        )

        async with session_factory() as session:
            row = (await session.execute(select(AppSettings))).scalar_one()
        assert row.plex_auth_token == "new-token"
        assert row.plex_hostname == PLEX_CREDENTIALS["plex_hostname"]
        assert row.media_server_type == "plex"

    async def test_save_unknown_server(self, session_factory):
        with pytest.raises(ValueError):
            await save_media_server_credentials("emby", {}, session_factory)
