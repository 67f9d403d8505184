from dataclasses import dataclass, field
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/curatarr.db"
    log_level: str = "INFO"
    log_retention_hour: int = 4
    log_retention_minute: int = 0

    class Config:
        env_prefix = "CURATARR_"


settings = Settings()


# Credential columns on the settings row, per media server type
CREDENTIAL_FIELDS: dict[str, tuple[str, ...]] = {
    "plex": ("plex_name", "plex_hostname", "plex_port", "plex_ssl", "plex_auth_token"),
    "jellyfin": ("jellyfin_url", "jellyfin_api_key", "jellyfin_user_id", "jellyfin_server_name"),
}

# Fields that must be set for a credential block to count as configured
REQUIRED_CREDENTIALS: dict[str, tuple[str, ...]] = {
    "plex": ("plex_hostname", "plex_port", "plex_auth_token"),
    "jellyfin": ("jellyfin_url", "jellyfin_api_key"),
}


@dataclass
class RuntimeSettings:
    """In-memory mirror of the singleton settings row."""
    stored_media_server_type: Optional[str] = None
    credentials: dict[str, dict] = field(default_factory=dict)
    seerr_url: Optional[str] = None
    seerr_api_key: Optional[str] = None
    tautulli_url: Optional[str] = None
    tautulli_api_key: Optional[str] = None

    @property
    def media_server_type(self) -> Optional[str]:
        """Active media server; inferred from credentials when none is stored."""
        if self.stored_media_server_type:
            return self.stored_media_server_type

        configured = [
            server_type for server_type in CREDENTIAL_FIELDS
            if self.is_configured(server_type)
        ]
        if len(configured) == 1:
            return configured[0]
        return None

    def is_configured(self, server_type: str) -> bool:
        block = self.credentials.get(server_type, {})
        return all(block.get(name) for name in REQUIRED_CREDENTIALS.get(server_type, ()))

    def seerr_configured(self) -> bool:
        return self.seerr_url is not None and self.seerr_api_key is not None

    def tautulli_configured(self) -> bool:
        return self.tautulli_url is not None and self.tautulli_api_key is not None

    def apply(self, row) -> None:
        """Copy values from an AppSettings row (or reset when there is none)."""
        self.stored_media_server_type = row.media_server_type if row else None
        self.credentials = {
            server_type: {name: getattr(row, name) if row else None for name in names}
            for server_type, names in CREDENTIAL_FIELDS.items()
        }
        self.seerr_url = row.seerr_url if row else None
        self.seerr_api_key = row.seerr_api_key if row else None
        self.tautulli_url = row.tautulli_url if row else None
        self.tautulli_api_key = row.tautulli_api_key if row else None

    def to_dict(self) -> dict:
        return {
            "media_server_type": self.media_server_type,
            "plex_configured": self.is_configured("plex"),
            "jellyfin_configured": self.is_configured("jellyfin"),
            "seerr_configured": self.seerr_configured(),
            "tautulli_configured": self.tautulli_configured(),
        }


runtime_settings = RuntimeSettings()


async def load_settings_from_db(session_factory=None, target: Optional[RuntimeSettings] = None):
    """Reload a runtime settings cache (the global one by default) from the database."""
    from curatarr.database import async_session
    from curatarr.models import AppSettings
    from sqlalchemy import select

    session_factory = session_factory or async_session
    async with session_factory() as session:
        result = await session.execute(select(AppSettings))
        app_settings = result.scalar_one_or_none()

    (target or runtime_settings).apply(app_settings)


async def save_media_server_credentials(server_type: str, values: dict, session_factory=None):
    """Save a media server's credential block to the database."""
    from curatarr.database import async_session
    from curatarr.models import AppSettings
    from sqlalchemy import select

    if server_type not in CREDENTIAL_FIELDS:
        raise ValueError(f"Unknown media server type: {server_type}")

    session_factory = session_factory or async_session
    async with session_factory() as session:
        result = await session.execute(select(AppSettings))
        app_settings = result.scalar_one_or_none()

        if not app_settings:
            app_settings = AppSettings()
            session.add(app_settings)

        for name in CREDENTIAL_FIELDS[server_type]:
            if name in values:
                setattr(app_settings, name, values[name])

        await session.commit()

    await load_settings_from_db(session_factory)
