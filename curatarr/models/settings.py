from typing import Optional

from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from curatarr.database import Base


class AppSettings(Base):
    """Stores application settings (singleton row)."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(primary_key=True)

    # 'plex', 'jellyfin' or NULL on a fresh install
    media_server_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Plex credentials
    plex_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    plex_hostname: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    plex_port: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    plex_ssl: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    plex_auth_token: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Jellyfin credentials
    jellyfin_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    jellyfin_api_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    jellyfin_user_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    jellyfin_server_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Companion services, kept across media server switches
    seerr_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    seerr_api_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tautulli_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tautulli_api_key: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
