from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from curatarr.database import Base


class Connection(Base):
    """Stores connection settings for Radarr and Sonarr."""

    __tablename__ = "connections"

    id: Mapped[int] = mapped_column(primary_key=True)
    service: Mapped[str] = mapped_column(String(50), unique=True)  # 'radarr' or 'sonarr'
    url: Mapped[str] = mapped_column(String(500))
    api_key: Mapped[str] = mapped_column(String(500))
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
