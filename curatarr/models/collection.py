from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column
from curatarr.database import Base


class Collection(Base):
    """A media server collection managed by a rule group."""

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(primary_key=True)
    library_id: Mapped[str] = mapped_column(String(100), default="")
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    type: Mapped[str] = mapped_column(String(20), default="movie")

    # Backend-specific identifiers, reset when the media server changes
    media_server_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    media_server_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    keep_logs_for_months: Mapped[int] = mapped_column(Integer, default=6)
    add_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


class CollectionMedia(Base):
    """An item currently held in a collection."""

    __tablename__ = "collection_media"

    id: Mapped[int] = mapped_column(primary_key=True)
    collection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("collections.id", ondelete="CASCADE"), index=True
    )
    media_server_id: Mapped[str] = mapped_column(String(100))
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    add_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=False)


class CollectionLog(Base):
    """Activity log entry for a collection."""

    __tablename__ = "collection_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    collection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("collections.id", ondelete="CASCADE"), index=True
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    message: Mapped[str] = mapped_column(Text)
    type: Mapped[int] = mapped_column(Integer, default=0)
