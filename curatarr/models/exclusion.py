from typing import Optional

from sqlalchemy import String, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from curatarr.database import Base


class Exclusion(Base):
    """A media server item excluded from rule handling."""

    __tablename__ = "exclusions"

    id: Mapped[int] = mapped_column(primary_key=True)
    media_server_id: Mapped[str] = mapped_column(String(100))
    parent: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    type: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # NULL means the exclusion applies to every rule group
    rule_group_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("rule_groups.id", ondelete="CASCADE"), nullable=True
    )
