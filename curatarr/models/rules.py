from typing import Optional

from sqlalchemy import String, Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from curatarr.database import Base


class RuleGroup(Base):
    """A named set of rules feeding exactly one collection."""

    __tablename__ = "rule_groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Media server library ID, empty string when it needs re-assignment
    library_id: Mapped[str] = mapped_column(String(100), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    data_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    collection_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("collections.id", ondelete="SET NULL"), unique=True, nullable=True
    )

    rules: Mapped[list["Rule"]] = relationship(
        back_populates="rule_group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Rule(Base):
    """A single rule; the comparison itself is stored as serialized JSON."""

    __tablename__ = "rules"

    id: Mapped[int] = mapped_column(primary_key=True)
    rule_group_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rule_groups.id", ondelete="CASCADE"), index=True
    )

    # {"operator", "action", "firstVal": [app, prop], "lastVal"?, "customVal"?, "section"}
    rule_json: Mapped[str] = mapped_column(Text)
    section: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    rule_group: Mapped[RuleGroup] = relationship(back_populates="rules")
