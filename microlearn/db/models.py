"""
Topic storage model.

A single flat table holding the fields the selection engine reads and
writes. ``scope`` groups sibling topics; redistribution never crosses it.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class LearningTopic(Base):
    """A learner's topic with its mastery, recency and stored selection weight."""

    __tablename__ = "learning_topics"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[str | None] = mapped_column(Text, index=True)
    importance_class: Mapped[str] = mapped_column(Text, default="default")

    mastery_percentage: Mapped[int] = mapped_column(Integer, default=0)
    last_practiced: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    selection_weight: Mapped[int | None] = mapped_column(Integer)

    # "metadata" is reserved on declarative classes
    extra: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_topics_scope_weight", "scope", "selection_weight"),)

    def __repr__(self) -> str:
        return (
            f"<LearningTopic {self.name!r} mastery={self.mastery_percentage} "
            f"weight={self.selection_weight}>"
        )
