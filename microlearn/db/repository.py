"""
Topic repositories implementing the selection engine's storage contract.

SqlTopicRepository works inside a caller-owned SQLAlchemy session so that
one orchestrator call maps onto one transaction:

    with session_scope() as session:
        orchestrator = SelectionOrchestrator(SqlTopicRepository(session))
        orchestrator.complete(topic_id, passed=True, score=85)

InMemoryTopicRepository backs tests and dry runs.
"""

from __future__ import annotations

from copy import deepcopy
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from microlearn.db.models import LearningTopic
from microlearn.selection.models import ImportanceClass, Topic


def to_topic(row: LearningTopic) -> Topic:
    """Convert a stored row to the engine's Topic."""
    return Topic(
        id=row.id,
        name=row.name,
        mastery_percentage=row.mastery_percentage or 0,
        last_practiced=row.last_practiced,
        importance_class=row.importance_class or ImportanceClass.DEFAULT.value,
        selection_weight=row.selection_weight,
        metadata=dict(row.extra or {}),
        scope=row.scope,
    )


class SqlTopicRepository:
    """Topic storage backed by the ``learning_topics`` table."""

    def __init__(self, session: Session):
        self.session = session

    def list_candidates(self, scope: str | None = None) -> list[Topic]:
        """All topics, or only those in ``scope`` when one is given."""
        query = select(LearningTopic).order_by(LearningTopic.created_at, LearningTopic.name)
        if scope is not None:
            query = query.where(LearningTopic.scope == scope)
        return [to_topic(row) for row in self.session.scalars(query)]

    def persist_weight(self, topic_id: str, new_weight: int) -> bool:
        row = self.session.get(LearningTopic, topic_id)
        if row is None:
            logger.warning(f"Cannot persist weight, topic {topic_id} not found")
            return False
        row.selection_weight = new_weight
        self.session.flush()
        return True

    def persist_mastery_and_recency(
        self, topic_id: str, mastery: int, last_practiced: datetime
    ) -> bool:
        row = self.session.get(LearningTopic, topic_id)
        if row is None:
            logger.warning(f"Cannot persist mastery, topic {topic_id} not found")
            return False
        row.mastery_percentage = mastery
        row.last_practiced = last_practiced
        self.session.flush()
        return True

    def add_topic(
        self,
        name: str,
        scope: str | None = None,
        importance_class: str = ImportanceClass.DEFAULT.value,
        mastery_percentage: int = 0,
        selection_weight: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Topic:
        """Insert a topic; mastery is clamped to [0, 100]."""
        row = LearningTopic(
            name=name,
            scope=scope,
            importance_class=importance_class,
            mastery_percentage=max(0, min(100, mastery_percentage)),
            selection_weight=selection_weight,
            extra=metadata or {},
        )
        self.session.add(row)
        self.session.flush()
        logger.debug(f"Added topic {row.id} ({name})")
        return to_topic(row)


class InMemoryTopicRepository:
    """Dictionary-backed topic storage preserving insertion order."""

    def __init__(self, topics: list[Topic] | None = None):
        self._topics: dict[str, Topic] = {t.id: deepcopy(t) for t in topics or []}

    def list_candidates(self, scope: str | None = None) -> list[Topic]:
        return [
            deepcopy(t) for t in self._topics.values() if scope is None or t.scope == scope
        ]

    def get(self, topic_id: str) -> Topic | None:
        topic = self._topics.get(topic_id)
        return deepcopy(topic) if topic is not None else None

    def persist_weight(self, topic_id: str, new_weight: int) -> bool:
        topic = self._topics.get(topic_id)
        if topic is None:
            return False
        topic.selection_weight = new_weight
        return True

    def persist_mastery_and_recency(
        self, topic_id: str, mastery: int, last_practiced: datetime
    ) -> bool:
        topic = self._topics.get(topic_id)
        if topic is None:
            return False
        topic.mastery_percentage = mastery
        topic.last_practiced = last_practiced
        return True
