"""Topic storage: SQLAlchemy engine/session handling and repositories."""
from microlearn.db.database import configure_engine, get_engine, init_db, session_scope
from microlearn.db.models import Base, LearningTopic
from microlearn.db.repository import InMemoryTopicRepository, SqlTopicRepository, to_topic

__all__ = [
    "Base",
    "LearningTopic",
    "SqlTopicRepository",
    "InMemoryTopicRepository",
    "to_topic",
    "configure_engine",
    "get_engine",
    "init_db",
    "session_scope",
]
