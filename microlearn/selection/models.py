"""
Data models for the topic selection engine.

Topics are read from storage per call; the engine decorates them with a
weight breakdown (ScoredTopic), injects one synthetic "create new topic"
candidate per round, and reports weight changes as WeightUpdate records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

CREATE_NEW_TOPIC_ID = "create_new_topic"
CREATE_NEW_TOPIC_NAME = "Create New Topic"


# =============================================================================
# ENUMS
# =============================================================================


class DifficultyBand(str, Enum):
    """Difficulty band inferred from a mastery percentage."""

    BEGINNER = "beginner"  # 0-39%
    INTERMEDIATE = "intermediate"  # 40-79%
    ADVANCED = "advanced"  # 80-100%


class ImportanceClass(str, Enum):
    """Categorical importance tags with a fixed multiplier."""

    FOUNDATION = "foundation"
    CORE = "core"
    SUBJECT = "subject"
    SKILL = "skill"
    DEFAULT = "default"


class LessonType(str, Enum):
    """Kind of lesson a selected candidate calls for."""

    INTRODUCTION = "introduction"  # mastery < 30
    PRACTICE = "practice"  # mastery < 70
    MASTERY = "mastery"  # mastery >= 70
    CREATION = "creation"  # synthetic candidate


# =============================================================================
# TOPICS
# =============================================================================


@dataclass
class Topic:
    """A selectable unit of learning content as read from storage."""

    id: str
    name: str
    mastery_percentage: int = 0
    last_practiced: datetime | None = None
    importance_class: str = ImportanceClass.DEFAULT.value
    selection_weight: int | None = None  # None = no stored weight yet
    metadata: dict[str, Any] = field(default_factory=dict)
    scope: str | None = None

    def __post_init__(self) -> None:
        self.mastery_percentage = max(0, min(100, int(self.mastery_percentage or 0)))
        if self.metadata is None:
            self.metadata = {}


@dataclass
class WeightBreakdown:
    """Each factor that contributed to a candidate's final weight."""

    base: int
    mastery: float = 1.0
    importance: float = 1.0
    recency: float = 1.0
    interest: float = 1.0
    frequency: float = 1.0
    final: int = 0
    new_topic: float | None = None  # only set on the synthetic candidate

    def to_dict(self) -> dict[str, float | int | None]:
        """Convert to dictionary."""
        data: dict[str, float | int | None] = {
            "base": self.base,
            "mastery": self.mastery,
            "importance": self.importance,
            "recency": self.recency,
            "interest": self.interest,
            "frequency": self.frequency,
            "final": self.final,
        }
        if self.new_topic is not None:
            data["new_topic"] = self.new_topic
        return data


@dataclass
class ScoredTopic:
    """A topic plus its computed selection weight."""

    topic: Topic
    weight: int
    breakdown: WeightBreakdown
    is_create_new: bool = False

    @property
    def id(self) -> str:
        return self.topic.id

    @property
    def name(self) -> str:
        return self.topic.name


@dataclass
class CreateNewCandidate:
    """
    Synthetic "author new content" candidate.

    Has no identity in storage and is never persisted or redistributed; its
    weight derives from the aggregate mastery of the whole population.
    """

    weight: int
    breakdown: WeightBreakdown
    is_create_new: bool = True
    id: str = CREATE_NEW_TOPIC_ID
    name: str = CREATE_NEW_TOPIC_NAME


Candidate = Union[ScoredTopic, CreateNewCandidate]


@dataclass
class WeightUpdate:
    """One topic's weight change from a redistribution or reset pass."""

    topic_id: str
    old_weight: int
    new_weight: int

    @property
    def delta(self) -> int:
        return self.new_weight - self.old_weight

    def to_dict(self) -> dict[str, str | int]:
        return {
            "topic_id": self.topic_id,
            "old_weight": self.old_weight,
            "new_weight": self.new_weight,
            "delta": self.delta,
        }


# =============================================================================
# COLLABORATOR INPUTS
# =============================================================================


class UserPreferences(BaseModel):
    """Learner preferences; every missing field is neutral."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    difficulty: DifficultyBand | None = None
    topic: str | None = None
    learning_style: str | None = Field(default=None, alias="learningStyle")


@dataclass(frozen=True)
class AnalysisSignals:
    """Externally supplied analysis: opportunity and content-gap topic ids."""

    opportunities: frozenset[str] = frozenset()
    gaps: frozenset[str] = frozenset()

    @classmethod
    def empty(cls) -> AnalysisSignals:
        return cls()

    @classmethod
    def from_ids(cls, opportunities=None, gaps=None) -> AnalysisSignals:
        return cls(
            opportunities=frozenset(opportunities or ()),
            gaps=frozenset(gaps or ()),
        )


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class WeightStatistics:
    """Observability summary of a candidate set's weights."""

    count: int = 0
    total: int = 0
    mean: int = 0
    minimum: int = 0
    maximum: int = 0
    low: int = 0  # < 50
    normal: int = 0  # 50-150
    high: int = 0  # > 150

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "total": self.total,
            "mean": self.mean,
            "min": self.minimum,
            "max": self.maximum,
            "distribution": {"low": self.low, "normal": self.normal, "high": self.high},
        }


@dataclass
class SelectionResult:
    """Outcome of one selection round."""

    candidate: Candidate
    statistics: WeightStatistics
    difficulty: DifficultyBand
    lesson_type: LessonType
    selected_at: datetime

    @property
    def is_create_new(self) -> bool:
        return self.candidate.is_create_new


@dataclass
class CompletionResult:
    """Outcome of recording one topic completion."""

    topic_id: str
    passed: bool
    score: float | None
    old_mastery: int
    new_mastery: int
    practiced_at: datetime
    weight_updates: list[WeightUpdate] = field(default_factory=list)
