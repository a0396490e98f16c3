"""
Weight Calculator.

Combines each topic's stored base weight with the Score Model factors into a
clamped integer selection weight, then appends the synthetic "create new
topic" candidate. Input order is preserved and no topic is ever dropped; a
topic with weight 0 stays in the candidate set.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from loguru import logger

from config import get_settings

from . import score_model
from .errors import InvalidWeightRange
from .models import (
    AnalysisSignals,
    Candidate,
    CreateNewCandidate,
    ScoredTopic,
    Topic,
    UserPreferences,
    WeightBreakdown,
)


@dataclass(frozen=True)
class WeightBounds:
    """Inclusive [min_weight, max_weight] range for selection weights."""

    min_weight: int = 0
    max_weight: int = 200

    def __post_init__(self) -> None:
        if self.min_weight > self.max_weight:
            raise InvalidWeightRange(self.min_weight, self.max_weight)

    @classmethod
    def from_settings(cls) -> WeightBounds:
        settings = get_settings()
        return cls(min_weight=settings.min_weight, max_weight=settings.max_weight)

    def clamp(self, weight: int) -> int:
        return max(self.min_weight, min(self.max_weight, weight))

    def contains(self, weight: int) -> bool:
        return self.min_weight <= weight <= self.max_weight


class WeightCalculator:
    """
    Computes selection weights for a topic population.

    Usage:
        calculator = WeightCalculator()
        candidates = calculator.compute_weights(topics, preferences, signals)
        # candidates[-1] is always the synthetic CreateNewCandidate
    """

    def __init__(
        self,
        default_weight: int | None = None,
        bounds: WeightBounds | None = None,
    ):
        settings = get_settings()
        self.default_weight = settings.default_weight if default_weight is None else default_weight
        self.bounds = bounds or WeightBounds.from_settings()

    def base_weight(self, topic: Topic) -> int:
        """Stored weight (clamped) or the default when none is stored yet."""
        if topic.selection_weight is None:
            return self.default_weight
        if not self.bounds.contains(topic.selection_weight):
            logger.warning(
                f"Stored weight {topic.selection_weight} for topic {topic.id} "
                f"outside [{self.bounds.min_weight}, {self.bounds.max_weight}], clamping"
            )
        return self.bounds.clamp(topic.selection_weight)

    def score_topic(
        self,
        topic: Topic,
        preferences: UserPreferences | None = None,
        signals: AnalysisSignals | None = None,
        now: datetime | None = None,
    ) -> ScoredTopic:
        """Compute one topic's final weight and its breakdown."""
        base = self.base_weight(topic)
        breakdown = WeightBreakdown(
            base=base,
            mastery=score_model.mastery_factor(topic.mastery_percentage),
            importance=score_model.importance_factor(topic),
            recency=score_model.recency_factor(topic.last_practiced, now),
            interest=score_model.interest_factor(topic, preferences),
            frequency=score_model.frequency_bias(topic, signals),
        )

        raw = (
            base
            * breakdown.mastery
            * breakdown.importance
            * breakdown.recency
            * breakdown.interest
            * breakdown.frequency
        )
        breakdown.final = self.bounds.clamp(score_model.round_half_up(raw))

        return ScoredTopic(topic=topic, weight=breakdown.final, breakdown=breakdown)

    def create_new_candidate(self, topics: Sequence[Topic]) -> CreateNewCandidate:
        """Build the synthetic candidate from the population's aggregate mastery."""
        factor = score_model.new_topic_factor(topics)
        weight = score_model.round_half_up(factor * self.default_weight)
        breakdown = WeightBreakdown(base=self.default_weight, final=weight, new_topic=factor)
        return CreateNewCandidate(weight=weight, breakdown=breakdown)

    def compute_weights(
        self,
        topics: Sequence[Topic],
        user_preferences: UserPreferences | None = None,
        analysis: AnalysisSignals | None = None,
        now: datetime | None = None,
    ) -> list[Candidate]:
        """
        Score every topic and append the synthetic candidate.

        Args:
            topics: Topic population in storage order
            user_preferences: Learner preferences (None = neutral)
            analysis: Opportunity/gap signals (None = empty)
            now: Reference instant for recency (default: now, UTC)

        Returns:
            ScoredTopics in input order followed by one CreateNewCandidate
        """
        if now is None:
            now = datetime.now(UTC)

        candidates: list[Candidate] = [
            self.score_topic(topic, user_preferences, analysis, now) for topic in topics
        ]
        candidates.append(self.create_new_candidate(topics))

        logger.debug(f"Calculated weights for {len(candidates)} candidates (including Create New Topic)")
        return candidates

    def normalize_weights(self, topics: Sequence[Topic]) -> list[Topic]:
        """Copies of the topics with stored weights defaulted and clamped."""
        return [replace(topic, selection_weight=self.base_weight(topic)) for topic in topics]

    def reset_weights(self, topics: Sequence[Topic]) -> list[Topic]:
        """Copies of the topics with every stored weight at the default."""
        return [replace(topic, selection_weight=self.default_weight) for topic in topics]
