"""
Selection Orchestrator.

The façade over the selection engine. Each call reads the current topic
population from storage, computes, and writes results back; the
orchestrator itself keeps no topic state between calls.

Storage precondition: concurrent calls against the same population must be
serialized by the repository (one read-modify-write transaction per call),
otherwise weight updates can be lost. The engine performs no locking.

Flow:
    select_next():  list -> compute weights -> pick -> statistics
    complete():     list -> mastery/recency update -> (pass only) redistribute
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any, Protocol

from loguru import logger

from .errors import EmptyCandidateSet, TopicNotFound
from .mastery import apply_completion, lesson_type_for
from .models import (
    AnalysisSignals,
    Candidate,
    CompletionResult,
    DifficultyBand,
    LessonType,
    SelectionResult,
    Topic,
    UserPreferences,
    WeightStatistics,
    WeightUpdate,
)
from .redistributor import FeedbackRedistributor
from .score_model import infer_difficulty
from .selector import WeightedSelector, weight_statistics
from .weight_calculator import WeightCalculator

# =============================================================================
# COLLABORATORS
# =============================================================================


class TopicRepository(Protocol):
    """Storage collaborator: reads a scope, writes weights and mastery."""

    def list_candidates(self, scope: str | None = None) -> list[Topic]: ...

    def persist_weight(self, topic_id: str, new_weight: int) -> bool: ...

    def persist_mastery_and_recency(
        self, topic_id: str, mastery: int, last_practiced: datetime
    ) -> bool: ...


class AnalysisSource(Protocol):
    def get_analysis_signals(self, scope: str | None = None) -> AnalysisSignals | Mapping | None: ...


class PreferenceSource(Protocol):
    def get_user_preferences(self) -> UserPreferences | Mapping | None: ...


def _utc_now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# ORCHESTRATOR
# =============================================================================


class SelectionOrchestrator:
    """
    Picks the next topic for a learner and folds completions back in.

    Usage:
        orchestrator = SelectionOrchestrator(repository)
        result = orchestrator.select_next()
        if not result.is_create_new:
            orchestrator.complete(result.candidate.id, passed=True, score=85)
    """

    def __init__(
        self,
        repository: TopicRepository,
        analysis_source: AnalysisSource | None = None,
        preference_source: PreferenceSource | None = None,
        calculator: WeightCalculator | None = None,
        selector: WeightedSelector | None = None,
        redistributor: FeedbackRedistributor | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repository = repository
        self.analysis_source = analysis_source
        self.preference_source = preference_source
        self.calculator = calculator or WeightCalculator()
        self.selector = selector or WeightedSelector()
        self.redistributor = redistributor or FeedbackRedistributor(
            bounds=self.calculator.bounds,
            default_weight=self.calculator.default_weight,
        )
        self._clock = clock or _utc_now

    # =========================================================================
    # OPTIONAL COLLABORATORS
    # =========================================================================

    def _preferences(self) -> UserPreferences | None:
        if self.preference_source is None:
            return None
        raw = self.preference_source.get_user_preferences()
        if raw is None or isinstance(raw, UserPreferences):
            return raw
        return UserPreferences.model_validate(dict(raw))

    def _signals(self, scope: str | None) -> AnalysisSignals:
        if self.analysis_source is None:
            return AnalysisSignals.empty()
        raw: Any = self.analysis_source.get_analysis_signals(scope)
        if raw is None:
            return AnalysisSignals.empty()
        if isinstance(raw, AnalysisSignals):
            return raw
        return AnalysisSignals.from_ids(raw.get("opportunities"), raw.get("gaps"))

    # =========================================================================
    # SELECTION
    # =========================================================================

    def preview_weights(self, scope: str | None = None) -> list[Candidate]:
        """Compute the candidate set without drawing or writing anything."""
        topics = self.repository.list_candidates(scope)
        return self.calculator.compute_weights(
            topics, self._preferences(), self._signals(scope), self._clock()
        )

    def select_next(self, scope: str | None = None) -> SelectionResult:
        """
        Draw the next topic (or the create-new candidate) for the learner.

        Raises:
            EmptyCandidateSet: If storage holds no topics for the scope
        """
        now = self._clock()
        topics = self.repository.list_candidates(scope)
        if not topics:
            # No synthetic candidate without a population to draw alongside
            raise EmptyCandidateSet()

        candidates = self.calculator.compute_weights(
            topics, self._preferences(), self._signals(scope), now
        )
        candidate = self.selector.pick(candidates)
        statistics = self.selector.get_statistics(candidates)

        if candidate.is_create_new:
            difficulty, lesson_type = DifficultyBand.BEGINNER, LessonType.CREATION
        else:
            mastery = candidate.topic.mastery_percentage
            difficulty, lesson_type = infer_difficulty(mastery), lesson_type_for(mastery)

        logger.info(
            f"Selected {candidate.name} (weight {candidate.weight}/{statistics.total}, "
            f"{statistics.count} candidates)"
        )
        return SelectionResult(
            candidate=candidate,
            statistics=statistics,
            difficulty=difficulty,
            lesson_type=lesson_type,
            selected_at=now,
        )

    # =========================================================================
    # COMPLETION
    # =========================================================================

    def complete(
        self,
        topic_id: str,
        passed: bool,
        score: float | None = None,
        scope: str | None = None,
    ) -> CompletionResult:
        """
        Record a completed topic.

        Mastery and recency are always updated. Weight is redistributed to
        the topic's peers only on a pass; a failed topic stays exactly as
        likely to be re-served.

        Raises:
            TopicNotFound: If the topic is not in the scope's population
        """
        now = self._clock()
        topics = self.repository.list_candidates(scope)
        topic = next((t for t in topics if t.id == topic_id), None)
        if topic is None:
            raise TopicNotFound(topic_id)

        new_mastery = apply_completion(topic.mastery_percentage, passed, score)
        self.repository.persist_mastery_and_recency(topic_id, new_mastery, now)

        updates: list[WeightUpdate] = []
        if passed:
            siblings = [t for t in topics if t.scope == topic.scope]
            updates = self.redistributor.redistribute(topic_id, siblings)
            self._persist_weights(updates)

        logger.info(
            f"Completion for {topic_id}: {'PASSED' if passed else 'FAILED'}, "
            f"mastery {topic.mastery_percentage}% -> {new_mastery}%, {len(updates)} weight updates"
        )
        return CompletionResult(
            topic_id=topic_id,
            passed=passed,
            score=score,
            old_mastery=topic.mastery_percentage,
            new_mastery=new_mastery,
            practiced_at=now,
            weight_updates=updates,
        )

    # =========================================================================
    # WEIGHT MAINTENANCE
    # =========================================================================

    def get_weight_distribution(
        self, scope: str | None = None
    ) -> tuple[WeightStatistics, list[Topic]]:
        """Statistics over stored weights (defaulted and clamped) for a scope."""
        topics = self.calculator.normalize_weights(self.repository.list_candidates(scope))
        return weight_statistics([t.selection_weight for t in topics]), topics

    def normalize_weights(self, scope: str | None = None) -> list[WeightUpdate]:
        """Persist defaulted and clamped weights for every topic that needs it."""
        topics = self.repository.list_candidates(scope)
        return self._rewrite_weights(topics, self.calculator.normalize_weights(topics))

    def reset_weights(self, scope: str | None = None) -> list[WeightUpdate]:
        """Persist the default weight for every topic in the scope."""
        topics = self.repository.list_candidates(scope)
        return self._rewrite_weights(topics, self.calculator.reset_weights(topics))

    def _rewrite_weights(self, before: list[Topic], after: list[Topic]) -> list[WeightUpdate]:
        updates = []
        for old, new in zip(before, after):
            if old.selection_weight != new.selection_weight:
                previous = (
                    self.calculator.default_weight if old.selection_weight is None else old.selection_weight
                )
                updates.append(WeightUpdate(old.id, previous, new.selection_weight))
                self.repository.persist_weight(old.id, new.selection_weight)
        logger.info(f"Rewrote {len(updates)} stored weights")
        return updates

    def _persist_weights(self, updates: list[WeightUpdate]) -> None:
        for update in updates:
            if not self.repository.persist_weight(update.topic_id, update.new_weight):
                logger.warning(f"Weight for topic {update.topic_id} was not persisted")
