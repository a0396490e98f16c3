"""
Content analysis for a topic population.

Derives the opportunity and content-gap signals consumed by the frequency
bias directly from mastery levels:
- Opportunities: moderate mastery (40-70%), good improvement potential
- Gaps: low mastery (< 30%)

Bound to a repository, ContentAnalyzer serves as the analysis collaborator
of the SelectionOrchestrator.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from .models import AnalysisSignals, DifficultyBand, Topic
from .score_model import infer_difficulty, round_half_up

if TYPE_CHECKING:
    from .orchestrator import TopicRepository

OPPORTUNITY_RANGE = (40, 70)
GAP_THRESHOLD = 30


@dataclass
class MasteryDistribution:
    """Summary of mastery across a population."""

    average: int = 0
    minimum: int = 0
    maximum: int = 0
    band: DifficultyBand | None = None
    band_counts: dict[DifficultyBand, int] = field(
        default_factory=lambda: {band: 0 for band in DifficultyBand}
    )


class ContentAnalyzer:
    """Derives analysis signals from the topics themselves."""

    def __init__(self, repository: TopicRepository | None = None):
        self._repository = repository

    @staticmethod
    def find_opportunities(topics: Sequence[Topic]) -> list[str]:
        low, high = OPPORTUNITY_RANGE
        return [t.id for t in topics if low <= t.mastery_percentage <= high]

    @staticmethod
    def find_gaps(topics: Sequence[Topic]) -> list[str]:
        return [t.id for t in topics if t.mastery_percentage < GAP_THRESHOLD]

    def analyze(self, topics: Sequence[Topic]) -> AnalysisSignals:
        """Signals for a population already in hand."""
        return AnalysisSignals.from_ids(
            opportunities=self.find_opportunities(topics),
            gaps=self.find_gaps(topics),
        )

    def get_analysis_signals(self, scope: str | None = None) -> AnalysisSignals:
        """Analysis collaborator entry point: read the scope and analyze it."""
        if self._repository is None:
            return AnalysisSignals.empty()
        signals = self.analyze(self._repository.list_candidates(scope))
        logger.debug(
            f"Analysis for scope {scope!r}: {len(signals.opportunities)} opportunities, "
            f"{len(signals.gaps)} gaps"
        )
        return signals

    @staticmethod
    def mastery_distribution(topics: Sequence[Topic]) -> MasteryDistribution:
        if not topics:
            return MasteryDistribution()

        scores = [t.mastery_percentage for t in topics]
        distribution = MasteryDistribution(
            average=round_half_up(sum(scores) / len(scores)),
            minimum=min(scores),
            maximum=max(scores),
        )
        distribution.band = infer_difficulty(sum(scores) / len(scores))
        for score in scores:
            distribution.band_counts[infer_difficulty(score)] += 1
        return distribution
