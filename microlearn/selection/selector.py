"""
Weighted random selection over a candidate set.

Standard inverse-CDF sampler: draw r uniformly in [0, total) and return the
first candidate whose running cumulative weight reaches r. When every weight
is zero the draw falls back to a uniform pick so a fully mastered population
still yields a candidate.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence

from loguru import logger

from .errors import EmptyCandidateSet
from .models import Candidate, WeightStatistics
from .score_model import round_half_up

RandomSource = Callable[[], float]

LOW_WEIGHT_THRESHOLD = 50
HIGH_WEIGHT_THRESHOLD = 150


class WeightedSelector:
    """
    Picks one candidate per call, proportionally to its weight.

    The random source must return floats uniformly distributed in [0, 1).
    Inject a seeded ``random.Random(seed).random`` for reproducible draws.
    """

    def __init__(self, random_source: RandomSource | None = None):
        self._random = random_source or random.random

    def pick(self, candidates: Sequence[Candidate]) -> Candidate:
        """
        Perform one weighted random draw.

        Raises:
            EmptyCandidateSet: If there is nothing to choose from
        """
        if not candidates:
            raise EmptyCandidateSet()

        total = sum(c.weight for c in candidates)

        if total <= 0:
            index = min(int(self._random() * len(candidates)), len(candidates) - 1)
            logger.debug(f"All weights are zero, uniform fallback picked index {index}")
            return candidates[index]

        r = self._random() * total
        cumulative = 0
        last_positive = None
        for candidate in candidates:
            if candidate.weight <= 0:
                continue
            cumulative += candidate.weight
            last_positive = candidate
            if r <= cumulative:
                logger.debug(f"Selected: {candidate.name} (weight: {candidate.weight}/{total})")
                return candidate

        # Only reachable through float error at the top of the range
        return last_positive

    @staticmethod
    def get_statistics(candidates: Sequence[Candidate]) -> WeightStatistics:
        """Count, sum, mean, extremes and a three-bucket histogram of weights."""
        return weight_statistics([c.weight for c in candidates])


def weight_statistics(weights: Sequence[int]) -> WeightStatistics:
    """Summarize a plain list of weights; side-effect free."""
    if not weights:
        return WeightStatistics()

    total = sum(weights)
    return WeightStatistics(
        count=len(weights),
        total=total,
        mean=round_half_up(total / len(weights)),
        minimum=min(weights),
        maximum=max(weights),
        low=sum(1 for w in weights if w < LOW_WEIGHT_THRESHOLD),
        normal=sum(1 for w in weights if LOW_WEIGHT_THRESHOLD <= w <= HIGH_WEIGHT_THRESHOLD),
        high=sum(1 for w in weights if w > HIGH_WEIGHT_THRESHOLD),
    )
