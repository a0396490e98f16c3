"""
Score Model for topic selection.

Pure functions mapping topic attributes to independent multiplicative
factors. A topic's selection weight is:

    W = base · M(mastery) · I(importance) · R(recency) · P(preference) · F(frequency)

Where:
    M = mastery step function (mastered topics are never re-served)
    I = importance class multiplier (metadata override wins)
    R = spaced-repetition curve over whole days since last practice
    P = preference match bonus (topic substring or difficulty band)
    F = frequency bias from external analysis (opportunities, gaps)

The synthetic "create new topic" candidate uses N(population) instead,
which grows as the population as a whole becomes mastered.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import UTC, datetime

from loguru import logger

from .models import AnalysisSignals, DifficultyBand, ImportanceClass, Topic, UserPreferences

# Lower bound (inclusive) of each mastery band and its multiplier, highest first
MASTERY_BANDS: tuple[tuple[float, float], ...] = (
    (100, 0.0),
    (99, 0.1),
    (90, 0.3),
    (70, 0.6),
    (50, 1.0),
    (30, 1.5),
    (0, 2.0),
)

IMPORTANCE_MULTIPLIERS: dict[str, float] = {
    ImportanceClass.FOUNDATION.value: 1.3,
    ImportanceClass.CORE.value: 1.3,
    ImportanceClass.SUBJECT.value: 1.1,
    ImportanceClass.SKILL.value: 1.05,
}

NEVER_PRACTICED_FACTOR = 1.3

# Upper bound (exclusive) in days and multiplier
RECENCY_INTERVALS: tuple[tuple[int, float], ...] = (
    (1, 0.3),
    (3, 0.6),
    (7, 0.8),
    (14, 1.1),
    (30, 1.4),
)
STALE_FACTOR = 1.8

PREFERRED_TOPIC_BONUS = 1.5
DIFFICULTY_MATCH_BONUS: dict[DifficultyBand, float] = {
    DifficultyBand.BEGINNER: 1.2,
    DifficultyBand.INTERMEDIATE: 1.1,
    DifficultyBand.ADVANCED: 1.2,
}

OPPORTUNITY_BIAS = 1.3
GAP_BIAS = 1.2

# Lower bound (inclusive) of average mastery and base new-topic factor
NEW_TOPIC_BANDS: tuple[tuple[float, float], ...] = (
    (80, 1.5),
    (60, 1.2),
    (40, 1.0),
    (20, 0.8),
)
NEW_TOPIC_FLOOR = 0.5
HIGH_MASTERY_THRESHOLD = 90
HIGH_MASTERY_RATIO = 0.5
HIGH_MASTERY_BONUS = 0.5
NEW_TOPIC_CAP = 2.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 rounding up (not to even)."""
    return int(math.floor(value + 0.5))


def mastery_factor(pct: float) -> float:
    """Step multiplier that over-serves weak topics and retires mastered ones."""
    for lower, factor in MASTERY_BANDS:
        if pct >= lower:
            return factor
    return MASTERY_BANDS[-1][1]


def importance_factor(topic: Topic) -> float:
    """
    Importance multiplier for a topic.

    A numeric ``metadata["base_importance"]`` is returned verbatim;
    otherwise the topic's importance class is looked up.
    """
    override = (topic.metadata or {}).get("base_importance")
    if override is not None:
        try:
            return float(override)
        except (TypeError, ValueError):
            logger.warning(
                f"Ignoring non-numeric base_importance {override!r} for topic {topic.id}"
            )
    return IMPORTANCE_MULTIPLIERS.get((topic.importance_class or "").lower(), 1.0)


def days_since(last_practiced: datetime, now: datetime) -> int:
    """Whole days elapsed between two instants; naive datetimes are UTC."""
    if last_practiced.tzinfo is None:
        last_practiced = last_practiced.replace(tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return math.floor((now - last_practiced).total_seconds() / 86400)


def recency_factor(last_practiced: datetime | None, now: datetime | None = None) -> float:
    """
    Spaced-repetition multiplier.

    Suppresses immediate re-drilling and rewards topics that have aged past
    the forgetting threshold. Never practiced topics get a moderate boost.
    """
    if last_practiced is None:
        return NEVER_PRACTICED_FACTOR

    if now is None:
        now = datetime.now(UTC)

    elapsed = days_since(last_practiced, now)
    for upper, factor in RECENCY_INTERVALS:
        if elapsed < upper:
            return factor
    return STALE_FACTOR


def infer_difficulty(pct: float) -> DifficultyBand:
    """Infer a difficulty band from mastery."""
    if pct < 40:
        return DifficultyBand.BEGINNER
    if pct < 80:
        return DifficultyBand.INTERMEDIATE
    return DifficultyBand.ADVANCED


def interest_factor(topic: Topic, preferences: UserPreferences | None = None) -> float:
    """Bonus for topics matching the learner's stated preferences."""
    if preferences is None:
        return 1.0

    preferred_topic = (preferences.topic or "").strip().lower()
    if preferred_topic and preferred_topic in topic.name.lower():
        return PREFERRED_TOPIC_BONUS

    if preferences.difficulty is not None:
        if infer_difficulty(topic.mastery_percentage) == preferences.difficulty:
            return DIFFICULTY_MATCH_BONUS[preferences.difficulty]

    return 1.0


def frequency_bias(topic: Topic, signals: AnalysisSignals | None = None) -> float:
    """Boost topics flagged as learning opportunities, then content gaps."""
    if signals is None:
        return 1.0
    if topic.id in signals.opportunities:
        return OPPORTUNITY_BIAS
    if topic.id in signals.gaps:
        return GAP_BIAS
    return 1.0


def new_topic_factor(topics: Sequence[Topic]) -> float:
    """
    Multiplier for the synthetic "create new topic" candidate.

    The more of the population is mastered, the more the engine suggests
    authoring new content instead of recycling old. An empty population
    gets the cap.
    """
    if not topics:
        return NEW_TOPIC_CAP

    masteries = [t.mastery_percentage for t in topics]
    average = sum(masteries) / len(masteries)
    high_ratio = sum(1 for m in masteries if m >= HIGH_MASTERY_THRESHOLD) / len(masteries)

    factor = NEW_TOPIC_FLOOR
    for lower, value in NEW_TOPIC_BANDS:
        if average >= lower:
            factor = value
            break

    if high_ratio >= HIGH_MASTERY_RATIO:
        factor += HIGH_MASTERY_BONUS

    return min(factor, NEW_TOPIC_CAP)
