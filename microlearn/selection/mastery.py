"""
Mastery update policy.

The sole mutator of a topic's mastery percentage:

    pass:  mastery + round(score / 10)   (or + 10 when no score is given)
    fail:  mastery - 2

Both clamped to [0, 100]. A topic moves Unpracticed -> Practicing on
selection, then to Reinforced (pass) or Struggling (fail), and is eligible
for re-selection immediately either way.
"""

from __future__ import annotations

from config import get_settings

from .models import LessonType
from .score_model import round_half_up

MIN_MASTERY = 0
MAX_MASTERY = 100


def clamp_mastery(value: int) -> int:
    return max(MIN_MASTERY, min(MAX_MASTERY, value))


def mastery_delta(
    passed: bool,
    score: float | None = None,
    pass_gain: int | None = None,
    fail_penalty: int | None = None,
) -> int:
    """Signed mastery change for one completion."""
    settings = get_settings()
    if passed:
        if score is None:
            return settings.mastery_pass_default_gain if pass_gain is None else pass_gain
        return round_half_up(score / 10)
    return -(settings.mastery_fail_penalty if fail_penalty is None else fail_penalty)


def apply_completion(old_mastery: int, passed: bool, score: float | None = None) -> int:
    """
    New mastery percentage after a completion.

    Args:
        old_mastery: Mastery before the completion (0-100)
        passed: Whether the learner passed
        score: Optional lesson score (0-100); only used on a pass

    Returns:
        Updated mastery, clamped to [0, 100]
    """
    return clamp_mastery(old_mastery + mastery_delta(passed, score))


def lesson_type_for(mastery: int) -> LessonType:
    """Lesson kind the learner's mastery calls for."""
    if mastery < 30:
        return LessonType.INTRODUCTION
    if mastery < 70:
        return LessonType.PRACTICE
    return LessonType.MASTERY
