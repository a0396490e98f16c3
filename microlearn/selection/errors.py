"""Errors raised by the topic selection engine."""

from __future__ import annotations


class SelectionError(Exception):
    """Base class for selection engine errors."""

    pass


class EmptyCandidateSet(SelectionError):
    """Raised when a draw is requested over no candidates at all."""

    def __init__(self, message: str = "Nothing available to select from; create a topic first"):
        super().__init__(message)


class TopicNotFound(SelectionError):
    """Raised when a topic id is not part of the population."""

    def __init__(self, topic_id: str):
        self.topic_id = topic_id
        super().__init__(f"Topic not found: {topic_id}")


class InvalidWeightRange(SelectionError):
    """Raised when weight bounds are configured with min above max."""

    def __init__(self, min_weight: int, max_weight: int):
        self.min_weight = min_weight
        self.max_weight = max_weight
        super().__init__(f"Invalid weight range: min {min_weight} > max {max_weight}")
