"""
Feedback Redistributor.

After a passed completion, a fraction of the completed topic's stored weight
is moved to its peers, shifting selection pressure away from what was just
reinforced. Integer shares are used throughout; with the default policy the
division remainder is dropped, so total weight is conserved only up to
rounding and clamping loss.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from config import get_settings

from .models import Topic, WeightUpdate
from .score_model import round_half_up
from .weight_calculator import WeightBounds


def as_ratio(fraction: float) -> float:
    """
    Accept 0.15 or 15 for fifteen percent.

    Raises:
        ValueError: If the fraction is negative
    """
    if fraction < 0:
        raise ValueError(f"Redistribution fraction must not be negative, got {fraction}")
    return fraction / 100 if fraction > 1 else fraction


class FeedbackRedistributor:
    """
    Moves weight from a completed topic to every other topic in its scope.

    Usage:
        redistributor = FeedbackRedistributor()
        updates = redistributor.redistribute(topic_id, topics)
        for update in updates:
            repository.persist_weight(update.topic_id, update.new_weight)
    """

    def __init__(
        self,
        fraction: float | None = None,
        bounds: WeightBounds | None = None,
        default_weight: int | None = None,
        redistribute_remainder: bool | None = None,
    ):
        settings = get_settings()
        self.fraction = as_ratio(settings.redistribution_fraction if fraction is None else fraction)
        self.bounds = bounds or WeightBounds.from_settings()
        self.default_weight = settings.default_weight if default_weight is None else default_weight
        self.redistribute_remainder = (
            settings.redistribute_remainder if redistribute_remainder is None else redistribute_remainder
        )

    def _stored_weight(self, topic: Topic) -> int:
        if topic.selection_weight is None:
            return self.default_weight
        return self.bounds.clamp(topic.selection_weight)

    def redistribute(
        self,
        selected_id: str,
        topics: Sequence[Topic],
        fraction: float | None = None,
    ) -> list[WeightUpdate]:
        """
        Compute the weight changes for one passed completion.

        Args:
            selected_id: ID of the completed topic
            topics: Every topic in the completed topic's scope
            fraction: Override the configured share (ratio or percentage)

        Returns:
            One WeightUpdate per topic whose weight changed, in input order.
            Empty when the topic is unknown or has no peers.
        """
        ratio = self.fraction if fraction is None else as_ratio(fraction)

        selected = next((t for t in topics if t.id == selected_id), None)
        if selected is None:
            logger.warning(f"Completed topic {selected_id} not found for weight redistribution")
            return []

        peers = [t for t in topics if t.id != selected_id]
        if not peers:
            logger.debug(f"Topic {selected_id} has no peers, nothing to redistribute")
            return []

        old_weight = self._stored_weight(selected)
        to_move = round_half_up(old_weight * ratio)
        new_weight = max(self.bounds.min_weight, old_weight - to_move)

        share, remainder = divmod(to_move, len(peers))
        if not self.redistribute_remainder:
            remainder = 0

        updates: list[WeightUpdate] = []
        for topic in topics:
            if topic.id == selected_id:
                update = WeightUpdate(topic.id, old_weight, new_weight)
            else:
                bonus = 1 if remainder > 0 else 0
                remainder -= bonus
                peer_weight = self._stored_weight(topic)
                update = WeightUpdate(
                    topic.id, peer_weight, min(self.bounds.max_weight, peer_weight + share + bonus)
                )
            if update.delta != 0:
                updates.append(update)

        logger.debug(f"Redistributed {to_move} weight points from {selected_id} across {len(peers)} topics")
        return updates
