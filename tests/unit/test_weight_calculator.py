"""
Unit tests for WeightCalculator and WeightBounds.
"""

from datetime import timedelta

import pytest

from microlearn.selection.errors import InvalidWeightRange
from microlearn.selection.models import (
    CREATE_NEW_TOPIC_ID,
    AnalysisSignals,
    CreateNewCandidate,
    DifficultyBand,
    ScoredTopic,
    Topic,
    UserPreferences,
)
from microlearn.selection.weight_calculator import WeightBounds, WeightCalculator


@pytest.fixture
def calculator():
    return WeightCalculator(default_weight=100, bounds=WeightBounds(0, 200))


class TestWeightBounds:
    def test_clamp(self):
        bounds = WeightBounds(0, 200)
        assert bounds.clamp(-5) == 0
        assert bounds.clamp(250) == 200
        assert bounds.clamp(120) == 120

    def test_inverted_range_rejected(self):
        with pytest.raises(InvalidWeightRange):
            WeightBounds(min_weight=50, max_weight=10)

    def test_equal_bounds_allowed(self):
        assert WeightBounds(100, 100).clamp(7) == 100


class TestBaseWeight:
    def test_missing_weight_uses_default(self, calculator):
        assert calculator.base_weight(Topic(id="a", name="A")) == 100

    def test_zero_is_a_real_weight(self, calculator):
        assert calculator.base_weight(Topic(id="a", name="A", selection_weight=0)) == 0

    def test_out_of_range_stored_weight_is_clamped(self, calculator):
        assert calculator.base_weight(Topic(id="a", name="A", selection_weight=500)) == 200
        assert calculator.base_weight(Topic(id="a", name="A", selection_weight=-10)) == 0


class TestComputeWeights:
    def test_sample_population(self, calculator, sample_topics, now):
        candidates = calculator.compute_weights(sample_topics, now=now)

        assert [c.id for c in candidates] == ["alg", "prob", "calc", "stats", CREATE_NEW_TOPIC_ID]
        # 100 * 2.0 * 1.3 * 1.3 = 338 -> clamped
        assert candidates[0].weight == 200
        # 120 * 1.0 * 1.1 * 1.1 = 145.2
        assert candidates[1].weight == 145
        # 80 * 0.3 * 1.0 * 0.3 = 7.2
        assert candidates[2].weight == 7
        # Fully mastered
        assert candidates[3].weight == 0

    def test_create_new_candidate_is_last_and_synthetic(self, calculator, sample_topics, now):
        candidates = calculator.compute_weights(sample_topics, now=now)
        synthetic = candidates[-1]

        assert isinstance(synthetic, CreateNewCandidate)
        assert synthetic.is_create_new
        assert all(isinstance(c, ScoredTopic) for c in candidates[:-1])
        # Average 67.5 -> 1.2, half the topics >= 90 -> +0.5
        assert synthetic.breakdown.new_topic == pytest.approx(1.7)
        assert synthetic.weight == 170

    def test_one_candidate_per_topic_plus_one(self, calculator, make_topic, now):
        topics = [make_topic(str(i), mastery=i * 10) for i in range(11)]
        candidates = calculator.compute_weights(topics, now=now)
        assert len(candidates) == len(topics) + 1

    def test_empty_population_yields_only_synthetic(self, calculator, now):
        candidates = calculator.compute_weights([], now=now)
        assert len(candidates) == 1
        assert candidates[0].is_create_new
        assert candidates[0].weight == 200

    def test_weights_stay_in_bounds(self, calculator, make_topic, now):
        topics = [
            make_topic("a", mastery=0, importance_class="core", selection_weight=200),
            make_topic("b", mastery=100, selection_weight=200),
            make_topic("c", mastery=45, last_practiced=now - timedelta(days=90), selection_weight=180),
        ]
        signals = AnalysisSignals.from_ids(opportunities=["a", "c"])
        prefs = UserPreferences(difficulty=DifficultyBand.BEGINNER, topic="Topic")
        for candidate in calculator.compute_weights(topics, prefs, signals, now)[:-1]:
            assert 0 <= candidate.weight <= 200

    def test_breakdown_records_every_factor(self, calculator, make_topic, now):
        topic = make_topic(
            "g",
            mastery=45,
            name="Graph Theory",
            importance_class="subject",
            last_practiced=now - timedelta(days=4),
        )
        prefs = UserPreferences(topic="graph")
        signals = AnalysisSignals.from_ids(gaps=["g"])

        scored = calculator.score_topic(topic, prefs, signals, now)

        assert scored.breakdown.to_dict() == {
            "base": 100,
            "mastery": 1.5,
            "importance": 1.1,
            "recency": 0.8,
            "interest": 1.5,
            "frequency": 1.2,
            "final": 200,
        }

    def test_same_inputs_same_weights(self, calculator, sample_topics, now):
        """Scoring is a pure function of topics, preferences, signals and now."""
        prefs = UserPreferences(topic="prob", difficulty=DifficultyBand.BEGINNER)
        signals = AnalysisSignals.from_ids(opportunities=["prob"], gaps=["alg"])

        first = calculator.compute_weights(sample_topics, prefs, signals, now)
        second = calculator.compute_weights(sample_topics, prefs, signals, now)

        assert [c.id for c in first] == [c.id for c in second]
        assert [c.weight for c in first] == [c.weight for c in second]
        assert [c.breakdown.to_dict() for c in first] == [c.breakdown.to_dict() for c in second]

    def test_bad_importance_override_does_not_abort_scoring(self, calculator, make_topic, now):
        topics = [
            make_topic("odd", 50, importance_class="core", metadata={"base_importance": "high"}),
            make_topic("plain", 50),
        ]

        candidates = calculator.compute_weights(topics, now=now)

        assert candidates[0].breakdown.importance == 1.3
        # 100 * 1.0 * 1.3 * 1.3 (never practiced)
        assert candidates[0].weight == 169
        assert candidates[1].weight == 130

    def test_mastered_topic_stays_in_set_with_zero_weight(self, calculator, make_topic, now):
        candidates = calculator.compute_weights([make_topic("done", mastery=100)], now=now)
        assert candidates[0].id == "done"
        assert candidates[0].weight == 0


class TestWeightMaintenance:
    def test_normalize_defaults_and_clamps(self, calculator, make_topic):
        topics = [
            make_topic("a"),
            make_topic("b", selection_weight=350),
            make_topic("c", selection_weight=40),
        ]
        normalized = calculator.normalize_weights(topics)

        assert [t.selection_weight for t in normalized] == [100, 200, 40]
        # Inputs are left untouched
        assert topics[0].selection_weight is None

    def test_reset(self, calculator, make_topic):
        topics = [make_topic("a", selection_weight=12), make_topic("b", selection_weight=190)]
        assert [t.selection_weight for t in calculator.reset_weights(topics)] == [100, 100]
