"""Tests for adaptive topic weights, mastery and difficulty scaling."""

import pytest

from shiftprogress.engine.adaptive import (
    AdaptiveWeights,
    SpecialtyPerformance,
    adjust_difficulty_scaling,
    update_topic_weights,
)
from shiftprogress.engine.events import DECREASE_DIFFICULTY, INCREASE_DIFFICULTY
from shiftprogress.state.session import QuestionResult


def _miss(topic="Pneumonia"):
    return {"perQuestionResults": [{"topic": topic, "wasCorrect": False}]}


def test_two_misses_compound_weight(store):
    """Two misses in a row: weight 1.0 * 1.5 * 1.5, error 0.1 + 0.1."""
    store.complete_session(_miss())
    store.complete_session(_miss())

    assert store.weights.topic_weight["Pneumonia"] == pytest.approx(2.25)
    assert store.weights.error_frequency["Pneumonia"] == pytest.approx(0.2)


def test_hit_decays_weight_and_error():
    weights = AdaptiveWeights.for_topics(["Asthma"])
    update_topic_weights(weights, [QuestionResult("Asthma", False)], now=10)
    update_topic_weights(weights, [QuestionResult("Asthma", True)], now=20)

    assert weights.topic_weight["Asthma"] == pytest.approx(1.5 * 0.95)
    assert weights.error_frequency["Asthma"] == pytest.approx(0.1 * 0.9)
    assert weights.last_seen["Asthma"] == 20


def test_weights_stay_within_bounds():
    weights = AdaptiveWeights.for_topics(["Stroke", "Sepsis"])
    misses = [QuestionResult("Stroke", False)] * 40
    hits = [QuestionResult("Sepsis", True)] * 200
    update_topic_weights(weights, misses + hits, now=1)

    assert weights.topic_weight["Stroke"] == 5.0
    assert weights.error_frequency["Stroke"] == 2.0
    assert weights.topic_weight["Sepsis"] == pytest.approx(0.1)
    assert weights.error_frequency["Sepsis"] == 0.0
    for topic in ("Stroke", "Sepsis"):
        assert 0.1 <= weights.topic_weight[topic] <= 5.0
        assert 0.0 <= weights.error_frequency[topic] <= 2.0


def test_unknown_topics_are_ignored():
    weights = AdaptiveWeights.for_topics(["Asthma"])
    update_topic_weights(weights, [QuestionResult("Made Up Topic", False)], now=5)
    assert "Made Up Topic" not in weights
    assert weights.topic_weight == {"Asthma": 1.0}


class TestDifficultyScaling:
    def test_high_accuracy_raises(self, store):
        outcome = store.complete_session({"accuracy": 0.95})
        assert store.weights.difficulty_scaling == pytest.approx(1.05)
        assert len(outcome.adjustments) == 1
        assert outcome.adjustments[0].kind == INCREASE_DIFFICULTY
        assert outcome.adjustments[0].scaling == pytest.approx(1.05)

    def test_low_accuracy_lowers(self, store):
        outcome = store.complete_session({"accuracy": 0.55})
        assert store.weights.difficulty_scaling == pytest.approx(0.95)
        assert [a.kind for a in outcome.adjustments] == [DECREASE_DIFFICULTY]

    def test_inside_band_no_change(self, store):
        outcome = store.complete_session({"accuracy": 0.70})
        assert store.weights.difficulty_scaling == 1.0
        assert outcome.adjustments == []

    def test_band_edges_do_not_adjust(self):
        weights = AdaptiveWeights()
        assert adjust_difficulty_scaling(weights, 0.85) is None
        assert adjust_difficulty_scaling(weights, 0.61) is None
        assert weights.difficulty_scaling == 1.0

    def test_scaling_is_clamped(self):
        weights = AdaptiveWeights()
        for _ in range(30):
            adjust_difficulty_scaling(weights, 1.0)
        assert weights.difficulty_scaling == 2.0
        for _ in range(60):
            adjust_difficulty_scaling(weights, 0.0)
        assert weights.difficulty_scaling == 0.5

    def test_no_accuracy_no_adjustment(self, store):
        outcome = store.complete_session({"questionsAnswered": 10})
        assert outcome.adjustments == []
        assert store.weights.difficulty_scaling == 1.0


class TestSpecialtyPerformance:
    def test_accuracy_guarded_when_empty(self):
        assert SpecialtyPerformance().accuracy == 0.0

    def test_mastery_scales_with_volume(self):
        perf = SpecialtyPerformance()
        perf.record(25, 20, ["Pneumonia"], now=100)
        assert perf.mastery_level == pytest.approx(0.5 * 0.8)

        perf.record(25, 20, ["Pneumonia", "Hypertension"], now=200)
        assert perf.mastery_level == pytest.approx(0.8)
        assert perf.weak_topics == {"Pneumonia", "Hypertension"}
        assert perf.last_practiced == 200

    def test_mastery_capped_at_accuracy(self):
        perf = SpecialtyPerformance()
        perf.record(200, 150, [], now=1)
        assert perf.mastery_level == pytest.approx(0.75)

    def test_breakdown_folds_into_store(self, store, now):
        store.complete_session({
            "perSpecialtyBreakdown": {
                "Cardiology": {"questions": 10, "correct": 7, "missedTopics": ["Heart Failure"]},
            },
        })
        perf = store.specialty_performance["Cardiology"]
        assert perf.questions_seen == 10
        assert perf.accuracy == pytest.approx(0.7)
        assert perf.last_practiced == now
        assert perf.weak_topics == {"Heart Failure"}

    def test_new_specialty_key_is_added(self, store):
        store.complete_session({
            "perSpecialtyBreakdown": {"Dermatology": {"questions": 4, "correct": 4}},
        })
        assert store.specialty_performance["Dermatology"].questions_seen == 4
