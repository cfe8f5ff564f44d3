"""Adaptive difficulty engine.

Keeps per-specialty performance and per-topic weights up to date after each
completed shift, and nudges a single global difficulty multiplier toward a
target accuracy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from shiftprogress.engine.events import (
    DECREASE_DIFFICULTY,
    INCREASE_DIFFICULTY,
    AdaptiveAdjustmentMade,
)

logger = logging.getLogger(__name__)

MASTERY_VOLUME = 50

TOPIC_WEIGHT_BOUNDS = (0.1, 5.0)
ERROR_FREQUENCY_BOUNDS = (0.0, 2.0)
SCALING_BOUNDS = (0.5, 2.0)

MISS_WEIGHT_FACTOR = 1.5
HIT_WEIGHT_FACTOR = 0.95
MISS_ERROR_STEP = 0.1
HIT_ERROR_DECAY = 0.9

TARGET_ACCURACY = 0.75
# Hysteresis band around the target; the two margins must stay unequal.
RAISE_MARGIN = 0.10
LOWER_MARGIN = -0.15
RAISE_FACTOR = 1.05
LOWER_FACTOR = 0.95


def clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def recency_factor(last_practiced: int, now: int) -> float:
    """Time-decay hook for mastery. Currently no decay is applied."""
    return 1.0


@dataclass
class SpecialtyPerformance:
    """Accumulated results for one specialty."""
    questions_seen: int = 0
    correct_answers: int = 0
    last_practiced: int = 0  # epoch ms, 0 = never
    weak_topics: set[str] = field(default_factory=set)
    mastery_level: float = 0.0

    @property
    def accuracy(self) -> float:
        if self.questions_seen <= 0:
            return 0.0
        return self.correct_answers / self.questions_seen

    def record(
        self,
        questions: int,
        correct: int,
        missed_topics: Optional[Iterable[str]],
        now: int,
    ) -> None:
        self.questions_seen += questions
        self.correct_answers += correct
        self.last_practiced = now
        if missed_topics:
            self.weak_topics.update(missed_topics)
        self.mastery_level = self.compute_mastery(now)

    def compute_mastery(self, now: int) -> float:
        volume = min(1.0, self.questions_seen / MASTERY_VOLUME)
        return volume * self.accuracy * recency_factor(self.last_practiced, now)

    def to_dict(self) -> dict:
        return {
            "questions_seen": self.questions_seen,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "last_practiced": self.last_practiced,
            "weak_topics": sorted(self.weak_topics),
            "mastery_level": self.mastery_level,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SpecialtyPerformance":
        perf = cls()
        if "questions_seen" in data:
            perf.questions_seen = int(data["questions_seen"])
        if "correct_answers" in data:
            perf.correct_answers = int(data["correct_answers"])
        if "last_practiced" in data:
            perf.last_practiced = int(data["last_practiced"])
        if "weak_topics" in data:
            perf.weak_topics = set(data["weak_topics"] or [])
        if "mastery_level" in data:
            perf.mastery_level = float(data["mastery_level"])
        return perf


@dataclass
class AdaptiveWeights:
    """Per-topic weights plus the global difficulty multiplier."""
    topic_weight: dict[str, float] = field(default_factory=dict)
    last_seen: dict[str, int] = field(default_factory=dict)
    error_frequency: dict[str, float] = field(default_factory=dict)
    difficulty_scaling: float = 1.0

    @classmethod
    def for_topics(cls, topics: Iterable[str]) -> "AdaptiveWeights":
        weights = cls()
        for topic in topics:
            weights.register(topic)
        return weights

    def register(self, topic: str) -> None:
        self.topic_weight.setdefault(topic, 1.0)
        self.last_seen.setdefault(topic, 0)
        self.error_frequency.setdefault(topic, 0.0)

    def __contains__(self, topic: str) -> bool:
        return topic in self.topic_weight

    def to_dict(self) -> dict:
        return {
            "topic_weight": dict(self.topic_weight),
            "last_seen": dict(self.last_seen),
            "error_frequency": dict(self.error_frequency),
            "difficulty_scaling": self.difficulty_scaling,
        }

    def load(self, data: dict) -> None:
        """Overlay saved values; keys are only ever added."""
        for topic, value in (data.get("topic_weight") or {}).items():
            self.register(topic)
            self.topic_weight[topic] = clamp(float(value), TOPIC_WEIGHT_BOUNDS)
        for topic, value in (data.get("last_seen") or {}).items():
            self.register(topic)
            self.last_seen[topic] = int(value)
        for topic, value in (data.get("error_frequency") or {}).items():
            self.register(topic)
            self.error_frequency[topic] = clamp(float(value), ERROR_FREQUENCY_BOUNDS)
        if "difficulty_scaling" in data:
            self.difficulty_scaling = clamp(float(data["difficulty_scaling"]), SCALING_BOUNDS)


def update_topic_weights(weights: AdaptiveWeights, results, now: int) -> None:
    """Fold per-question results into the topic table.

    ``results`` is an iterable of objects with ``topic`` and ``was_correct``.
    Topics that are not already in the table are skipped.
    """
    for result in results:
        topic = result.topic
        if topic not in weights:
            logger.debug("Ignoring result for unregistered topic %r", topic)
            continue

        weights.last_seen[topic] = now
        if result.was_correct:
            weights.topic_weight[topic] *= HIT_WEIGHT_FACTOR
            weights.error_frequency[topic] *= HIT_ERROR_DECAY
        else:
            weights.error_frequency[topic] += MISS_ERROR_STEP
            weights.topic_weight[topic] *= MISS_WEIGHT_FACTOR

        weights.topic_weight[topic] = clamp(weights.topic_weight[topic], TOPIC_WEIGHT_BOUNDS)
        weights.error_frequency[topic] = clamp(
            weights.error_frequency[topic], ERROR_FREQUENCY_BOUNDS
        )


def adjust_difficulty_scaling(
    weights: AdaptiveWeights, session_accuracy: float
) -> Optional[AdaptiveAdjustmentMade]:
    """Move the global multiplier toward the target accuracy band."""
    diff = session_accuracy - TARGET_ACCURACY
    if diff > RAISE_MARGIN:
        kind, factor = INCREASE_DIFFICULTY, RAISE_FACTOR
    elif diff < LOWER_MARGIN:
        kind, factor = DECREASE_DIFFICULTY, LOWER_FACTOR
    else:
        return None

    weights.difficulty_scaling = clamp(weights.difficulty_scaling * factor, SCALING_BOUNDS)
    logger.info("Difficulty scaling %s -> %.3f", kind, weights.difficulty_scaling)
    return AdaptiveAdjustmentMade(kind=kind, scaling=weights.difficulty_scaling)
