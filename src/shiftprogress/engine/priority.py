"""Topic priority scoring for question selection.

Higher scores mean the topic more urgently needs practice. Choosing a topic
from the scores is left to the caller.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from shiftprogress.engine.adaptive import AdaptiveWeights, SpecialtyPerformance

MS_PER_HOUR = 3_600_000
RECENCY_CAP = 2.0
WEAK_TOPIC_MULTIPLIER = 1.5


def recency_multiplier(last_seen: int, now: int) -> float:
    hours = max(0, now - last_seen) / MS_PER_HOUR
    return min(RECENCY_CAP, 1.0 + hours / 24)


def score_topics(
    topics: Iterable[str],
    weights: AdaptiveWeights,
    performance: Mapping[str, SpecialtyPerformance],
    topic_specialties: Mapping[str, str],
    now: int,
) -> dict[str, float]:
    """Score each candidate topic. Reads its inputs, never mutates them."""
    scores: dict[str, float] = {}
    for topic in topics:
        if topic in weights:
            error = 1.0 + weights.error_frequency[topic]
            recency = recency_multiplier(weights.last_seen[topic], now)
        else:
            error = 1.0
            recency = 1.0

        specialty = topic_specialties.get(topic)
        perf = performance.get(specialty) if specialty is not None else None
        weak = WEAK_TOPIC_MULTIPLIER if perf is not None and topic in perf.weak_topics else 1.0

        scores[topic] = 1.0 * error * recency * weak * weights.difficulty_scaling
    return scores
