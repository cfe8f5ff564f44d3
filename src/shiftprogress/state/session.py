"""Result records handed in when a shift ends."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional


def _pick(data: dict, *keys):
    for key in keys:
        if key in data:
            return data[key]
    return None


def coerce_number(value, cast):
    """Coerce to ``cast`` or return None for missing/malformed values.

    Non-finite numbers (JSON ``Infinity``/``NaN``) count as malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = cast(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


@dataclass
class QuestionResult:
    topic: str
    was_correct: bool

    @classmethod
    def from_dict(cls, data: dict) -> Optional["QuestionResult"]:
        topic = data.get("topic")
        correct = _pick(data, "wasCorrect", "was_correct", "correct")
        if not isinstance(topic, str) or correct is None:
            return None
        return cls(topic=topic, was_correct=bool(correct))


@dataclass
class SpecialtyBreakdown:
    questions: int = 0
    correct: int = 0
    missed_topics: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SpecialtyBreakdown":
        missed = _pick(data, "missedTopics", "missed_topics")
        if not isinstance(missed, list):
            missed = []
        return cls(
            questions=coerce_number(data.get("questions"), int) or 0,
            correct=coerce_number(data.get("correct"), int) or 0,
            missed_topics=[t for t in missed if isinstance(t, str)],
        )


@dataclass
class SessionResult:
    """Outcome of one shift. Every field may be omitted."""
    questions_answered: Optional[int] = None
    accuracy: Optional[float] = None
    streak: Optional[int] = None
    specialty_breakdown: dict[str, SpecialtyBreakdown] = field(default_factory=dict)
    question_results: list[QuestionResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SessionResult":
        """Build from a wire payload (camelCase or snake_case keys).

        Unusable entries are dropped rather than rejected.
        """
        if not isinstance(data, dict):
            return cls()

        breakdown = {}
        raw_breakdown = _pick(data, "perSpecialtyBreakdown", "specialty_breakdown") or {}
        if isinstance(raw_breakdown, dict):
            for name, entry in raw_breakdown.items():
                if isinstance(entry, dict):
                    breakdown[name] = SpecialtyBreakdown.from_dict(entry)

        results = []
        raw_results = _pick(data, "perQuestionResults", "question_results") or []
        if isinstance(raw_results, list):
            for entry in raw_results:
                if isinstance(entry, dict):
                    result = QuestionResult.from_dict(entry)
                    if result is not None:
                        results.append(result)

        return cls(
            questions_answered=coerce_number(
                _pick(data, "questionsAnswered", "questions_answered"), int
            ),
            accuracy=coerce_number(data.get("accuracy"), float),
            streak=coerce_number(data.get("streak"), int),
            specialty_breakdown=breakdown,
            question_results=results,
        )
