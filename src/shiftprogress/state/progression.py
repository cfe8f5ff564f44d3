"""Per-profile progression state and the session-completion entry point."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional, Union

from shiftprogress.engine.adaptive import (
    AdaptiveWeights,
    SpecialtyPerformance,
    adjust_difficulty_scaling,
    clamp,
    update_topic_weights,
)
from shiftprogress.engine.difficulty import DifficultyLevel
from shiftprogress.engine.events import (
    DifficultyUnlocked,
    EventListener,
    MilestoneReached,
    SessionOutcome,
    SpecialtyUnlocked,
)
from shiftprogress.engine.milestones import pending_milestones
from shiftprogress.engine.priority import score_topics
from shiftprogress.engine.tables import ProgressionTables, load_tables
from shiftprogress.engine.unlocks import (
    next_unlock_info,
    pending_difficulty_unlocks,
    pending_specialty_unlocks,
)
from shiftprogress.state.session import SessionResult, coerce_number

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def _restore(data: dict, key: str, cast):
    if key not in data:
        return None
    value = coerce_number(data[key], cast)
    if value is None:
        logger.warning("Ignoring unreadable save field %r: %r", key, data[key])
    return value


def _collection(data: dict, key: str, kind: type):
    """Return ``data[key]`` if it has the expected container type, else None."""
    if key not in data or data[key] is None:
        return None
    if not isinstance(data[key], kind):
        logger.warning("Ignoring save field %r: expected %s, got %r", key, kind.__name__, data[key])
        return None
    return data[key]


class ProgressionStore:
    """All progression state for one player profile.

    Mutated only through :meth:`complete_session` (plus the explicit
    difficulty selection and save loading). Everything else reads.
    """

    def __init__(
        self,
        tables: Optional[ProgressionTables] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.tables = tables or load_tables()
        self.clock = clock or now_ms
        self._listeners: list[EventListener] = []
        self._seed()

    def _seed(self) -> None:
        self.current_difficulty = DifficultyLevel.INTERN
        self.unlocked_difficulties: list[DifficultyLevel] = [DifficultyLevel.INTERN]
        self.unlocked_specialties: list[str] = list(self.tables.starting_specialties)
        self.shifts_completed = 0
        self.total_questions = 0
        self.overall_accuracy = 0.0
        self.current_streak = 0
        self.best_streak = 0
        self.specialty_performance: dict[str, SpecialtyPerformance] = {
            name: SpecialtyPerformance() for name in self.tables.specialties
        }
        self.weights = AdaptiveWeights.for_topics(self.tables.topics)
        self.milestones: dict[str, bool] = {m.id: False for m in self.tables.milestones}

    def reset(self) -> None:
        """Start the profile over. Tables, clock and subscribers are kept."""
        self._seed()

    # -- events ---------------------------------------------------------

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, outcome: SessionOutcome) -> None:
        for event in outcome.events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception:
                    logger.exception("Event listener failed for %s", event.name)

    # -- session completion ---------------------------------------------

    def complete_session(
        self,
        result: Union[SessionResult, dict, None],
        now: Optional[int] = None,
    ) -> SessionOutcome:
        """Fold one finished shift into the profile and report what changed."""
        if not isinstance(result, SessionResult):
            result = SessionResult.from_dict(result)
        now = self._resolve_now(now)
        outcome = SessionOutcome()

        self.shifts_completed += 1
        if result.questions_answered is not None:
            self.total_questions += result.questions_answered

        session_accuracy = None
        if result.accuracy is not None:
            session_accuracy = clamp(result.accuracy, (0.0, 1.0))
            self._update_overall_accuracy(session_accuracy)

        if result.streak is not None:
            self.current_streak = result.streak
        self.best_streak = max(self.best_streak, self.current_streak)

        for name, breakdown in result.specialty_breakdown.items():
            perf = self.specialty_performance.setdefault(name, SpecialtyPerformance())
            perf.record(breakdown.questions, breakdown.correct, breakdown.missed_topics, now)

        update_topic_weights(self.weights, result.question_results, now)

        # Specialty gates can name a difficulty unlocked just above.
        self._unlock_difficulties(outcome)
        self._unlock_specialties(outcome)
        self._reach_milestones(outcome)

        if session_accuracy is not None:
            adjustment = adjust_difficulty_scaling(self.weights, session_accuracy)
            if adjustment is not None:
                outcome.adjustments.append(adjustment)

        self._publish(outcome)
        return outcome

    def _resolve_now(self, now) -> int:
        resolved = coerce_number(now, int)
        if resolved is None:
            if now is not None:
                logger.warning("Ignoring unusable timestamp %r", now)
            return self.clock()
        return resolved

    def _update_overall_accuracy(self, session_accuracy: float) -> None:
        # Running average over shifts: each new shift is weighted 1/n.
        n = self.shifts_completed
        if n <= 1:
            self.overall_accuracy = session_accuracy
            return
        w = (n - 1) / n
        self.overall_accuracy = self.overall_accuracy * w + session_accuracy * (1 - w)

    def _unlock_difficulties(self, outcome: SessionOutcome) -> None:
        for level in pending_difficulty_unlocks(self, self.tables):
            self.unlocked_difficulties.append(level)
            outcome.difficulties.append(DifficultyUnlocked(level))
            logger.info("Difficulty unlocked: %s", level.display_name)

    def _unlock_specialties(self, outcome: SessionOutcome) -> None:
        for name in pending_specialty_unlocks(self, self.tables):
            self.unlocked_specialties.append(name)
            outcome.specialties.append(SpecialtyUnlocked(name))
            logger.info("Specialty unlocked: %s", name)

    def _reach_milestones(self, outcome: SessionOutcome) -> None:
        for milestone in pending_milestones(self, self.tables):
            self.milestones[milestone.id] = True
            outcome.milestones.append(MilestoneReached(milestone.id, milestone.reward))
            logger.info("Milestone reached: %s", milestone.id)

    # -- queries --------------------------------------------------------

    def score_topics(self, topics: Iterable[str], now: Optional[int] = None) -> dict[str, float]:
        now = self._resolve_now(now)
        return score_topics(
            topics,
            self.weights,
            self.specialty_performance,
            self.tables.topic_specialties,
            now,
        )

    def set_current_difficulty(self, level: Union[DifficultyLevel, str]) -> bool:
        """Select a difficulty. Returns False, changing nothing, if it is locked."""
        parsed = DifficultyLevel.parse(level)
        if parsed is None or parsed not in self.unlocked_difficulties:
            return False
        self.current_difficulty = parsed
        return True

    @property
    def time_limit_seconds(self) -> int:
        return self.current_difficulty.time_limit_seconds

    def weak_topics(self) -> set[str]:
        topics: set[str] = set()
        for perf in self.specialty_performance.values():
            topics |= perf.weak_topics
        return topics

    def get_progression_summary(self) -> dict:
        return {
            "current_difficulty": self.current_difficulty.display_name,
            "unlocked_difficulties_count": len(self.unlocked_difficulties),
            "unlocked_specialties_count": len(self.unlocked_specialties),
            "shifts_completed": self.shifts_completed,
            "overall_accuracy": self.overall_accuracy,
            "best_streak": self.best_streak,
            "total_questions": self.total_questions,
            "next_unlock": next_unlock_info(self, self.tables),
        }

    # -- save / load ----------------------------------------------------

    def get_save_data(self) -> dict:
        return {
            "current_difficulty": self.current_difficulty.value,
            "unlocked_difficulties": [level.value for level in self.unlocked_difficulties],
            "unlocked_specialties": list(self.unlocked_specialties),
            "shifts_completed": self.shifts_completed,
            "total_questions": self.total_questions,
            "overall_accuracy": self.overall_accuracy,
            "current_streak": self.current_streak,
            "best_streak": self.best_streak,
            "specialty_performance": {
                name: perf.to_dict() for name, perf in self.specialty_performance.items()
            },
            "adaptive_weights": self.weights.to_dict(),
            "milestones": dict(self.milestones),
        }

    def load_save_data(self, data: dict) -> None:
        """Restore saved fields. Fields missing from ``data`` keep their values."""
        if not isinstance(data, dict):
            return

        saved_levels = _collection(data, "unlocked_difficulties", list)
        if saved_levels is not None:
            levels = [DifficultyLevel.parse(v) for v in saved_levels]
            highest = max((lvl.rank for lvl in levels if lvl is not None), default=0)
            self.unlocked_difficulties = list(DifficultyLevel)[: highest + 1]

        if "current_difficulty" in data:
            level = DifficultyLevel.parse(data["current_difficulty"])
            if level is not None:
                self.current_difficulty = level
        if self.current_difficulty not in self.unlocked_difficulties:
            self.current_difficulty = DifficultyLevel.INTERN

        saved_specialties = _collection(data, "unlocked_specialties", list)
        if saved_specialties is not None:
            self.unlocked_specialties = [s for s in saved_specialties if isinstance(s, str)]

        for key, cast in (
            ("shifts_completed", int),
            ("total_questions", int),
            ("current_streak", int),
            ("best_streak", int),
        ):
            value = _restore(data, key, cast)
            if value is not None:
                setattr(self, key, value)
        accuracy = _restore(data, "overall_accuracy", float)
        if accuracy is not None:
            self.overall_accuracy = clamp(accuracy, (0.0, 1.0))

        for name, raw in (_collection(data, "specialty_performance", dict) or {}).items():
            try:
                self.specialty_performance[name] = SpecialtyPerformance.from_dict(raw)
            except (AttributeError, TypeError, ValueError, OverflowError):
                logger.warning("Ignoring unreadable performance entry for %r", name)

        if isinstance(data.get("adaptive_weights"), dict):
            try:
                self.weights.load(data["adaptive_weights"])
            except (AttributeError, TypeError, ValueError, OverflowError):
                logger.warning("Ignoring unreadable adaptive weights")

        for milestone_id, achieved in (_collection(data, "milestones", dict) or {}).items():
            self.milestones[milestone_id] = bool(achieved)
