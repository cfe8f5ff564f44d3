"""Typed progression events and the per-session outcome that collects them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Union

from shiftprogress.engine.difficulty import DifficultyLevel

INCREASE_DIFFICULTY = "increase_difficulty"
DECREASE_DIFFICULTY = "decrease_difficulty"


@dataclass(frozen=True)
class DifficultyUnlocked:
    level: DifficultyLevel
    name = "difficultyUnlocked"

    def to_dict(self) -> dict:
        return {"event": self.name, "level": self.level.value}


@dataclass(frozen=True)
class SpecialtyUnlocked:
    specialty: str
    name = "specialtyUnlocked"

    def to_dict(self) -> dict:
        return {"event": self.name, "specialty": self.specialty}


@dataclass(frozen=True)
class MilestoneReached:
    milestone_id: str
    reward: str = ""
    name = "milestoneReached"

    def to_dict(self) -> dict:
        return {"event": self.name, "milestoneId": self.milestone_id, "reward": self.reward}


@dataclass(frozen=True)
class AdaptiveAdjustmentMade:
    kind: str  # INCREASE_DIFFICULTY or DECREASE_DIFFICULTY
    scaling: float
    name = "adaptiveAdjustmentMade"

    def to_dict(self) -> dict:
        return {"event": self.name, "kind": self.kind, "scaling": self.scaling}


ProgressionEvent = Union[
    DifficultyUnlocked, SpecialtyUnlocked, MilestoneReached, AdaptiveAdjustmentMade
]
EventListener = Callable[[ProgressionEvent], None]


@dataclass
class SessionOutcome:
    """Everything one completed session unlocked, reached or adjusted."""
    difficulties: list[DifficultyUnlocked] = field(default_factory=list)
    specialties: list[SpecialtyUnlocked] = field(default_factory=list)
    milestones: list[MilestoneReached] = field(default_factory=list)
    adjustments: list[AdaptiveAdjustmentMade] = field(default_factory=list)

    @property
    def events(self) -> list[ProgressionEvent]:
        return [*self.difficulties, *self.specialties, *self.milestones, *self.adjustments]

    def to_dict(self) -> dict:
        return {"events": [e.to_dict() for e in self.events]}
