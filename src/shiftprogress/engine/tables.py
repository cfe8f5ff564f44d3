"""Static unlock, specialty, topic and milestone tables.

Tables are data: they ship as ``data/progression.yaml`` and can be replaced
with another YAML file through ``Settings.tables_path``. Nothing here is
mutated at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import yaml

from shiftprogress.engine.difficulty import DifficultyLevel

DEFAULT_TABLES_PATH = Path(__file__).parent.parent / "data" / "progression.yaml"

MASTERY_THRESHOLD = 0.8


@dataclass(frozen=True)
class UnlockRequirement:
    """Gate for a difficulty level. Only fields that are set are checked."""
    shifts: Optional[int] = None
    accuracy: Optional[float] = None
    min_questions: Optional[int] = None
    streak: Optional[int] = None

    def fields(self) -> Iterator[tuple[str, float]]:
        for name in ("shifts", "accuracy", "min_questions", "streak"):
            value = getattr(self, name)
            if value is not None:
                yield name, value


@dataclass(frozen=True)
class SpecialtyRequirement:
    shifts: Optional[int] = None
    accuracy: Optional[float] = None
    difficulty: Optional[DifficultyLevel] = None
    mastery_of: Optional[str] = None
    mastery_threshold: float = MASTERY_THRESHOLD

    @property
    def is_empty(self) -> bool:
        return (
            self.shifts is None
            and self.accuracy is None
            and self.difficulty is None
            and self.mastery_of is None
        )


@dataclass(frozen=True)
class MilestoneDefinition:
    id: str
    title: str = ""
    reward: str = ""
    shifts: Optional[int] = None
    accuracy: Optional[float] = None
    streak: Optional[int] = None  # compared against the best streak
    questions: Optional[int] = None


@dataclass(frozen=True)
class ProgressionTables:
    difficulty_requirements: dict[DifficultyLevel, UnlockRequirement] = field(default_factory=dict)
    specialties: list[str] = field(default_factory=list)  # table order
    starting_specialties: list[str] = field(default_factory=list)
    specialty_requirements: dict[str, SpecialtyRequirement] = field(default_factory=dict)
    topic_specialties: dict[str, str] = field(default_factory=dict)
    milestones: list[MilestoneDefinition] = field(default_factory=list)
    version: str = ""

    @property
    def topics(self) -> list[str]:
        return list(self.topic_specialties)

    def topics_for(self, specialty: str) -> list[str]:
        return [t for t, s in self.topic_specialties.items() if s == specialty]


def _parse_difficulty(raw) -> DifficultyLevel:
    level = DifficultyLevel.parse(raw)
    if level is None:
        raise ValueError(f"Unknown difficulty level in tables: {raw!r}")
    return level


def _parse_unlock_requirement(raw: dict) -> UnlockRequirement:
    return UnlockRequirement(
        shifts=raw.get("shifts"),
        accuracy=raw.get("accuracy"),
        min_questions=raw.get("min_questions"),
        streak=raw.get("streak"),
    )


def _parse_specialty_requirement(raw: Optional[dict]) -> SpecialtyRequirement:
    if not raw:
        return SpecialtyRequirement()
    difficulty = raw.get("difficulty")
    return SpecialtyRequirement(
        shifts=raw.get("shifts"),
        accuracy=raw.get("accuracy"),
        difficulty=_parse_difficulty(difficulty) if difficulty is not None else None,
        mastery_of=raw.get("mastery_of"),
        mastery_threshold=raw.get("mastery_threshold", MASTERY_THRESHOLD),
    )


def _parse_milestone(raw: dict) -> MilestoneDefinition:
    if "id" not in raw:
        raise ValueError(f"Milestone entry without an id: {raw!r}")
    return MilestoneDefinition(
        id=str(raw["id"]),
        title=raw.get("title", ""),
        reward=raw.get("reward", ""),
        shifts=raw.get("shifts"),
        accuracy=raw.get("accuracy"),
        streak=raw.get("streak"),
        questions=raw.get("questions"),
    )


def parse_tables(data: dict) -> ProgressionTables:
    """Build tables from the mapping under the top-level ``tables`` key."""
    if not isinstance(data, dict):
        raise ValueError("Progression tables must be a mapping")

    difficulty_requirements = {
        _parse_difficulty(name): _parse_unlock_requirement(req or {})
        for name, req in (data.get("difficulties") or {}).items()
    }

    specialties: list[str] = []
    specialty_requirements: dict[str, SpecialtyRequirement] = {}
    topic_specialties: dict[str, str] = {}
    for name, entry in (data.get("specialties") or {}).items():
        entry = entry or {}
        specialties.append(name)
        specialty_requirements[name] = _parse_specialty_requirement(entry.get("requires"))
        for topic in entry.get("topics") or []:
            topic_specialties[topic] = name

    return ProgressionTables(
        difficulty_requirements=difficulty_requirements,
        specialties=specialties,
        starting_specialties=list(data.get("starting_specialties") or []),
        specialty_requirements=specialty_requirements,
        topic_specialties=topic_specialties,
        milestones=[_parse_milestone(m) for m in data.get("milestones") or []],
        version=str(data.get("version", "")),
    )


def load_tables(path: Optional[Path] = None) -> ProgressionTables:
    """Load progression tables from a YAML file (bundled tables by default)."""
    path = path or DEFAULT_TABLES_PATH
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if isinstance(raw, dict) and "tables" in raw:
        raw = raw["tables"]
    return parse_tables(raw)
