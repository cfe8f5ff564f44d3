"""Difficulty and specialty unlock gates.

Every check compares the store's cumulative stats against the static tables.
Only the requirement fields that are set take part, and all of them must
pass.
"""

from __future__ import annotations

from typing import Optional

from shiftprogress.engine.difficulty import DifficultyLevel
from shiftprogress.engine.tables import (
    ProgressionTables,
    SpecialtyRequirement,
    UnlockRequirement,
)


def _difficulty_stat(store, name: str) -> float:
    return {
        "shifts": store.shifts_completed,
        "accuracy": store.overall_accuracy,
        "min_questions": store.total_questions,
        "streak": store.best_streak,
    }[name]


def difficulty_checks(store, requirement: UnlockRequirement) -> dict[str, tuple[float, float]]:
    """Map each present requirement field to ``(current, required)``."""
    return {
        name: (_difficulty_stat(store, name), required)
        for name, required in requirement.fields()
    }


def specialty_checks(store, requirement: SpecialtyRequirement) -> dict[str, tuple[float, float]]:
    checks: dict[str, tuple[float, float]] = {}
    if requirement.shifts is not None:
        checks["shifts"] = (store.shifts_completed, requirement.shifts)
    if requirement.accuracy is not None:
        checks["accuracy"] = (store.overall_accuracy, requirement.accuracy)
    if requirement.difficulty is not None:
        unlocked = requirement.difficulty in store.unlocked_difficulties
        checks["difficulty"] = (1.0 if unlocked else 0.0, 1.0)
    if requirement.mastery_of is not None:
        perf = store.specialty_performance.get(requirement.mastery_of)
        mastery = perf.mastery_level if perf is not None else 0.0
        checks["mastery"] = (mastery, requirement.mastery_threshold)
    return checks


def _passes(checks: dict[str, tuple[float, float]]) -> bool:
    return all(current >= required for current, required in checks.values())


def pending_difficulty_unlocks(store, tables: ProgressionTables) -> list[DifficultyLevel]:
    """Levels that qualify now, in ascending order.

    A level is only considered once its predecessor is unlocked, which
    includes a predecessor that qualified earlier in the same pass.
    """
    unlocked = set(store.unlocked_difficulties)
    pending: list[DifficultyLevel] = []
    for level in DifficultyLevel:
        if level in unlocked:
            continue
        previous = level.previous()
        if previous is not None and previous not in unlocked:
            break
        requirement = tables.difficulty_requirements.get(level)
        if requirement is None or not _passes(difficulty_checks(store, requirement)):
            break
        unlocked.add(level)
        pending.append(level)
    return pending


def pending_specialty_unlocks(store, tables: ProgressionTables) -> list[str]:
    """Locked specialties whose requirements all pass, in table order."""
    pending = []
    for name in tables.specialties:
        if name in store.unlocked_specialties:
            continue
        requirement = tables.specialty_requirements.get(name, SpecialtyRequirement())
        if _passes(specialty_checks(store, requirement)):
            pending.append(name)
    return pending


def _progress_report(kind: str, name: str, checks: dict[str, tuple[float, float]]) -> dict:
    requirements = {}
    for field_name, (current, required) in checks.items():
        progress = 1.0 if required <= 0 else min(1.0, current / required)
        requirements[field_name] = {
            "current": current,
            "required": required,
            "progress": progress,
        }
    overall = (
        sum(r["progress"] for r in requirements.values()) / len(requirements)
        if requirements else 1.0
    )
    return {"kind": kind, "name": name, "requirements": requirements, "progress": overall}


def next_unlock_info(store, tables: ProgressionTables) -> Optional[dict]:
    """Describe the next unlock: the next difficulty level, else the first
    locked specialty in table order, else ``None``."""
    for level in DifficultyLevel:
        if level in store.unlocked_difficulties:
            continue
        requirement = tables.difficulty_requirements.get(level)
        if requirement is not None:
            return _progress_report(
                "difficulty", level.display_name, difficulty_checks(store, requirement)
            )
        break

    for name in tables.specialties:
        if name in store.unlocked_specialties:
            continue
        requirement = tables.specialty_requirements.get(name, SpecialtyRequirement())
        return _progress_report("specialty", name, specialty_checks(store, requirement))
    return None
