"""One-shot milestones over cumulative stats."""

from __future__ import annotations

from shiftprogress.engine.tables import MilestoneDefinition, ProgressionTables


def milestone_met(store, milestone: MilestoneDefinition) -> bool:
    if milestone.shifts is not None and store.shifts_completed < milestone.shifts:
        return False
    if milestone.accuracy is not None and store.overall_accuracy < milestone.accuracy:
        return False
    if milestone.streak is not None and store.best_streak < milestone.streak:
        return False
    if milestone.questions is not None and store.total_questions < milestone.questions:
        return False
    return True


def pending_milestones(store, tables: ProgressionTables) -> list[MilestoneDefinition]:
    """Milestones not yet achieved whose every present predicate passes."""
    return [
        m for m in tables.milestones
        if not store.milestones.get(m.id, False) and milestone_met(store, m)
    ]
