"""Tests for difficulty and specialty unlock gates."""

import pytest

from shiftprogress.engine.difficulty import DifficultyLevel
from shiftprogress.engine.unlocks import next_unlock_info

LEVELS = list(DifficultyLevel)


def _shift(accuracy=0.8, questions=60, streak=0, **extra):
    return {"accuracy": accuracy, "questionsAnswered": questions, "streak": streak, **extra}


def test_resident_unlocks_after_five_shifts(store):
    """Five 80% shifts of 60 questions, streak climbing to 10."""
    outcomes = [store.complete_session(_shift(streak=s)) for s in (2, 4, 6, 8, 10)]

    assert store.unlocked_difficulties == [DifficultyLevel.INTERN, DifficultyLevel.RESIDENT]
    assert DifficultyLevel.ATTENDING not in store.unlocked_difficulties
    assert [e.level for e in outcomes[-1].difficulties] == [DifficultyLevel.RESIDENT]
    assert all(not o.difficulties for o in outcomes[:-1])


def test_attending_needs_streak(store):
    for _ in range(15):
        store.complete_session(_shift(accuracy=0.9, streak=5))
    assert store.unlocked_difficulties == LEVELS[:2]

    outcome = store.complete_session(_shift(accuracy=0.9, streak=10))
    assert [e.level for e in outcome.difficulties] == [DifficultyLevel.ATTENDING]


def test_unlocks_remain_a_prefix(store):
    for i in range(20):
        store.complete_session(_shift(accuracy=0.3 + (i % 7) / 10, questions=15, streak=i))
        n = len(store.unlocked_difficulties)
        assert store.unlocked_difficulties == LEVELS[:n]


def test_each_unlock_fires_once(store):
    events = []
    for _ in range(25):
        events.extend(store.complete_session(_shift(accuracy=0.95, streak=12)).events)

    unlocked = [e.level for e in events if e.name == "difficultyUnlocked"]
    specialties = [e.specialty for e in events if e.name == "specialtyUnlocked"]
    milestones = [e.milestone_id for e in events if e.name == "milestoneReached"]

    assert unlocked == [DifficultyLevel.RESIDENT, DifficultyLevel.ATTENDING]
    assert len(specialties) == len(set(specialties))
    assert len(milestones) == len(set(milestones))


def test_both_levels_can_unlock_in_one_pass(small_store):
    """Attending is checked right after Resident unlocks in the same pass."""
    small_store.load_save_data({
        "shifts_completed": 5,
        "overall_accuracy": 0.9,
        "total_questions": 100,
        "best_streak": 5,
    })
    outcome = small_store.complete_session({"accuracy": 0.9})
    assert [e.level for e in outcome.difficulties] == LEVELS[1:]


class TestSpecialtyUnlocks:
    def test_cardiology_after_three_shifts(self, store):
        store.complete_session(_shift())
        store.complete_session(_shift())
        assert "Cardiology" not in store.unlocked_specialties

        outcome = store.complete_session(_shift())
        assert [e.specialty for e in outcome.specialties] == ["Cardiology"]

    def test_zero_requirement_specialty_unlocks_immediately(self, small_store):
        assert small_store.unlocked_specialties == ["Internal Medicine"]
        outcome = small_store.complete_session({})
        assert [e.specialty for e in outcome.specialties] == ["Dermatology"]

    def test_required_difficulty_same_session(self, small_store):
        """A difficulty unlocked this session counts for specialty gates."""
        small_store.complete_session(_shift(accuracy=0.9, questions=10, streak=3))
        small_store.complete_session(_shift(accuracy=0.9, questions=10, streak=3))
        assert "Surgery" not in small_store.unlocked_specialties

        outcome = small_store.complete_session(_shift(accuracy=0.9, questions=10, streak=3))
        assert [e.level for e in outcome.difficulties] == [DifficultyLevel.ATTENDING]
        assert "Surgery" in [e.specialty for e in outcome.specialties]

    def test_mastery_requirement(self, small_store):
        breakdown = {"Internal Medicine": {"questions": 25, "correct": 20}}
        small_store.complete_session({"perSpecialtyBreakdown": breakdown})
        assert "Oncology" not in small_store.unlocked_specialties  # mastery 0.4

        outcome = small_store.complete_session({"perSpecialtyBreakdown": breakdown})
        assert "Oncology" in [e.specialty for e in outcome.specialties]  # mastery 0.8


class TestNextUnlockInfo:
    def test_fresh_store_points_at_resident(self, store):
        info = next_unlock_info(store, store.tables)
        assert info["kind"] == "difficulty"
        assert info["name"] == "Resident"
        assert info["requirements"]["shifts"] == {"current": 0, "required": 5, "progress": 0.0}
        assert set(info["requirements"]) == {"shifts", "accuracy", "min_questions"}
        assert info["progress"] == 0.0

    def test_partial_progress(self, store):
        store.complete_session(_shift(accuracy=0.7, questions=25))
        req = next_unlock_info(store, store.tables)["requirements"]
        assert req["shifts"]["progress"] == pytest.approx(0.2)
        assert req["accuracy"]["progress"] == pytest.approx(1.0)
        assert req["min_questions"]["progress"] == pytest.approx(0.5)

    def test_specialty_after_all_difficulties(self, store):
        store.load_save_data({"unlocked_difficulties": ["intern", "resident", "attending"]})
        info = next_unlock_info(store, store.tables)
        assert info["kind"] == "specialty"
        assert info["name"] == "Cardiology"

    def test_nothing_left(self, small_store):
        small_store.load_save_data({
            "unlocked_difficulties": ["attending"],
            "unlocked_specialties": small_store.tables.specialties,
        })
        assert next_unlock_info(small_store, small_store.tables) is None
