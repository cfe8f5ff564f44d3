"""Server handler: dispatches JSON-lines requests to the progression store."""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Optional

from shiftprogress.config.settings import Settings
from shiftprogress.engine.difficulty import DifficultyLevel
from shiftprogress.state.progression import ProgressionStore
from shiftprogress.state.saves import SaveStore

from .protocol import Notification

logger = logging.getLogger(__name__)


def _summary_to_dict(summary: dict) -> dict:
    """Serialize a progression summary with the client's key names."""
    return {
        "currentDifficultyName": summary["current_difficulty"],
        "unlockedDifficultiesCount": summary["unlocked_difficulties_count"],
        "unlockedSpecialtiesCount": summary["unlocked_specialties_count"],
        "shiftsCompleted": summary["shifts_completed"],
        "overallAccuracy": summary["overall_accuracy"],
        "bestStreak": summary["best_streak"],
        "totalQuestions": summary["total_questions"],
        "nextUnlockInfo": summary["next_unlock"],
    }


class ServerHandler:
    """Routes incoming requests to store methods and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        saves: Optional[SaveStore] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.profile = self.settings.get_profile()
        self.saves = saves or SaveStore(db_path=self.settings.saves_path)
        self.store = ProgressionStore(tables=self.settings.load_tables())
        self.store.subscribe(self._on_event)
        self._restore_profile()

    def _on_event(self, event) -> None:
        self._write_notification(Notification.for_event(event))

    def _restore_profile(self) -> None:
        try:
            data = self.saves.get(self.profile)
        except (sqlite3.Error, ValueError):
            logger.exception("Could not read save slot %r; starting fresh", self.profile)
            return
        if data is not None:
            self.store.load_save_data(data)
            logger.info("Loaded save slot %r", self.profile)

    def _autosave(self) -> bool:
        """Mirror the store to disk. State stays as-is if the write fails."""
        if not self.settings.autosave:
            return False
        try:
            self.saves.save(self.profile, self.store.get_save_data())
        except sqlite3.Error:
            logger.exception("Autosave failed for profile %r", self.profile)
            return False
        return True

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params") or {}

        handler_map = {
            "completeSession": self._complete_session,
            "scoreTopics": self._score_topics,
            "setCurrentDifficulty": self._set_current_difficulty,
            "getProgressionSummary": self._get_progression_summary,
            "getDifficulties": self._get_difficulties,
            "getSaveData": self._get_save_data,
            "loadSaveData": self._load_save_data,
            "resetProfile": self._reset_profile,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    async def _complete_session(self, params: dict) -> dict:
        outcome = self.store.complete_session(params, now=params.get("now"))
        saved = self._autosave()
        return {
            "events": [e.to_dict() for e in outcome.events],
            "summary": _summary_to_dict(self.store.get_progression_summary()),
            "saved": saved,
        }

    async def _score_topics(self, params: dict) -> dict:
        topics = params.get("topics")
        if not isinstance(topics, list):
            raise ValueError("scoreTopics requires a 'topics' list")
        scores = self.store.score_topics(topics, now=params.get("now"))
        return {"scores": scores}

    async def _set_current_difficulty(self, params: dict) -> dict:
        level = DifficultyLevel.parse(params.get("level"))
        if level is None:
            raise ValueError(f"Unknown difficulty: {params.get('level')}")
        ok = self.store.set_current_difficulty(level)
        if ok:
            self._autosave()
        return {
            "ok": ok,
            "currentDifficulty": self.store.current_difficulty.value,
            "timeLimitSeconds": self.store.time_limit_seconds,
        }

    async def _get_progression_summary(self, params: dict) -> dict:
        return _summary_to_dict(self.store.get_progression_summary())

    async def _get_difficulties(self, params: dict) -> dict:
        return {
            "difficulties": [
                {
                    "level": level.value,
                    "name": level.display_name,
                    "timeLimitSeconds": level.time_limit_seconds,
                    "unlocked": level in self.store.unlocked_difficulties,
                    "current": level == self.store.current_difficulty,
                }
                for level in DifficultyLevel
            ]
        }

    async def _get_save_data(self, params: dict) -> dict:
        return {"data": self.store.get_save_data()}

    async def _load_save_data(self, params: dict) -> dict:
        data = params.get("data")
        if not isinstance(data, dict):
            raise ValueError("loadSaveData requires a 'data' object")
        self.store.reset()
        self.store.load_save_data(data)
        self._autosave()
        return _summary_to_dict(self.store.get_progression_summary())

    async def _reset_profile(self, params: dict) -> dict:
        self.store.reset()
        try:
            self.saves.delete(self.profile)
        except sqlite3.Error:
            logger.exception("Could not delete save slot for profile %r", self.profile)
            return {"ok": True, "deleted": False}
        return {"ok": True, "deleted": True}
