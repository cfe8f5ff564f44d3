"""Difficulty levels and their per-question time limits."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DifficultyLevel(str, Enum):
    INTERN = "intern"
    RESIDENT = "resident"
    ATTENDING = "attending"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def rank(self) -> int:
        return list(DifficultyLevel).index(self)

    @property
    def time_limit_seconds(self) -> int:
        return {
            DifficultyLevel.INTERN: 45,
            DifficultyLevel.RESIDENT: 35,
            DifficultyLevel.ATTENDING: 25,
        }[self]

    def previous(self) -> Optional["DifficultyLevel"]:
        levels = list(DifficultyLevel)
        return levels[self.rank - 1] if self.rank > 0 else None

    @classmethod
    def parse(cls, value) -> Optional["DifficultyLevel"]:
        """Resolve a level from an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None
