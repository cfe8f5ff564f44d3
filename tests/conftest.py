"""Shared fixtures for shiftprogress tests."""

from __future__ import annotations

import pytest
import yaml

from shiftprogress.engine.tables import load_tables
from shiftprogress.state.progression import ProgressionStore

NOW = 1_700_000_000_000
HOUR_MS = 3_600_000


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    """Fresh store on the bundled tables with a frozen clock."""
    return ProgressionStore(clock=lambda: NOW)


@pytest.fixture
def tables_file(tmp_path):
    """A small tables file covering every requirement shape."""
    data = {
        "tables": {
            "version": "test",
            "difficulties": {
                "resident": {"shifts": 2, "accuracy": 0.5, "min_questions": 10},
                "attending": {"shifts": 3, "accuracy": 0.5, "min_questions": 20, "streak": 3},
            },
            "starting_specialties": ["Internal Medicine"],
            "specialties": {
                "Internal Medicine": {"topics": ["Pneumonia", "Hypertension"]},
                "Dermatology": {"topics": ["Eczema"]},
                "Surgery": {
                    "requires": {"difficulty": "attending"},
                    "topics": ["Appendicitis"],
                },
                "Oncology": {
                    "requires": {"mastery_of": "Internal Medicine"},
                    "topics": ["Lymphoma"],
                },
            },
            "milestones": [
                {"id": "first", "title": "First", "reward": "Badge", "shifts": 1},
                {"id": "streaker", "reward": "Mug", "streak": 3, "accuracy": 0.5},
            ],
        }
    }
    path = tmp_path / "tables.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f, sort_keys=False)
    return path


@pytest.fixture
def small_tables(tables_file):
    return load_tables(tables_file)


@pytest.fixture
def small_store(small_tables):
    return ProgressionStore(tables=small_tables, clock=lambda: NOW)
