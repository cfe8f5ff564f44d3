"""Configuration model for shiftprogress."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from shiftprogress.engine.tables import ProgressionTables, load_tables

DEFAULT_DATA_DIR = Path.home() / ".shiftprogress"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    tables_path: Optional[Path] = Field(default=None)
    profile: str = "default"
    autosave: bool = True
    log_level: str = "WARNING"

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "Settings":
        """Read ``config.yaml`` from ``data_dir``, the file :meth:`save` writes."""
        data_dir = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR
        config_path = data_dir / "config.yaml"
        data = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        data.setdefault("data_dir", data_dir)
        return cls(**data)

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

    def get_profile(self) -> str:
        return os.environ.get("SHIFTPROGRESS_PROFILE") or self.profile

    def get_log_level(self) -> str:
        return (os.environ.get("SHIFTPROGRESS_LOG_LEVEL") or self.log_level).upper()

    @property
    def saves_path(self) -> Path:
        return self.data_dir / "saves.db"

    def load_tables(self) -> ProgressionTables:
        return load_tables(self.tables_path)
