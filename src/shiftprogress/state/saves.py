"""SQLite-backed save slots, one progression snapshot per profile."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional


class SaveStore:
    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or (Path.home() / ".shiftprogress" / "saves.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS saves (
                    profile TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def get(self, profile: str) -> Optional[dict]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT data FROM saves WHERE profile = ?",
                (profile,),
            ).fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def save(self, profile: str, data: dict) -> None:
        now = datetime.now().isoformat()
        with self._conn() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO saves (profile, data, updated_at)
                   VALUES (?, ?, ?)""",
                (profile, json.dumps(data), now),
            )

    def updated_at(self, profile: str) -> Optional[str]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT updated_at FROM saves WHERE profile = ?",
                (profile,),
            ).fetchone()
        return row[0] if row else None

    def list_profiles(self) -> list[str]:
        with self._conn() as conn:
            rows = conn.execute("SELECT profile FROM saves ORDER BY profile").fetchall()
        return [r[0] for r in rows]

    def delete(self, profile: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM saves WHERE profile = ?", (profile,))
