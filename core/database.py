"""
database.py — Local SQLite store for teams, rounds and settings.

Each record is kept as its JSON document (camelCase, as the browser client
writes it) next to the columns used for lookups. Every read goes back
through the pydantic models, so instants come back as datetimes, lap
timestamps included.

All writes are upserts keyed by id (last write wins).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from core.config import AppConfig
from core.models import Round, Team

logger = logging.getLogger("wktimer.db")

SCHEMA_VERSION = 2

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS teams (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    data_json   TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS rounds (
    id            TEXT PRIMARY KEY,
    team_id       TEXT NOT NULL,
    completed_at  TEXT NOT NULL,
    data_json     TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_rounds_team ON rounds(team_id);
CREATE INDEX IF NOT EXISTS idx_rounds_completed ON rounds(completed_at);

CREATE TABLE IF NOT EXISTS settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class StorageError(Exception):
    """Local store failure, including use before open()."""


def get_connection(db_path: Path | str) -> sqlite3.Connection:
    """Return a new connection with WAL mode enabled."""
    conn = sqlite3.connect(str(db_path), timeout=10)
    conn.row_factory = sqlite3.Row
    if str(db_path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


def _newest_first(rounds: list[Round]) -> list[Round]:
    return sorted(rounds, key=lambda r: r.completed_at, reverse=True)


class LocalDatabase:
    """Teams, rounds and settings of one device.

    open() must be called before anything else; every other method raises
    StorageError until then.
    """

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    @classmethod
    def from_config(cls, config: AppConfig) -> LocalDatabase:
        return cls(config.local_db_path)

    # ─── Lifecycle ───────────────────────────────────────────────────

    def open(self) -> None:
        if self._conn is not None:
            return
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = get_connection(self.db_path)
            conn.executescript(SCHEMA_SQL)
            conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError("Failed to open database") from exc
        self._conn = conn
        logger.debug("Opened local database %s", self.db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> LocalDatabase:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _ensure(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database not initialized. Call open() first.")
        return self._conn

    def _read(self, sql: str, params: tuple, failure: str) -> list[sqlite3.Row]:
        conn = self._ensure()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(failure) from exc

    def _write(self, statements: list[tuple[str, tuple]], failure: str) -> None:
        conn = self._ensure()
        try:
            for sql, params in statements:
                conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(failure) from exc

    @staticmethod
    def _load_rounds(rows: list[sqlite3.Row], failure: str) -> list[Round]:
        try:
            return _newest_first([Round.model_validate_json(r["data_json"]) for r in rows])
        except ValidationError as exc:
            raise StorageError(failure) from exc

    # ─── Teams ───────────────────────────────────────────────────────

    def get_all_teams(self) -> list[Team]:
        rows = self._read("SELECT data_json FROM teams ORDER BY created_at ASC, id ASC", (),
                          "Failed to get teams")
        try:
            return [Team.model_validate_json(r["data_json"]) for r in rows]
        except ValidationError as exc:
            raise StorageError("Failed to get teams") from exc

    def save_team(self, team: Team) -> None:
        self._write([(
            "INSERT OR REPLACE INTO teams (id, name, created_at, data_json) VALUES (?, ?, ?, ?)",
            (team.id, team.name, team.created_at.isoformat(),
             team.model_dump_json(by_alias=True)),
        )], "Failed to save team")

    def delete_team(self, team_id: str) -> None:
        """Delete a team together with all of its rounds."""
        self._write([
            ("DELETE FROM teams WHERE id=?", (team_id,)),
            ("DELETE FROM rounds WHERE team_id=?", (team_id,)),
        ], "Failed to delete team")
        logger.info("Deleted team %s and its rounds", team_id)

    # ─── Rounds ──────────────────────────────────────────────────────

    def get_all_rounds(self) -> list[Round]:
        rows = self._read("SELECT data_json FROM rounds", (), "Failed to get rounds")
        return self._load_rounds(rows, "Failed to get rounds")

    def get_rounds_by_team(self, team_id: str) -> list[Round]:
        rows = self._read("SELECT data_json FROM rounds WHERE team_id=?", (team_id,),
                          "Failed to get rounds by team")
        return self._load_rounds(rows, "Failed to get rounds by team")

    def get_round(self, round_id: str) -> Optional[Round]:
        rows = self._read("SELECT data_json FROM rounds WHERE id=?", (round_id,),
                          "Failed to get round")
        rounds = self._load_rounds(rows, "Failed to get round")
        return rounds[0] if rounds else None

    def save_round(self, round_: Round) -> None:
        self._write([(
            "INSERT OR REPLACE INTO rounds (id, team_id, completed_at, data_json) VALUES (?, ?, ?, ?)",
            (round_.id, round_.team_id, round_.completed_at.isoformat(),
             round_.model_dump_json(by_alias=True)),
        )], "Failed to save round")

    def delete_round(self, round_id: str) -> None:
        self._write([("DELETE FROM rounds WHERE id=?", (round_id,))], "Failed to delete round")

    def clear_all_rounds(self) -> None:
        self._write([("DELETE FROM rounds", ())], "Failed to clear rounds")

    # ─── Settings ────────────────────────────────────────────────────

    def get_setting(self, key: str) -> Any:
        """Return the stored value, or None when the key was never set."""
        rows = self._read("SELECT value FROM settings WHERE key=?", (key,), "Failed to get setting")
        return json.loads(rows[0]["value"]) if rows else None

    def set_setting(self, key: str, value: Any) -> None:
        self._write([(
            "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
            (key, json.dumps(value)),
        )], "Failed to set setting")
