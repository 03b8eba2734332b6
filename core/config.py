"""
config.py — Environment-driven settings.

BASE_URL            public origin used in share links and oEmbed documents
ROUNDS_STORAGE_DIR  directory for published round files (./data/rounds)
APP_ENV / NODE_ENV  'test' selects the in-memory shared-round store
LOG_LEVEL           logging level (INFO in production, DEBUG otherwise)
LOCAL_DB_PATH       SQLite file for teams, rounds and settings
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_ROUNDS_STORAGE_DIR = "./data/rounds"
DEFAULT_LOCAL_DB_PATH = "./data/wktimer.db"


def get_base_url(raw: Optional[str], fallback: Optional[str] = None) -> str:
    """Resolve the public base URL without a trailing slash."""
    base_url = (raw or "").strip()
    if base_url and base_url != "/":
        return base_url[:-1] if base_url.endswith("/") else base_url

    url = fallback or DEFAULT_BASE_URL
    return url[:-1] if url.endswith("/") else url


@dataclass
class AppConfig:
    base_url: Optional[str] = None
    rounds_storage_dir: Path = field(default_factory=lambda: Path(DEFAULT_ROUNDS_STORAGE_DIR))
    environment: str = "development"
    log_level: str = "DEBUG"
    local_db_path: Path = field(default_factory=lambda: Path(DEFAULT_LOCAL_DB_PATH))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
        env = os.environ if environ is None else environ
        environment = env.get("APP_ENV") or env.get("NODE_ENV") or "development"
        default_level = "INFO" if environment == "production" else "DEBUG"
        return cls(
            base_url=env.get("BASE_URL"),
            rounds_storage_dir=Path(env.get("ROUNDS_STORAGE_DIR") or DEFAULT_ROUNDS_STORAGE_DIR),
            environment=environment,
            log_level=(env.get("LOG_LEVEL") or default_level).upper(),
            local_db_path=Path(env.get("LOCAL_DB_PATH") or DEFAULT_LOCAL_DB_PATH),
        )

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    def resolve_base_url(self, fallback: Optional[str] = None) -> str:
        return get_base_url(self.base_url, fallback)
