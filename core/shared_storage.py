"""
shared_storage.py — Storage for publicly shared rounds.

One JSON document per round id. Two backends behind the same contract:
  FileSystemRoundStorage  {storage_dir}/{uuid}.json, pretty-printed UTF-8
  MemoryRoundStorage      process-local dict, for tests

RoundStorageProvider picks the backend from AppConfig and lets tests swap
it (set/reset) without module-level state.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from core.config import AppConfig

logger = logging.getLogger("wktimer.storage")

# RFC 4122: version nibble 1-5, variant nibble 8/9/a/b
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class RoundStorageError(Exception):
    """Shared-round backend failure (I/O, corrupt document)."""


class InvalidRoundIdError(RoundStorageError):
    """Round id is not a UUID; raised before any path is built."""

    def __init__(self, round_id: object) -> None:
        self.round_id = round_id
        super().__init__("Invalid round ID (potential path traversal detected)")


def is_valid_round_id(round_id: object) -> bool:
    # fullmatch: '$' alone would accept a trailing newline
    return isinstance(round_id, str) and _UUID_RE.fullmatch(round_id) is not None


class RoundStorage(ABC):
    """store() always overwrites; retrieve() returns None for unknown ids."""

    @abstractmethod
    def store(self, data: dict) -> None: ...

    @abstractmethod
    def retrieve(self, round_id: str) -> Optional[dict]: ...


class FileSystemRoundStorage(RoundStorage):

    def __init__(self, storage_dir: Path | str = "./data/rounds") -> None:
        self.storage_dir = Path(storage_dir)

    def _path_for(self, round_id: object) -> Path:
        if not is_valid_round_id(round_id):
            raise InvalidRoundIdError(round_id)
        return self.storage_dir / f"{round_id}.json"

    def store(self, data: dict) -> None:
        round_id = data.get("id")
        path = self._path_for(round_id)
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to store round %s: %s", round_id, exc)
            raise RoundStorageError(f"Failed to store round: {exc}") from exc
        logger.debug("Stored shared round %s at %s", round_id, path)

    def retrieve(self, round_id: str) -> Optional[dict]:
        path = self._path_for(round_id)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.error("Failed to retrieve round %s: %s", round_id, exc)
            raise RoundStorageError(f"Failed to retrieve round: {exc}") from exc


class MemoryRoundStorage(RoundStorage):
    """Copies on the way in and out so callers never share nested lists."""

    def __init__(self) -> None:
        self._rounds: dict[str, dict] = {}

    def store(self, data: dict) -> None:
        round_id = data.get("id")
        if not round_id:
            raise RoundStorageError("Round document has no id")
        self._rounds[round_id] = copy.deepcopy(data)

    def retrieve(self, round_id: str) -> Optional[dict]:
        data = self._rounds.get(round_id)
        return copy.deepcopy(data) if data is not None else None

    def clear(self) -> None:
        self._rounds.clear()

    def size(self) -> int:
        return len(self._rounds)

    def has(self, round_id: str) -> bool:
        return round_id in self._rounds


def create_round_storage(config: AppConfig) -> RoundStorage:
    if config.is_test:
        return MemoryRoundStorage()
    return FileSystemRoundStorage(config.rounds_storage_dir)


class RoundStorageProvider:
    """Holds the active backend for one application instance."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._storage: Optional[RoundStorage] = None

    def get(self) -> RoundStorage:
        if self._storage is None:
            self._storage = create_round_storage(self.config)
            logger.info("Shared-round storage: %s", type(self._storage).__name__)
        return self._storage

    def set(self, storage: RoundStorage) -> None:
        self._storage = storage

    def reset(self) -> None:
        self._storage = None
