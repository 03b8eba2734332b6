"""Shared test fixtures: lap fixtures, local database, app client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from core.config import AppConfig
from core.database import LocalDatabase
from core.models import Lap
from core.shared_storage import MemoryRoundStorage
from server import create_app
from tests.factories import BASE_URL, LAP_TIMES, ROUND_ID, make_laps


@pytest.fixture
def full_laps() -> list[Lap]:
    return make_laps(LAP_TIMES)


@pytest.fixture
def db():
    database = LocalDatabase(":memory:")
    database.open()
    yield database
    database.close()


@pytest.fixture
def test_config(tmp_path) -> AppConfig:
    return AppConfig(
        base_url=BASE_URL,
        rounds_storage_dir=tmp_path / "rounds",
        environment="test",
        log_level="DEBUG",
        local_db_path=tmp_path / "wktimer.db",
    )


@pytest.fixture
def storage() -> MemoryRoundStorage:
    return MemoryRoundStorage()


@pytest.fixture
def app(test_config, storage):
    return create_app(test_config, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def shared_payload() -> dict:
    return {
        "id": ROUND_ID,
        "completedAt": "2024-05-11T09:35:00Z",
        "totalTime": 135000,
        "laps": [
            {"lapNumber": i + 1, "time": t, "timestamp": "2024-05-11T09:30:10Z"}
            for i, t in enumerate(LAP_TIMES)
        ],
        "teamName": "Jugendfeuerwehr Nord",
        "description": "Kreisentscheid 2024",
    }
