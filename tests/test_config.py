"""Tests for core/config.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import DEFAULT_BASE_URL, AppConfig, get_base_url


@pytest.mark.parametrize("raw, expected", [
    ("https://timer.example.org", "https://timer.example.org"),
    ("https://timer.example.org/", "https://timer.example.org"),
    ("  https://timer.example.org/  ", "https://timer.example.org"),
    (None, DEFAULT_BASE_URL),
    ("", DEFAULT_BASE_URL),
    ("   ", DEFAULT_BASE_URL),
    ("/", DEFAULT_BASE_URL),
])
def test_get_base_url(raw, expected) -> None:
    assert get_base_url(raw) == expected


def test_get_base_url_uses_request_origin_fallback() -> None:
    assert get_base_url(None, "http://testserver/") == "http://testserver"


def test_from_env_defaults() -> None:
    config = AppConfig.from_env({})
    assert config.environment == "development"
    assert config.base_url is None
    assert config.rounds_storage_dir == Path("./data/rounds")
    assert config.log_level == "DEBUG"
    assert not config.is_test


def test_from_env_values() -> None:
    config = AppConfig.from_env({
        "NODE_ENV": "production",
        "BASE_URL": "https://timer.example.org/",
        "ROUNDS_STORAGE_DIR": "/srv/rounds",
        "LOCAL_DB_PATH": "/srv/local.db",
    })
    assert config.environment == "production"
    assert config.log_level == "INFO"
    assert config.rounds_storage_dir == Path("/srv/rounds")
    assert config.local_db_path == Path("/srv/local.db")
    assert config.resolve_base_url() == "https://timer.example.org"


def test_app_env_wins_over_node_env() -> None:
    config = AppConfig.from_env({"APP_ENV": "test", "NODE_ENV": "production", "LOG_LEVEL": "warning"})
    assert config.is_test
    assert config.log_level == "WARNING"
