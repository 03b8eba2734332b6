"""Tests for core/team_context.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.team_context import (
    DEFAULT_TEAM_ID,
    DEFAULT_TEAM_NAME,
    SELECTED_TEAM_SETTING,
    TEAM_COLORS,
    TeamError,
    TeamSession,
)
from tests.factories import make_round


@pytest.fixture
def session(db) -> TeamSession:
    s = TeamSession(db)
    s.load()
    return s


def test_first_load_creates_default_team(db) -> None:
    session = TeamSession(db)
    teams = session.load()

    assert [t.id for t in teams] == [DEFAULT_TEAM_ID]
    assert teams[0].name == DEFAULT_TEAM_NAME
    assert teams[0].color == TEAM_COLORS[0]
    assert session.current_team().id == DEFAULT_TEAM_ID
    assert db.get_setting(SELECTED_TEAM_SETTING) == DEFAULT_TEAM_ID


def test_selection_survives_reload(db, session) -> None:
    team = session.create_team("Jugendfeuerwehr Nord")
    session.select_team(team.id)

    reloaded = TeamSession(db)
    reloaded.load()
    assert reloaded.current_team().name == "Jugendfeuerwehr Nord"


def test_stale_selection_falls_back_to_first_team(db, session) -> None:
    db.set_setting(SELECTED_TEAM_SETTING, "gone")
    reloaded = TeamSession(db)
    reloaded.load()
    assert reloaded.selected_team_id == DEFAULT_TEAM_ID


def test_create_team_cycles_colors(session) -> None:
    created = [session.create_team(f"Team {i}") for i in range(len(TEAM_COLORS))]
    assert created[0].color == TEAM_COLORS[1]
    assert created[-1].color == TEAM_COLORS[0]
    assert len({t.id for t in session.teams}) == len(TEAM_COLORS) + 1


def test_create_team_rejects_blank_name(session) -> None:
    with pytest.raises(TeamError):
        session.create_team("   ")


def test_update_team(db, session) -> None:
    updated = session.update_team(DEFAULT_TEAM_ID, "  Staffel A ", average_age=12.5)
    assert updated.name == "Staffel A"
    assert updated.average_age == 12.5
    assert session.current_team().average_age == 12.5
    assert db.get_all_teams()[0].name == "Staffel A"


def test_update_team_rejects_bad_age(db, session) -> None:
    with pytest.raises(ValidationError):
        session.update_team(DEFAULT_TEAM_ID, "Staffel A", average_age="zwölf")

    assert session.current_team().name == DEFAULT_TEAM_NAME
    assert [t.name for t in db.get_all_teams()] == [DEFAULT_TEAM_NAME]


def test_select_unknown_team(session) -> None:
    with pytest.raises(TeamError):
        session.select_team("missing")


def test_last_team_cannot_be_deleted(session) -> None:
    with pytest.raises(TeamError):
        session.delete_team(DEFAULT_TEAM_ID)


def test_delete_selected_team_reselects_first(db, session) -> None:
    other = session.create_team("B")
    session.select_team(other.id)
    db.save_round(make_round("r1", team_id=other.id))

    session.delete_team(other.id)

    assert session.selected_team_id == DEFAULT_TEAM_ID
    assert db.get_setting(SELECTED_TEAM_SETTING) == DEFAULT_TEAM_ID
    assert db.get_rounds_by_team(other.id) == []
