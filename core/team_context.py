"""
team_context.py — Team list and the currently selected team.

At least one team always exists; the selection is persisted in the
'selectedTeamId' setting.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from core.database import LocalDatabase
from core.models import Number, Team

logger = logging.getLogger("wktimer.teams")

TEAM_COLORS = (
    "#f4884c",
    "#00469d",
    "#22c55e",
    "#eab308",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
)

DEFAULT_TEAM_ID = "default"
DEFAULT_TEAM_NAME = "Gruppe 1"
SELECTED_TEAM_SETTING = "selectedTeamId"


class TeamError(Exception):
    """Rejected team operation (empty name, unknown id, last team)."""


class TeamSession:

    def __init__(self, db: LocalDatabase) -> None:
        self.db = db
        self.teams: list[Team] = []
        self.selected_team_id: str = ""

    def load(self) -> list[Team]:
        teams = self.db.get_all_teams()
        if not teams:
            default = Team(
                id=DEFAULT_TEAM_ID,
                name=DEFAULT_TEAM_NAME,
                color=TEAM_COLORS[0],
                created_at=datetime.now(timezone.utc),
            )
            self.db.save_team(default)
            logger.info("Created default team %r", default.name)
            teams = [default]
        self.teams = teams

        saved = self.db.get_setting(SELECTED_TEAM_SETTING)
        if any(t.id == saved for t in teams):
            self.selected_team_id = saved
        else:
            self.selected_team_id = teams[0].id
            self.db.set_setting(SELECTED_TEAM_SETTING, self.selected_team_id)
        return self.teams

    def current_team(self) -> Optional[Team]:
        for team in self.teams:
            if team.id == self.selected_team_id:
                return team
        return None

    def _get(self, team_id: str) -> Team:
        for team in self.teams:
            if team.id == team_id:
                return team
        raise TeamError(f"Unknown team: {team_id}")

    def select_team(self, team_id: str) -> None:
        self._get(team_id)
        self.selected_team_id = team_id
        self.db.set_setting(SELECTED_TEAM_SETTING, team_id)

    def create_team(self, name: str) -> Team:
        name = name.strip()
        if not name:
            raise TeamError("Team name must not be empty")
        team = Team(
            id=str(uuid.uuid4()),
            name=name,
            color=TEAM_COLORS[len(self.teams) % len(TEAM_COLORS)],
            created_at=datetime.now(timezone.utc),
        )
        self.db.save_team(team)
        self.teams.append(team)
        return team

    def update_team(self, team_id: str, name: str,
                    average_age: Number | None = None) -> Team:
        name = name.strip()
        if not name:
            raise TeamError("Team name must not be empty")
        changes: dict = {"name": name}
        if average_age is not None:
            changes["average_age"] = average_age
        updated = self._get(team_id).with_changes(changes)
        self.db.save_team(updated)
        self.teams = [updated if t.id == team_id else t for t in self.teams]
        return updated

    def delete_team(self, team_id: str) -> None:
        """Delete a team and its rounds; the last team cannot be deleted."""
        if len(self.teams) <= 1:
            raise TeamError("The last team cannot be deleted")
        self._get(team_id)
        self.db.delete_team(team_id)
        self.teams = [t for t in self.teams if t.id != team_id]
        if self.selected_team_id == team_id:
            self.select_team(self.teams[0].id)
