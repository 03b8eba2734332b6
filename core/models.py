"""
models.py — Domain records for teams, rounds and laps.

Python attributes are snake_case; JSON documents (IndexedDB-style local
records, share payloads, shared round files) keep the camelCase names the
browser client uses.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

MAX_LAPS = 13

Number = Union[int, float]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def normalize_changes(cls, changes: dict[str, Any]) -> dict[str, Any]:
        """Map camelCase keys to attribute names; unknown keys raise ValueError."""
        aliases = {field.alias: name for name, field in cls.model_fields.items() if field.alias}
        normalized = {aliases.get(key, key): value for key, value in changes.items()}
        unknown = set(normalized) - set(cls.model_fields)
        if unknown:
            raise ValueError(f"Unknown {cls.__name__} fields: {sorted(unknown)}")
        return normalized

    def with_changes(self: R, changes: dict[str, Any]) -> R:
        """Validated copy with changes applied; raises ValidationError on bad values."""
        merged = {**self.model_dump(), **self.normalize_changes(changes)}
        return type(self).model_validate(merged)


R = TypeVar("R", bound=_Record)


# ─── Local records ───────────────────────────────────────────────────

class Lap(_Record):
    lap_number: int
    time: int
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Team(_Record):
    id: str
    name: str
    color: str
    created_at: datetime
    average_age: Optional[Number] = None

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Round(_Record):
    id: str
    completed_at: datetime
    total_time: int
    laps: list[Lap]
    team_id: str
    team_name: str
    shared_url: Optional[str] = None
    description: Optional[str] = None
    # A-Teil
    a_part_error_points: Optional[Number] = None
    knot_time: Optional[Number] = None
    a_part_penalty_seconds: Optional[Number] = None
    # B-Teil
    b_part_error_points: Optional[Number] = None
    overall_impression: Optional[Number] = None

    @field_validator("completed_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_shared(self, team_average_age: Number | None = None) -> dict:
        """Payload POSTed to /api/share-round for this round."""
        description = (self.description or "").strip() or None
        shared = SharedRound(
            id=self.id,
            completed_at=_iso(self.completed_at),
            total_time=self.total_time,
            laps=[
                SharedLap(lap_number=lap.lap_number, time=lap.time,
                          timestamp=_iso(lap.timestamp))
                for lap in self.laps
            ],
            team_name=self.team_name,
            description=description,
            a_part_error_points=self.a_part_error_points,
            knot_time=self.knot_time,
            a_part_penalty_seconds=self.a_part_penalty_seconds,
            b_part_error_points=self.b_part_error_points,
            overall_impression=self.overall_impression,
            team_average_age=team_average_age,
        )
        return shared.to_document()


# ─── Shared (public) records ─────────────────────────────────────────

class SharedLap(_Record):
    lap_number: int
    time: Number
    timestamp: Optional[str] = None


class SharedRound(_Record):
    """Public, read-only view of a round as stored by the share endpoint."""

    id: str
    completed_at: Optional[str] = None
    total_time: Optional[Number] = None
    laps: list[SharedLap]
    team_name: str
    description: Optional[str] = None
    a_part_error_points: Optional[Number] = None
    knot_time: Optional[Number] = None
    a_part_penalty_seconds: Optional[Number] = None
    b_part_error_points: Optional[Number] = None
    overall_impression: Optional[Number] = None
    team_average_age: Optional[Number] = None

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
