"""Builders for lap and round fixtures shared across test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.models import Lap, Round

BASE_URL = "http://localhost:3000"

ROUND_ID = "3f2b8c1e-7d4a-4b9e-9c2f-1a6d5e8b0c47"

# Canonical 13-lap run (cumulative ms)
LAP_TIMES = [10000, 20000, 25000, 40000, 45000, 55000, 70000,
             80000, 90000, 100000, 115000, 125000, 135000]

T0 = datetime(2024, 5, 11, 9, 30, tzinfo=timezone.utc)


def make_laps(times: list[int]) -> list[Lap]:
    return [
        Lap(lap_number=i + 1, time=t, timestamp=T0 + timedelta(milliseconds=t))
        for i, t in enumerate(times)
    ]


def make_round(round_id: str = ROUND_ID, team_id: str = "default",
               team_name: str = "Gruppe 1", times: list[int] | None = None,
               completed_at: datetime | None = None, **fields) -> Round:
    laps = make_laps(times or LAP_TIMES)
    return Round(
        id=round_id,
        completed_at=completed_at or T0 + timedelta(minutes=5),
        total_time=laps[-1].time,
        laps=laps,
        team_id=team_id,
        team_name=team_name,
        **fields,
    )
