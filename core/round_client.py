"""
round_client.py — Client-side round workflows on top of the local store:
saving finished rounds, editing, publishing via /api/share-round, and
scoring.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from core.database import LocalDatabase, StorageError
from core.models import Number, Round, Team
from core.scoring import ScoringParameters, ScoringResult, calculate_total_score
from core.stopwatch import RoundTimer

logger = logging.getLogger("wktimer.client")

SHARE_TIMEOUT = 15.0

# Fields frozen once a round has a public link.
LOCKED_WHEN_SHARED = frozenset({
    "description",
    "a_part_error_points",
    "knot_time",
    "a_part_penalty_seconds",
    "b_part_error_points",
    "overall_impression",
})


class ShareError(Exception):
    """Publishing a round failed; the local round is left unchanged."""


class RoundLockedError(Exception):
    """Attempt to edit description or scoring of an already shared round."""


def save_finished_round(db: LocalDatabase, timer: RoundTimer,
                        team: Optional[Team]) -> Round:
    round_ = timer.build_round(team)
    db.save_round(round_)
    logger.info("Saved round %s for team %s (%d ms)", round_.id, round_.team_name, round_.total_time)
    return round_


def discard_finished_round(db: LocalDatabase, timer: RoundTimer, round_: Round) -> None:
    """Drop the round that was just auto-saved and reset the timer."""
    db.delete_round(round_.id)
    timer.restart()
    logger.info("Discarded round %s", round_.id)


def update_round(db: LocalDatabase, round_: Round, **changes: Any) -> Round:
    """Validate and save edits; camelCase keys are accepted as well.

    Nothing is written when a value fails validation.
    """
    changes = Round.normalize_changes(changes)
    if round_.shared_url:
        locked = LOCKED_WHEN_SHARED.intersection(changes)
        if locked:
            raise RoundLockedError(f"Round {round_.id} is shared; cannot change {sorted(locked)}")
    updated = round_.with_changes(changes)
    db.save_round(updated)
    return updated


def share_round(db: LocalDatabase, round_: Round, base_url: str,
                team_average_age: Number | None = None,
                client: Optional[httpx.Client] = None) -> tuple[str, Round]:
    """Publish a round and store the returned public URL on it."""
    url = f"{base_url.rstrip('/')}/api/share-round"
    payload = {"roundData": round_.to_shared(team_average_age)}

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=SHARE_TIMEOUT)
    try:
        response = client.post(url, json=payload)
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Sharing round %s failed: %s", round_.id, exc)
        raise ShareError("Failed to share round") from exc
    finally:
        if owns_client:
            client.close()

    shared_url = body.get("sharedUrl") if isinstance(body, dict) else None
    if not isinstance(shared_url, str) or not shared_url:
        raise ShareError("Failed to share round")

    updated = round_.with_changes({"shared_url": shared_url})
    db.save_round(updated)
    logger.info("Shared round %s at %s", round_.id, shared_url)
    return shared_url, updated


def load_saved_rounds(db: LocalDatabase) -> list[Round]:
    """All rounds newest first; an unusable store yields an empty list."""
    try:
        return db.get_all_rounds()
    except StorageError:
        logger.exception("Failed to load saved rounds")
        return []


def last_round_for_team(rounds: list[Round], team_id: str) -> Optional[Round]:
    team_rounds = [r for r in rounds if r.team_id == team_id]
    if not team_rounds:
        return None
    return max(team_rounds, key=lambda r: r.completed_at)


def score_round(round_: Round, team_average_age: Number | None = None) -> ScoringResult:
    """Score a round; its total time is the B-Teil time."""
    return calculate_total_score(ScoringParameters(
        b_part_time=round_.total_time / 1000,
        team_average_age=team_average_age,
        a_part_error_points=round_.a_part_error_points,
        knot_time=round_.knot_time,
        a_part_penalty_seconds=round_.a_part_penalty_seconds,
        b_part_error_points=round_.b_part_error_points,
        overall_impression=round_.overall_impression,
    ))
