"""
stopwatch.py — Round timer state machine.

    stopped --start--> running --lap x13--> finished --restart--> stopped
                        |  ^
                   stop |  | start (resumes)
                        v  |
                      stopped

Time is read from an injectable millisecond clock so the periodic UI tick
and the tests drive the same code.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from core.models import MAX_LAPS, Lap, Round, Team
from core.timing_engine import (
    ActivityTime,
    CurrentActivity,
    RoundComparison,
    RoundLike,
    calculate_activity_times,
    compare_rounds,
    current_activity,
)

STOPPED = "stopped"
RUNNING = "running"
FINISHED = "finished"

UNKNOWN_TEAM_NAME = "Unbekannte Gruppe"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoundTimer:

    def __init__(self, clock: Callable[[], float] = _monotonic_ms,
                 now: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._now = now
        self.state = STOPPED
        self.laps: list[Lap] = []
        self._elapsed = 0
        self._started_at: Optional[float] = None

    @property
    def elapsed(self) -> int:
        """Milliseconds on the clock; frozen unless running."""
        if self.state == RUNNING and self._started_at is not None:
            return int(self._clock() - self._started_at)
        return self._elapsed

    @property
    def is_finished(self) -> bool:
        return self.state == FINISHED

    def start(self) -> None:
        if self.state != STOPPED:
            return
        self._started_at = self._clock() - self._elapsed
        self.state = RUNNING

    def stop(self) -> None:
        if self.state != RUNNING:
            return
        self._elapsed = self.elapsed
        self.state = STOPPED

    def lap(self) -> Optional[Lap]:
        """Record the next lap; the 13th one finishes the round."""
        if self.state != RUNNING or len(self.laps) >= MAX_LAPS:
            return None
        elapsed = self.elapsed
        lap = Lap(lap_number=len(self.laps) + 1, time=elapsed, timestamp=self._now())
        self.laps.append(lap)
        if len(self.laps) == MAX_LAPS:
            self._elapsed = elapsed
            self.state = FINISHED
        return lap

    def restart(self) -> None:
        self.state = STOPPED
        self.laps = []
        self._elapsed = 0
        self._started_at = None

    def press(self) -> None:
        """Single-button control: start, lap or restart by state."""
        if self.state == STOPPED:
            self.start()
        elif self.state == RUNNING:
            self.lap()
        elif self.state == FINISHED:
            self.restart()

    # ─── Derived views ───────────────────────────────────────────────

    def activities(self) -> list[ActivityTime]:
        return calculate_activity_times(self.laps)

    def current_activity(self) -> Optional[CurrentActivity]:
        return current_activity(self.laps, self.elapsed, self.state == RUNNING)

    def comparison(self, previous: Optional[RoundLike]) -> Optional[RoundComparison]:
        """Compare against a previous round; total diff only once finished."""
        if previous is None or not self.laps:
            return None
        result = compare_rounds(self, previous)
        if result is not None and self.state != FINISHED:
            result.total_time_diff = None
            result.is_faster_overall = None
        return result

    @property
    def total_time(self) -> int:
        return self.elapsed

    def build_round(self, team: Optional[Team]) -> Round:
        if self.state != FINISHED:
            raise RuntimeError("Round is not finished")
        return Round(
            id=str(uuid.uuid4()),
            completed_at=self._now(),
            total_time=self._elapsed,
            laps=list(self.laps),
            team_id=team.id if team else "",
            team_name=team.name if team else UNKNOWN_TEAM_NAME,
        )
