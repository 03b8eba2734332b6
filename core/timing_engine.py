"""
timing_engine.py — Time formatting, lap → activity segmentation and
round-to-round comparison.

The activity table follows the youth fire-brigade competition run:
nine runners (Läufer) plus the three stationary tasks performed between
two runner laps (Schlauchrollen, Anziehen, Kuppeln). Several activities
share a start lap, so their intervals overlap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from core.models import MAX_LAPS

TIME_FORMATS = ("full", "seconds", "diff", "diff-seconds")


class LapLike(Protocol):
    lap_number: int
    time: int


class RoundLike(Protocol):
    total_time: int
    laps: Sequence[LapLike]


@dataclass(frozen=True)
class Activity:
    name: str
    start_index: int
    end_index: int


@dataclass(frozen=True)
class ActivityTime:
    name: str
    time: int
    start_time: int
    end_time: int


@dataclass(frozen=True)
class CurrentActivity:
    name: str
    start_time: int
    current_time: int
    total_time: int


@dataclass(frozen=True)
class ActivityComparison:
    current: int
    previous: int
    diff: int
    is_faster: bool


@dataclass
class RoundComparison:
    previous_round: RoundLike
    total_time_diff: Optional[int]
    is_faster_overall: Optional[bool]
    activity_comparisons: dict[str, ActivityComparison] = field(default_factory=dict)


# Declaration order is display order.
LAP_ACTIVITIES: tuple[Activity, ...] = (
    Activity("Läufer 1", 0, 1),
    Activity("Läufer 2", 1, 2),
    Activity("Läufer 3", 2, 5),
    Activity("Schlauchrollen", 3, 4),
    Activity("Läufer 4", 5, 6),
    Activity("Läufer 5", 6, 8),
    Activity("Anziehen", 6, 7),
    Activity("Läufer 6", 8, 9),
    Activity("Läufer 7", 9, 10),
    Activity("Läufer 8", 10, 12),
    Activity("Kuppeln", 10, 11),
    Activity("Läufer 9", 12, 13),
)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_time(milliseconds: int, fmt: str = "full") -> str:
    """Format a millisecond duration for display.

    fmt: 'full' -> m:ss.cc, 'seconds' -> ss.cc (total seconds),
    'diff' -> ±ss.cc (minutes dropped), 'diff-seconds' -> ±ss.
    Hundredths are truncated, never rounded. Unknown formats use 'full'.
    """
    sign = "-" if milliseconds < 0 else "+"
    abs_ms = abs(int(milliseconds))

    total_seconds = abs_ms // 1000
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    cs = (abs_ms % 1000) // 10

    if fmt == "seconds":
        return f"{total_seconds:02d}.{cs:02d}"
    if fmt == "diff":
        return f"{sign}{seconds:02d}.{cs:02d}"
    if fmt == "diff-seconds":
        return f"{sign}{total_seconds:02d}"
    return f"{minutes}:{seconds:02d}.{cs:02d}"


def parse_time(text: str) -> int:
    """Parse a 'full' formatted string (m:ss.cc) back to milliseconds."""
    minutes, sep, rest = text.partition(":")
    seconds, dot, cs = rest.partition(".")
    if not sep or not dot or not seconds or not cs:
        raise ValueError(f"Invalid time format: {text!r}")
    return int(minutes or "0") * 60_000 + int(seconds) * 1000 + int(cs) * 10


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------

def _find_lap(laps: Sequence[LapLike], lap_number: int) -> LapLike | None:
    for lap in laps:
        if lap.lap_number == lap_number:
            return lap
    return None


def calculate_activity_times(laps: Sequence[LapLike]) -> list[ActivityTime]:
    """Map cumulative lap times onto the activity table.

    Activities whose end lap is not recorded yet are skipped. A missing
    start lap counts as 0.
    """
    activities = []
    for activity in LAP_ACTIVITIES:
        end_lap = _find_lap(laps, activity.end_index)
        if end_lap is None:
            continue
        start_lap = None if activity.start_index == 0 else _find_lap(laps, activity.start_index)
        start_time = start_lap.time if start_lap is not None else 0
        activities.append(ActivityTime(
            name=activity.name,
            time=end_lap.time - start_time,
            start_time=start_time,
            end_time=end_lap.time,
        ))
    return activities


def current_activity(laps: Sequence[LapLike], elapsed_ms: int,
                     running: bool) -> CurrentActivity | None:
    """The activity in progress: the one that ends with the next lap."""
    if not running or len(laps) >= MAX_LAPS:
        return None

    last_lap_time = laps[-1].time if laps else 0
    next_lap = len(laps) + 1
    for activity in LAP_ACTIVITIES:
        if activity.end_index == next_lap:
            return CurrentActivity(
                name=activity.name,
                start_time=last_lap_time,
                current_time=elapsed_ms - last_lap_time,
                total_time=elapsed_ms,
            )
    return None


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def compare_rounds(current: RoundLike,
                   previous: RoundLike | None) -> RoundComparison | None:
    """Diff total and per-activity times of two rounds (negative = faster)."""
    if previous is None:
        return None

    previous_by_name = {a.name: a for a in calculate_activity_times(previous.laps)}
    comparisons = {}
    for activity in calculate_activity_times(current.laps):
        before = previous_by_name.get(activity.name)
        if before is None:
            continue
        diff = activity.time - before.time
        comparisons[activity.name] = ActivityComparison(
            current=activity.time,
            previous=before.time,
            diff=diff,
            is_faster=diff < 0,
        )

    total_time_diff = current.total_time - previous.total_time
    return RoundComparison(
        previous_round=previous,
        total_time_diff=total_time_diff,
        is_faster_overall=total_time_diff < 0,
        activity_comparisons=comparisons,
    )
