"""
scoring.py — Points calculation per the Wettbewerbsordnung der Deutschen
Jugendfeuerwehr (Stand 07.09.2013).

A-Teil (Löschangriff): 1000 points minus knot time, penalty seconds and
error points. B-Teil (Staffellauf): 400 points plus/minus the difference
to the age-dependent target time (Sollzeit), minus error points. Both parts
floor at 0. The overall impression is subtracted from the sum.

Missing inputs are an ordinary state while a round is being evaluated,
so nothing here raises: a part that cannot be computed has points=None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

Number = Union[int, float]

A_PART_BASE_POINTS = 1000
B_PART_BASE_POINTS = 400


@dataclass(frozen=True)
class APartBreakdown:
    base_points: Number
    knot_time_deduction: Number
    penalty_deduction: Number
    error_points_deduction: Number
    final_points: Number


@dataclass(frozen=True)
class BPartBreakdown:
    base_points: Number
    target_time: float
    time_difference: float
    time_points: float
    error_points_deduction: Number
    final_points: Number


@dataclass(frozen=True)
class PartScore:
    points: Optional[Number]
    breakdown: Optional[Union[APartBreakdown, BPartBreakdown]] = None

    @property
    def computable(self) -> bool:
        return self.points is not None


@dataclass(frozen=True)
class ScoringParameters:
    b_part_time: Number
    team_average_age: Optional[Number] = None
    a_part_error_points: Optional[Number] = None
    knot_time: Optional[Number] = None
    a_part_penalty_seconds: Optional[Number] = None
    b_part_error_points: Optional[Number] = None
    overall_impression: Optional[Number] = None


@dataclass(frozen=True)
class ScoringResult:
    a_part_points: Optional[Number]
    b_part_points: Optional[Number]
    overall_impression: Optional[Number]
    total_points: Optional[Number]
    can_calculate: bool
    breakdown: dict = field(default_factory=dict)


NOT_COMPUTABLE = PartScore(points=None)


def calculate_target_time_ms(team_average_age: Number | None) -> Number | None:
    """Sollzeit for the B-Teil: (210 - age * 5) seconds, in ms. No range check."""
    if team_average_age is None:
        return None
    return (210 - team_average_age * 5) * 1000


def calculate_a_part_points(knot_time: Number | None = None,
                            a_part_penalty_seconds: Number | None = None,
                            a_part_error_points: Number | None = None) -> PartScore:
    if knot_time is None or a_part_penalty_seconds is None or a_part_error_points is None:
        return NOT_COMPUTABLE

    final = max(0, A_PART_BASE_POINTS - knot_time - a_part_penalty_seconds - a_part_error_points)
    return PartScore(
        points=final,
        breakdown=APartBreakdown(
            base_points=A_PART_BASE_POINTS,
            knot_time_deduction=knot_time,
            penalty_deduction=a_part_penalty_seconds,
            error_points_deduction=a_part_error_points,
            final_points=final,
        ),
    )


def calculate_b_part_points(b_part_time: Number | None = None,
                            team_average_age: Number | None = None,
                            b_part_error_points: Number | None = None) -> PartScore:
    """b_part_time is in seconds. Faster than target earns an uncapped bonus."""
    if b_part_time is None or team_average_age is None or b_part_error_points is None:
        return NOT_COMPUTABLE

    target_time = calculate_target_time_ms(team_average_age) / 1000
    time_difference = b_part_time - target_time
    time_points = -time_difference
    final = max(0, B_PART_BASE_POINTS + time_points - b_part_error_points)
    return PartScore(
        points=final,
        breakdown=BPartBreakdown(
            base_points=B_PART_BASE_POINTS,
            target_time=target_time,
            time_difference=time_difference,
            time_points=time_points,
            error_points_deduction=b_part_error_points,
            final_points=final,
        ),
    )


def calculate_total_score(params: ScoringParameters) -> ScoringResult:
    a_part = calculate_a_part_points(
        knot_time=params.knot_time,
        a_part_penalty_seconds=params.a_part_penalty_seconds,
        a_part_error_points=params.a_part_error_points,
    )
    b_part = calculate_b_part_points(
        b_part_time=params.b_part_time,
        team_average_age=params.team_average_age,
        b_part_error_points=params.b_part_error_points,
    )

    can_calculate = a_part.computable and b_part.computable
    # overall_impression does not gate the total; absent counts as 0
    total = (
        a_part.points + b_part.points - (params.overall_impression or 0)
        if can_calculate else None
    )

    return ScoringResult(
        a_part_points=a_part.points,
        b_part_points=b_part.points,
        overall_impression=params.overall_impression or None,
        total_points=total,
        can_calculate=can_calculate,
        breakdown={"a_part": a_part.breakdown, "b_part": b_part.breakdown},
    )


def format_points(points: Number | None) -> str:
    """'-' for missing points, else the plain decimal (365, 12.5)."""
    if points is None:
        return "-"
    if isinstance(points, float) and points.is_integer():
        return str(int(points))
    return str(points)
