"""Tests for core/scoring.py — A-Teil, B-Teil and total points."""

from __future__ import annotations

from core.scoring import (
    APartBreakdown,
    BPartBreakdown,
    ScoringParameters,
    calculate_a_part_points,
    calculate_b_part_points,
    calculate_target_time_ms,
    calculate_total_score,
    format_points,
)


def test_target_time_formula() -> None:
    assert calculate_target_time_ms(12) == 150_000
    assert calculate_target_time_ms(10) == 160_000
    assert calculate_target_time_ms(None) is None


def test_target_time_has_no_age_range_check() -> None:
    assert calculate_target_time_ms(50) == -40_000


def test_a_part_points() -> None:
    result = calculate_a_part_points(knot_time=30, a_part_penalty_seconds=10, a_part_error_points=5)
    assert result.points == 955
    assert result.computable
    assert result.breakdown == APartBreakdown(
        base_points=1000,
        knot_time_deduction=30,
        penalty_deduction=10,
        error_points_deduction=5,
        final_points=955,
    )


def test_a_part_floors_at_zero() -> None:
    result = calculate_a_part_points(knot_time=500, a_part_penalty_seconds=500, a_part_error_points=500)
    assert result.points == 0


def test_a_part_zero_inputs_are_present_values() -> None:
    result = calculate_a_part_points(knot_time=0, a_part_penalty_seconds=0, a_part_error_points=0)
    assert result.points == 1000


def test_a_part_missing_input_is_not_computable() -> None:
    result = calculate_a_part_points(knot_time=30, a_part_penalty_seconds=10)
    assert result.points is None
    assert result.breakdown is None
    assert not result.computable


def test_b_part_points_over_target() -> None:
    result = calculate_b_part_points(b_part_time=180, team_average_age=12, b_part_error_points=5)
    assert result.points == 365
    assert isinstance(result.breakdown, BPartBreakdown)
    assert result.breakdown.target_time == 150
    assert result.breakdown.time_difference == 30
    assert result.breakdown.time_points == -30


def test_b_part_bonus_below_target_is_uncapped() -> None:
    result = calculate_b_part_points(b_part_time=100, team_average_age=12, b_part_error_points=0)
    assert result.points == 450


def test_b_part_floors_at_zero() -> None:
    result = calculate_b_part_points(b_part_time=900, team_average_age=12, b_part_error_points=0)
    assert result.points == 0


def test_b_part_missing_age_is_not_computable() -> None:
    assert calculate_b_part_points(b_part_time=180, b_part_error_points=0).points is None


def test_total_score() -> None:
    result = calculate_total_score(ScoringParameters(
        b_part_time=180,
        team_average_age=12,
        a_part_error_points=5,
        knot_time=30,
        a_part_penalty_seconds=10,
        b_part_error_points=5,
        overall_impression=2.5,
    ))
    assert result.can_calculate
    assert result.a_part_points == 955
    assert result.b_part_points == 365
    assert result.total_points == 1317.5
    assert result.overall_impression == 2.5
    assert result.breakdown["a_part"].final_points == 955


def test_total_without_overall_impression() -> None:
    result = calculate_total_score(ScoringParameters(
        b_part_time=180, team_average_age=12, b_part_error_points=5,
        a_part_error_points=5, knot_time=30, a_part_penalty_seconds=10,
    ))
    assert result.total_points == 1320
    assert result.overall_impression is None


def test_total_requires_a_part() -> None:
    result = calculate_total_score(ScoringParameters(
        b_part_time=180, team_average_age=12, b_part_error_points=5, overall_impression=1,
    ))
    assert not result.can_calculate
    assert result.total_points is None
    assert result.a_part_points is None
    assert result.b_part_points == 365


def test_format_points() -> None:
    assert format_points(None) == "-"
    assert format_points(365.0) == "365"
    assert format_points(955) == "955"
    assert format_points(1317.5) == "1317.5"
