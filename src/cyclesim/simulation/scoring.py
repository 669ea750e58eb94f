"""Final score, achievements and ranking."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from cyclesim.models import Difficulty
from cyclesim.models.state import TIME_LIMIT_SECONDS
from cyclesim.simulation import formulas
from cyclesim.simulation.formulas import ACHIEVEMENT_POINTS, DIFFICULTY_SCORE_MULTIPLIER, Achievement
from cyclesim.simulation.race import RaceSummary

BASE_SCORE = 10000
SUPPLY_ALLOWANCE = 20

GRADE_THRESHOLDS: list[tuple[float, str]] = [
    (95, "S"),
    (85, "A"),
    (70, "B"),
    (50, "C"),
    (30, "D"),
]


class ScoreInput(BaseModel):
    """Summary-shaped input to the score formula. Times are in minutes."""

    completion_time: float = Field(..., ge=0, description="Race time in minutes")
    target_time: float = Field(default=720.0, gt=0, description="Target time in minutes")
    team_integrity: float = Field(default=100.0, ge=0, le=100)
    supplies_used: int = Field(default=0, ge=0)
    events_handled: int = Field(default=0, ge=0)
    special_achievements: list[str] = Field(default_factory=list)
    difficulty: Difficulty = Difficulty.NORMAL

    @classmethod
    def from_summary(cls, summary: RaceSummary) -> "ScoreInput":
        """Build score input from a race summary.

        An unfinished race is scored as if it had run to the time limit, so
        it earns no time bonus.
        """
        completion_seconds = summary.completion_time if summary.completed else TIME_LIMIT_SECONDS
        return cls(
            completion_time=completion_seconds / 60,
            target_time=summary.target_time / 60,
            team_integrity=summary.team_integrity,
            supplies_used=summary.stats.supply_stops,
            events_handled=summary.stats.events_handled,
            special_achievements=[a.value for a in detect_achievements(summary)],
            difficulty=summary.difficulty,
        )


@dataclass
class ScoreResult:
    """Score with its components."""

    total_score: int
    breakdown: dict[str, float] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)


@dataclass
class Ranking:
    """Position of a score among previous scores."""

    score: int
    percentile: int
    grade: str
    rank: int


def detect_achievements(summary: RaceSummary) -> list[Achievement]:
    """Achievements earned by a race. Only completed races earn any."""
    if not summary.completed:
        return []

    stats = summary.stats
    earned: list[Achievement] = []
    if stats.riders_dropped == 0:
        earned.append(Achievement.NO_DROPOUT)
    if not summary.formation_broken and summary.team_integrity >= 100:
        earned.append(Achievement.PERFECT_FORMATION)
    if stats.climbs_completed >= 2 and stats.riders_dropped == 0:
        earned.append(Achievement.MOUNTAIN_KING)
    if summary.completion_time < summary.target_time * 0.9:
        earned.append(Achievement.SPEED_DEMON)
    if summary.average_fatigue > 0.7:
        earned.append(Achievement.IRON_WILL)
    if stats.weather_challenges >= 2:
        earned.append(Achievement.WEATHER_MASTER)
    if stats.mechanical_failures >= 2:
        earned.append(Achievement.MECHANICAL_GENIUS)
    if summary.average_fatigue < 0.3:
        earned.append(Achievement.TEAM_HARMONY)
    return earned


def calculate_final_score(summary_like: RaceSummary | ScoreInput | Mapping[str, Any]) -> ScoreResult:
    """Score a race.

    Args:
        summary_like: A RaceSummary, a ScoreInput, or a mapping of
            ScoreInput fields

    Returns:
        ScoreResult with the total, per-component breakdown and metrics
    """
    if isinstance(summary_like, RaceSummary):
        score_input = ScoreInput.from_summary(summary_like)
    elif isinstance(summary_like, ScoreInput):
        score_input = summary_like
    else:
        score_input = ScoreInput.model_validate(summary_like)

    time_saved = score_input.target_time - score_input.completion_time
    multiplier = DIFFICULTY_SCORE_MULTIPLIER[score_input.difficulty]
    breakdown = {
        "base": float(BASE_SCORE),
        "time_bonus": max(0.0, time_saved * 10),
        "integrity_bonus": score_input.team_integrity * 20,
        "efficiency_bonus": float(max(0, (SUPPLY_ALLOWANCE - score_input.supplies_used) * 50)),
        "events_bonus": float(score_input.events_handled * 500),
        "achievement_bonus": float(
            sum(ACHIEVEMENT_POINTS.get(a, 0) for a in score_input.special_achievements)
        ),
        "difficulty_multiplier": multiplier,
    }
    total = formulas.final_score(
        completion_time=score_input.completion_time,
        target_time=score_input.target_time,
        team_integrity=score_input.team_integrity,
        supplies_used=score_input.supplies_used,
        events_handled=score_input.events_handled,
        special_achievements=score_input.special_achievements,
        difficulty=score_input.difficulty,
    )
    metrics = {
        "completion_time": score_input.completion_time,
        "target_time": score_input.target_time,
        "time_saved": time_saved,
        "completion_time_formatted": formulas.format_duration(score_input.completion_time * 60),
        "achievements": list(score_input.special_achievements),
        "difficulty": score_input.difficulty.value,
    }
    return ScoreResult(total_score=total, breakdown=breakdown, metrics=metrics)


def grade_for(percentile: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentile >= threshold:
            return grade
    return "E"


def calculate_ranking(score: int, all_scores: list[int]) -> Ranking:
    """Rank a score against previous scores (strictly lower scores are beaten)."""
    if not all_scores:
        return Ranking(score=score, percentile=100, grade=grade_for(100), rank=1)

    better_than = sum(1 for s in all_scores if s < score)
    percentile = math.floor(better_than / len(all_scores) * 100)
    return Ranking(
        score=score,
        percentile=percentile,
        grade=grade_for(percentile),
        rank=len(all_scores) - better_than,
    )
