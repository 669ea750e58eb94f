"""Simulation engine components."""

from . import formulas
from .events import EventEngine, StrategyDecisionPolicy, recommend_choices
from .race import RaceSimulator, RaceSummary, get_summary, initialize_race_state, tick, toggle_pause
from .driver import (
    FastForwardConfig,
    FastForwardResult,
    RaceSnapshot,
    RealTimeDriver,
    estimate_race_duration,
    interpolate_snapshot,
    run_fast_forward,
)
from .scoring import Ranking, ScoreInput, ScoreResult, calculate_final_score, calculate_ranking, detect_achievements

__all__ = [
    "EventEngine",
    "FastForwardConfig",
    "FastForwardResult",
    "RaceSimulator",
    "RaceSnapshot",
    "RaceSummary",
    "Ranking",
    "RealTimeDriver",
    "ScoreInput",
    "ScoreResult",
    "StrategyDecisionPolicy",
    "calculate_final_score",
    "calculate_ranking",
    "detect_achievements",
    "estimate_race_duration",
    "formulas",
    "get_summary",
    "initialize_race_state",
    "interpolate_snapshot",
    "recommend_choices",
    "run_fast_forward",
    "tick",
    "toggle_pause",
]
