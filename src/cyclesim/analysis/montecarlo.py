"""Monte Carlo simulation runner and statistics."""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from loguru import logger

from cyclesim.errors import UnreachableTerminationError
from cyclesim.models import BikeLoadout, Difficulty, PacePreset, StrategyConfig, TeamConfig
from cyclesim.simulation.driver import FastForwardConfig, FastForwardResult, run_fast_forward
from cyclesim.simulation.events import DEFAULT_AMBIENT_EVENT_RATE
from cyclesim.simulation.scoring import calculate_final_score


@dataclass
class RunOutcome:
    """Result of one simulated race."""

    strategy: str
    seed: int
    completed: bool
    failed: bool
    completion_time: float  # seconds
    distance: float
    score: int
    riders_finished: int
    events: int
    unfinished: bool = False


@dataclass
class StrategyStatistics:
    """Aggregated statistics for a strategy across simulations."""

    strategy: str
    runs: int = 0
    completions: int = 0
    failures: int = 0
    completion_times: list[float] = field(default_factory=list)
    scores: list[int] = field(default_factory=list)
    riders_finished: list[int] = field(default_factory=list)
    events: list[int] = field(default_factory=list)

    @property
    def completion_rate(self) -> float:
        """Completion percentage."""
        return self.completions / self.runs * 100 if self.runs else 0

    @property
    def failure_rate(self) -> float:
        """Failure percentage."""
        return self.failures / self.runs * 100 if self.runs else 0

    @property
    def mean_completion_time(self) -> float | None:
        """Mean race time of completed runs (seconds)."""
        return float(np.mean(self.completion_times)) if self.completion_times else None

    @property
    def best_completion_time(self) -> float | None:
        return min(self.completion_times) if self.completion_times else None

    @property
    def worst_completion_time(self) -> float | None:
        return max(self.completion_times) if self.completion_times else None

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores)) if self.scores else 0.0

    @property
    def mean_riders_finished(self) -> float:
        return float(np.mean(self.riders_finished)) if self.riders_finished else 0.0

    @property
    def mean_events(self) -> float:
        return float(np.mean(self.events)) if self.events else 0.0


@dataclass
class SimulationResults:
    """Results from Monte Carlo simulation."""

    num_simulations: int
    strategy_stats: dict[str, StrategyStatistics]
    outcomes: list[RunOutcome]  # All individual runs

    def best_strategy(self) -> StrategyStatistics | None:
        """Strategy with the highest completion rate, then the highest mean score."""
        if not self.strategy_stats:
            return None
        return max(
            self.strategy_stats.values(),
            key=lambda s: (s.completion_rate, s.mean_score),
        )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per strategy, sorted by mean score."""
        rows = [
            {
                "strategy": stats.strategy,
                "runs": stats.runs,
                "completion_rate": stats.completion_rate,
                "failure_rate": stats.failure_rate,
                "mean_completion_time": stats.mean_completion_time,
                "best_completion_time": stats.best_completion_time,
                "worst_completion_time": stats.worst_completion_time,
                "mean_score": stats.mean_score,
                "mean_riders_finished": stats.mean_riders_finished,
                "mean_events": stats.mean_events,
            }
            for stats in self.strategy_stats.values()
        ]
        df = pd.DataFrame(rows)
        if not df.empty:
            df = df.sort_values("mean_score", ascending=False).reset_index(drop=True)
        return df

    def outcomes_dataframe(self) -> pd.DataFrame:
        """One row per simulated race."""
        return pd.DataFrame([vars(o) for o in self.outcomes])


def default_strategies() -> list[StrategyConfig]:
    """One strategy per pace preset, other presets at their defaults."""
    return [StrategyConfig(pace=pace) for pace in PacePreset]


def _outcome(result: FastForwardResult, seed: int, unfinished: bool = False) -> RunOutcome:
    summary = result.summary
    score = calculate_final_score(summary).total_score
    return RunOutcome(
        strategy=result.strategy,
        seed=seed,
        completed=result.completed,
        failed=result.failed,
        completion_time=summary.completion_time,
        distance=summary.final_distance,
        score=score,
        riders_finished=summary.team_finished,
        events=len(result.final_state.event_history),
        unfinished=unfinished,
    )


def _run_single_simulation(args: tuple) -> RunOutcome:
    """Run a single race simulation (for multiprocessing).

    Args:
        args: Tuple of (config_data, seed)

    Returns:
        RunOutcome of the race
    """
    config_data, seed = args

    # Reconstruct objects from serializable data
    config = FastForwardConfig.model_validate(config_data)
    rng = np.random.default_rng(seed)

    try:
        result = run_fast_forward(config, rng=rng)
    except UnreachableTerminationError as e:
        logger.warning(f"Seed {seed} ({config.strategy.label}): {e}")
        return _outcome(e.partial_result, seed, unfinished=True)
    return _outcome(result, seed)


class MonteCarloRunner:
    """Runs Monte Carlo simulations comparing race strategies."""

    def __init__(
        self,
        team: TeamConfig,
        bike: BikeLoadout,
        strategies: list[StrategyConfig] | None = None,
        difficulty: Difficulty = Difficulty.NORMAL,
        seed: int | None = None,
        duration: float = 30.0,
        fps: int = 30,
        ambient_event_rate: float = DEFAULT_AMBIENT_EVENT_RATE,
    ):
        """Initialize Monte Carlo runner.

        Args:
            team: Team to race
            bike: Bike loadout
            strategies: Strategies to compare (defaults to one per pace preset)
            difficulty: Difficulty level
            seed: Random seed for reproducibility
            duration: Fast-forward playback duration, which sets the tick size
            fps: Fast-forward frame rate
            ambient_event_rate: Chance per simulated second of an ambient event roll
        """
        self.team = team
        self.bike = bike
        self.strategies = strategies or default_strategies()
        self.difficulty = difficulty
        self.base_seed = seed if seed is not None else int(np.random.default_rng().integers(0, 2**31))
        self.duration = duration
        self.fps = fps
        self.ambient_event_rate = ambient_event_rate

    def run(
        self,
        num_simulations: int = 100,
        parallel: bool = True,
        max_workers: int | None = None,
    ) -> SimulationResults:
        """Run Monte Carlo simulations.

        Every strategy is raced with the same seeds so that strategies are
        compared on identical event rolls.

        Args:
            num_simulations: Number of simulations per strategy
            parallel: Whether to use parallel processing
            max_workers: Maximum parallel workers (None = CPU count)

        Returns:
            SimulationResults with aggregated statistics
        """
        # Generate unique seeds for each simulation
        seeds = [self.base_seed + i for i in range(num_simulations)]

        args_list = []
        for strategy in self.strategies:
            config_data = FastForwardConfig(
                team=self.team,
                bike=self.bike,
                strategy=strategy,
                difficulty=self.difficulty,
                duration=self.duration,
                fps=self.fps,
                ambient_event_rate=self.ambient_event_rate,
            ).model_dump()
            args_list.extend((config_data, seed) for seed in seeds)

        logger.info(
            f"Running {num_simulations} simulations for {len(self.strategies)} strategies "
            f"(seed={self.base_seed}, parallel={parallel})"
        )

        if parallel and len(args_list) > 1:
            with ProcessPoolExecutor(max_workers=max_workers) as executor:
                outcomes = list(executor.map(_run_single_simulation, args_list))
        else:
            outcomes = [_run_single_simulation(args) for args in args_list]

        return SimulationResults(
            num_simulations=num_simulations,
            strategy_stats=self._aggregate_statistics(outcomes),
            outcomes=outcomes,
        )

    def _aggregate_statistics(self, outcomes: list[RunOutcome]) -> dict[str, StrategyStatistics]:
        """Aggregate statistics from all simulations."""
        stats = {s.label: StrategyStatistics(strategy=s.label) for s in self.strategies}

        for outcome in outcomes:
            strategy_stat = stats.setdefault(outcome.strategy, StrategyStatistics(strategy=outcome.strategy))
            strategy_stat.runs += 1
            strategy_stat.scores.append(outcome.score)
            strategy_stat.events.append(outcome.events)
            strategy_stat.riders_finished.append(outcome.riders_finished)

            if outcome.completed:
                strategy_stat.completions += 1
                strategy_stat.completion_times.append(outcome.completion_time)
            else:
                strategy_stat.failures += 1

        return stats

    def run_quick(self, num_simulations: int = 10) -> SimulationResults:
        """Run a quick simulation without parallelization.

        Useful for testing or when running in environments
        where multiprocessing is problematic.
        """
        return self.run(num_simulations=num_simulations, parallel=False)
