"""Export race and simulation results to CSV and JSON."""

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from cyclesim.analysis.montecarlo import SimulationResults
from cyclesim.simulation.driver import FastForwardResult, RaceSnapshot
from cyclesim.simulation.scoring import ScoreResult


class Exporter:
    """Exports simulation results to various formats."""

    def __init__(self, output_dir: str | Path = "output"):
        """Initialize exporter.

        Args:
            output_dir: Directory for output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_snapshots_csv(
        self,
        snapshots: list[RaceSnapshot],
        filename: str = "snapshots.csv",
    ) -> Path:
        """Export a fast-forward timeline to CSV.

        Args:
            snapshots: Snapshots in frame order
            filename: Output filename

        Returns:
            Path to created file
        """
        filepath = self.output_dir / filename
        team_size = max((len(s.stamina) for s in snapshots), default=0)

        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "frame", "distance", "elapsed_time", "speed", "morale",
                "leader", "formation", "terrain", "weather",
                *[f"stamina_{i + 1}" for i in range(team_size)],
            ])

            for snap in snapshots:
                writer.writerow([
                    f"{snap.frame:g}",
                    f"{snap.distance:.3f}",
                    f"{snap.elapsed_time:.1f}",
                    f"{snap.speed:.2f}",
                    f"{snap.morale:.1f}",
                    snap.leader,
                    snap.formation.value,
                    snap.terrain.value,
                    snap.weather.value,
                    *[f"{s:.1f}" for s in snap.stamina],
                ])

        return filepath

    def export_summary_json(
        self,
        result: FastForwardResult,
        score: ScoreResult | None = None,
        filename: str = "summary.json",
    ) -> Path:
        """Export a race summary, with its score if given, to JSON.

        Args:
            result: Fast-forward result
            score: Optional score
            filename: Output filename

        Returns:
            Path to created file
        """
        filepath = self.output_dir / filename

        data: dict[str, Any] = {
            "metadata": {
                "strategy": result.strategy,
                "total_frames": result.total_frames,
                "target_duration": result.target_duration,
                "fps": result.fps,
            },
            "summary": result.summary.model_dump(mode="json"),
        }
        if score is not None:
            data["score"] = asdict(score)

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)

        return filepath

    def export_events_json(
        self,
        result: FastForwardResult,
        filename: str = "events.json",
    ) -> Path:
        """Export the race event history to JSON.

        Args:
            result: Fast-forward result
            filename: Output filename

        Returns:
            Path to created file
        """
        filepath = self.output_dir / filename
        events = [record.model_dump(mode="json", exclude_none=True) for record in result.final_state.event_history]

        with open(filepath, "w") as f:
            json.dump(events, f, indent=2)

        return filepath

    def export_monte_carlo_csv(
        self,
        results: SimulationResults,
        filename: str = "montecarlo_runs.csv",
    ) -> Path:
        """Export every Monte Carlo run to CSV.

        Args:
            results: Simulation results
            filename: Output filename

        Returns:
            Path to created file
        """
        filepath = self.output_dir / filename
        results.outcomes_dataframe().to_csv(filepath, index=False)
        return filepath

    def export_statistics_json(
        self,
        results: SimulationResults,
        filename: str = "statistics.json",
    ) -> Path:
        """Export aggregated statistics to JSON.

        Args:
            results: Simulation results
            filename: Output filename

        Returns:
            Path to created file
        """
        filepath = self.output_dir / filename
        best = results.best_strategy()

        stats_dict: dict[str, Any] = {
            "metadata": {
                "num_simulations": results.num_simulations,
                "best_strategy": best.strategy if best else None,
            },
            "strategy_statistics": {},
        }

        for label, stats in results.strategy_stats.items():
            stats_dict["strategy_statistics"][label] = {
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

        with open(filepath, "w") as f:
            json.dump(stats_dict, f, indent=2)

        return filepath

    def export_all(
        self,
        result: FastForwardResult | None = None,
        score: ScoreResult | None = None,
        results: SimulationResults | None = None,
        prefix: str = "",
    ) -> dict[str, Path]:
        """Export every format that applies to the given results.

        Args:
            result: Optional fast-forward result
            score: Optional score of that result
            results: Optional Monte Carlo results
            prefix: Optional prefix for filenames

        Returns:
            Dictionary of format -> filepath
        """
        prefix = f"{prefix}_" if prefix else ""
        paths: dict[str, Path] = {}

        if result is not None:
            paths["snapshots_csv"] = self.export_snapshots_csv(result.snapshots, f"{prefix}snapshots.csv")
            paths["summary_json"] = self.export_summary_json(result, score, f"{prefix}summary.json")
            paths["events_json"] = self.export_events_json(result, f"{prefix}events.json")
        if results is not None:
            paths["montecarlo_csv"] = self.export_monte_carlo_csv(results, f"{prefix}montecarlo_runs.csv")
            paths["statistics_json"] = self.export_statistics_json(results, f"{prefix}statistics.json")

        return paths
