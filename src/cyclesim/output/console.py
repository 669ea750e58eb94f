"""Console output formatting."""

from cyclesim.analysis.montecarlo import SimulationResults
from cyclesim.models import EventRecord
from cyclesim.simulation.driver import RaceSnapshot
from cyclesim.simulation.formulas import format_duration
from cyclesim.simulation.race import RaceSummary
from cyclesim.simulation.scoring import Ranking, ScoreResult


class ConsoleOutput:
    """Formats simulation results for console display."""

    @staticmethod
    def print_race_summary(
        summary: RaceSummary,
        score: ScoreResult | None = None,
        ranking: Ranking | None = None,
    ) -> None:
        """Print the outcome of one race.

        Args:
            summary: Race summary
            score: Optional score with breakdown
            ranking: Optional ranking of the score
        """
        print("\n" + "=" * 60)
        print("RACE SUMMARY")
        print("=" * 60)

        status = "COMPLETED" if summary.completed else "FAILED"
        print(f"  Status:        {status}")
        print(f"  Strategy:      {summary.strategy.label}")
        print(f"  Difficulty:    {summary.difficulty.value}")
        print(f"  Distance:      {summary.final_distance:.1f} / {summary.total_distance:.0f} km")
        print(f"  Race time:     {format_duration(summary.completion_time)}")
        print(f"  Target time:   {format_duration(summary.target_time)}")
        print(f"  Average speed: {summary.average_speed:.1f} km/h")
        print(f"  Max speed:     {summary.stats.max_speed:.1f} km/h")
        print(f"  Riders:        {summary.team_finished}/{summary.total_team_size} finished")
        print(f"  Fatigue:       {summary.average_fatigue * 100:.0f}%")
        print(f"  Morale:        {summary.final_morale:.0f}")
        print(f"  Integrity:     {summary.team_integrity:.0f}")

        stats = summary.stats
        print("\nRACE STATISTICS:")
        print("-" * 50)
        print(f"  Supply stops:        {stats.supply_stops}")
        print(f"  Decisions taken:     {stats.events_handled}")
        print(f"  Mechanical failures: {stats.mechanical_failures}")
        print(f"  Weather challenges:  {stats.weather_challenges}")
        print(f"  Formation changes:   {stats.formation_changes}")
        print(f"  Leader rotations:    {stats.leader_rotations}")
        print(f"  Climbs completed:    {stats.climbs_completed}")
        print(f"  Riders dropped:      {stats.riders_dropped}")

        if score is not None:
            print("\nSCORE:")
            print("-" * 50)
            for component, value in score.breakdown.items():
                if component == "difficulty_multiplier":
                    print(f"  {component:<22} x{value:.1f}")
                else:
                    print(f"  {component:<22} {value:8.0f}")
            achievements = score.metrics.get("achievements", [])
            if achievements:
                print(f"  Achievements: {', '.join(achievements)}")
            print(f"  {'TOTAL':<22} {score.total_score:8d}")

        if ranking is not None:
            print(f"\n  Rank #{ranking.rank}  (top {100 - ranking.percentile}%, grade {ranking.grade})")

        print("=" * 60)

    @staticmethod
    def print_event_log(events: list[EventRecord]) -> None:
        """Print the race event history.

        Args:
            events: Event records in the order they happened
        """
        print("\n" + "=" * 80)
        print("EVENT LOG")
        print("=" * 80)
        print(f"{'Km':>6}  {'Time':<12} {'Category':<11} {'Event':<24} {'Choice':<20}")
        print("-" * 80)

        for record in events:
            choice = " > ".join(record.choices.values())
            print(
                f"{record.distance:6.1f}  "
                f"{format_duration(record.elapsed_time):<12} "
                f"{record.category.value:<11} "
                f"{record.name:<24} "
                f"{choice:<20}"
            )

        if not events:
            print("  (no events)")
        print("=" * 80)

    @staticmethod
    def print_timeline(snapshots: list[RaceSnapshot], every: int = 10) -> None:
        """Print every n-th snapshot of a fast-forward run.

        Args:
            snapshots: Snapshots in frame order
            every: Print one line per this many snapshots (the last is always printed)
        """
        print("\n" + "=" * 80)
        print("TIMELINE")
        print("=" * 80)
        print(f"{'Frame':>6} {'Km':>7} {'Time':<12} {'Speed':>6} {'Morale':>7}  {'Leader':<16} {'Terrain':<14}")
        print("-" * 80)

        for i, snap in enumerate(snapshots):
            if i % every and i != len(snapshots) - 1:
                continue
            print(
                f"{snap.frame:6.0f} "
                f"{snap.distance:7.1f} "
                f"{format_duration(snap.elapsed_time):<12} "
                f"{snap.speed:6.1f} "
                f"{snap.morale:7.0f}  "
                f"{snap.leader:<16} "
                f"{snap.terrain.value:<14}"
            )

        print("=" * 80)

    @staticmethod
    def print_monte_carlo_summary(results: SimulationResults) -> None:
        """Print Monte Carlo simulation summary.

        Args:
            results: Aggregated simulation results
        """
        print("\n" + "=" * 80)
        print("MONTE CARLO SIMULATION RESULTS - Taipei to Kaohsiung")
        print(f"({results.num_simulations} simulations per strategy)")
        print("=" * 80)

        ranked = sorted(
            results.strategy_stats.values(),
            key=lambda s: (s.completion_rate, s.mean_score),
            reverse=True,
        )

        print("\nCOMPLETION RATE:")
        print("-" * 60)
        for stats in ranked:
            bar = "#" * int(stats.completion_rate / 2)
            print(f"{stats.strategy:<44} {stats.completion_rate:5.1f}% {bar}")

        print("\nRACE TIMES (completed runs):")
        print("-" * 60)
        for stats in ranked:
            if stats.completion_times:
                print(
                    f"{stats.strategy:<44} "
                    f"Avg: {format_duration(stats.mean_completion_time)}  "
                    f"Best: {format_duration(stats.best_completion_time)}  "
                    f"Worst: {format_duration(stats.worst_completion_time)}"
                )
            else:
                print(f"{stats.strategy:<44} no finishes")

        print("\nSCORES:")
        print("-" * 60)
        for stats in ranked:
            print(
                f"{stats.strategy:<44} "
                f"Score: {stats.mean_score:8.0f}  "
                f"Riders: {stats.mean_riders_finished:.2f}  "
                f"Events: {stats.mean_events:.1f}"
            )

        best = results.best_strategy()
        if best is not None:
            print(f"\nBest strategy: {best.strategy}")
        print("=" * 80)
