#!/usr/bin/env python3
"""Quick race example using the built-in catalog.

Runs one fast-forward race with detailed output, then a small Monte Carlo
comparison of the pace presets.

Usage:
    python examples/quick_race.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np

from cyclesim.analysis import MonteCarloRunner
from cyclesim.data import default_loadout, default_team
from cyclesim.models import ClimbingPreset, PacePreset, StrategyConfig, SupplyPreset
from cyclesim.output import ConsoleOutput, Exporter
from cyclesim.simulation import FastForwardConfig, calculate_final_score, run_fast_forward


def main():
    print("Cycling Race Simulation - Quick Example")
    print("=" * 50)

    team = default_team()
    bike = default_loadout()
    strategy = StrategyConfig(
        pace=PacePreset.BALANCED,
        supply=SupplyPreset.QUICK,
        climbing=ClimbingPreset.SINGLE,
    )

    print(f"Team: {', '.join(m.name for m in team.members)}")
    print(f"Bike: {bike.total_weight:.2f} kg, aero {bike.aero_rating:.0f}, cost {bike.total_cost}")
    print(f"Strategy: {strategy.label}")
    print()

    # Run a single race first to show detailed output
    print("Running single race simulation...")
    print("-" * 50)

    rng = np.random.default_rng(42)
    result = run_fast_forward(FastForwardConfig(team=team, bike=bike, strategy=strategy), rng=rng)
    score = calculate_final_score(result.summary)

    ConsoleOutput.print_race_summary(result.summary, score)
    ConsoleOutput.print_event_log(result.final_state.event_history)
    ConsoleOutput.print_timeline(result.snapshots)

    # Now run Monte Carlo simulation
    print("\n" + "=" * 50)
    print("Running Monte Carlo simulation (20 races per strategy)...")
    print("=" * 50)

    runner = MonteCarloRunner(team=team, bike=bike, seed=123)

    # Use quick run (non-parallel) for simplicity
    results = runner.run_quick(num_simulations=20)
    ConsoleOutput.print_monte_carlo_summary(results)

    # Export results
    print("\nExporting results...")
    exporter = Exporter(output_dir="output")
    files = exporter.export_all(result=result, score=score, results=results, prefix="quick")
    for fmt, path in files.items():
        print(f"  {fmt}: {path}")

    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
