"""Command line entry point.

Usage:
    cyclesim demo [--pace aggressive] [--supply full] [--events] [--export]
    cyclesim montecarlo [--simulations N] [--no-parallel]

Examples:
    cyclesim demo --seed 42 --team domestique,climber,sprinter --timeline
    cyclesim montecarlo -n 200 --export
"""

import argparse
import sys

import numpy as np

from cyclesim.analysis import MonteCarloRunner
from cyclesim.config import get_settings
from cyclesim.data import default_loadout, default_team, get_character
from cyclesim.errors import CycleSimError, ScoreValidationError, UnreachableTerminationError
from cyclesim.logger import setup_logger
from cyclesim.models import (
    ClimbingPreset,
    Difficulty,
    Formation,
    MechanicalPreset,
    PacePreset,
    StrategyConfig,
    SupplyPreset,
    TeamConfig,
)
from cyclesim.output import ConsoleOutput, Exporter
from cyclesim.persistence import Leaderboard, ScorePayload, StateStore
from cyclesim.simulation import FastForwardConfig, calculate_final_score, calculate_ranking, run_fast_forward


def _values(enum_cls) -> list[str]:
    return [e.value for e in enum_cls]


def _team(args: argparse.Namespace) -> TeamConfig:
    formation = Formation(args.formation)
    if not args.team:
        return default_team(formation=formation)
    ids = [cid.strip() for cid in args.team.split(",") if cid.strip()]
    try:
        members = [get_character(cid) for cid in ids]
    except KeyError as e:
        raise SystemExit(f"Unknown character: {e.args[0]}")
    return TeamConfig(members=members, formation=formation)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Simulate a cycling team racing Taipei to Kaohsiung")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--team",
        help="Comma-separated character ids (default: domestique,climber,sprinter,allrounder)",
    )
    common.add_argument("--formation", default=Formation.SINGLE_LINE.value, choices=_values(Formation))
    common.add_argument(
        "--difficulty",
        default=settings.difficulty.value,
        choices=_values(Difficulty),
        help="Difficulty level (default: %(default)s)",
    )
    common.add_argument("--seed", type=int, default=settings.seed, help="Random seed")
    common.add_argument("--export", action="store_true", help="Export results to CSV/JSON")
    common.add_argument(
        "--output-dir",
        default=settings.output_dir,
        help="Output directory for exports (default: %(default)s)",
    )

    demo = subparsers.add_parser("demo", parents=[common], help="Fast-forward one race")
    demo.add_argument("--pace", default=PacePreset.BALANCED.value, choices=_values(PacePreset))
    demo.add_argument("--supply", default=SupplyPreset.QUICK.value, choices=_values(SupplyPreset))
    demo.add_argument("--climbing", default=ClimbingPreset.MAINTAIN.value, choices=_values(ClimbingPreset))
    demo.add_argument("--mechanical", default=MechanicalPreset.QUICK_FIX.value, choices=_values(MechanicalPreset))
    demo.add_argument(
        "--rotation",
        type=float,
        default=30.0,
        help="Leader stamina (%%) below which the lead rotates (default: %(default)s)",
    )
    demo.add_argument("--duration", type=float, default=settings.demo_duration, help="Playback seconds")
    demo.add_argument("--fps", type=int, default=settings.demo_fps, help="Playback frame rate")
    demo.add_argument("--events", action="store_true", help="Print the event log")
    demo.add_argument("--timeline", action="store_true", help="Print the snapshot timeline")
    demo.add_argument("--save-state", action="store_true", help="Save the final race state")
    demo.add_argument("--submit", metavar="NAME", help="Submit the score to the local leaderboard")

    mc = subparsers.add_parser("montecarlo", parents=[common], help="Compare pace strategies")
    mc.add_argument(
        "--simulations",
        "-n",
        type=int,
        default=100,
        help="Number of simulations per strategy (default: 100)",
    )
    mc.add_argument("--parallel", action="store_true", default=True, help="Use parallel processing (default)")
    mc.add_argument("--no-parallel", action="store_false", dest="parallel", help="Disable parallel processing")

    return parser


def run_demo(args: argparse.Namespace) -> int:
    settings = get_settings()
    strategy = StrategyConfig(
        pace=args.pace,
        supply=args.supply,
        climbing=args.climbing,
        mechanical=args.mechanical,
        rotation_threshold=args.rotation,
    )
    config = FastForwardConfig(
        team=_team(args),
        bike=default_loadout(),
        strategy=strategy,
        difficulty=args.difficulty,
        duration=args.duration,
        fps=args.fps,
        target_time=settings.target_time_minutes * 60,
        ambient_event_rate=settings.ambient_event_rate,
        nominal_speed_kmh=settings.nominal_speed_kmh,
    )

    print("Cycling Race Simulation - Taipei to Kaohsiung")
    print(f"{'=' * 46}")
    print(f"Team: {', '.join(m.name for m in config.team.members)}")
    print(f"Strategy: {strategy.label}")
    print()

    try:
        result = run_fast_forward(config, rng=np.random.default_rng(args.seed))
    except UnreachableTerminationError as e:
        print(f"Race did not finish: {e}")
        result = e.partial_result

    score = calculate_final_score(result.summary)
    leaderboard = Leaderboard(settings.leaderboard_path)
    ranking = calculate_ranking(score.total_score, leaderboard.scores())

    ConsoleOutput.print_race_summary(result.summary, score, ranking)
    if args.events:
        ConsoleOutput.print_event_log(result.final_state.event_history)
    if args.timeline:
        ConsoleOutput.print_timeline(result.snapshots)

    if args.save_state:
        store = StateStore(settings.state_path)
        if store.save(result.final_state):
            print(f"\nRace state saved to {store.path}")

    if args.submit:
        payload = ScorePayload.from_result(
            result.summary,
            score,
            player_name=args.submit,
            team=[m.type.value for m in config.team.members],
        )
        try:
            submission = leaderboard.submit(payload)
            print(f"\nLeaderboard rank: #{submission.rank}")
        except ScoreValidationError as e:
            print(f"\nScore not accepted: {'; '.join(e.details)}")

    if args.export:
        print(f"\nExporting results to {args.output_dir}/...")
        files = Exporter(output_dir=args.output_dir).export_all(result=result, score=score, prefix="demo")
        print("Exported files:")
        for fmt, path in files.items():
            print(f"  {fmt}: {path}")

    return 0 if result.completed else 1


def run_monte_carlo(args: argparse.Namespace) -> int:
    settings = get_settings()
    print("Cycling Monte Carlo Strategy Comparison")
    print(f"{'=' * 40}")
    print(f"Simulations: {args.simulations} per strategy")
    print(f"Parallel: {args.parallel}")

    runner = MonteCarloRunner(
        team=_team(args),
        bike=default_loadout(),
        difficulty=Difficulty(args.difficulty),
        seed=args.seed,
        duration=settings.demo_duration,
        fps=settings.demo_fps,
        ambient_event_rate=settings.ambient_event_rate,
    )
    results = runner.run(num_simulations=args.simulations, parallel=args.parallel)
    ConsoleOutput.print_monte_carlo_summary(results)

    if args.export:
        print(f"\nExporting results to {args.output_dir}/...")
        files = Exporter(output_dir=args.output_dir).export_all(results=results, prefix="montecarlo")
        print("Exported files:")
        for fmt, path in files.items():
            print(f"  {fmt}: {path}")

    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(level=args.log_level.upper(), log_file=get_settings().log_file)

    try:
        if args.command == "demo":
            return run_demo(args)
        return run_monte_carlo(args)
    except CycleSimError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
