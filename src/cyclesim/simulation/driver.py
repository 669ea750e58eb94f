"""Real-time and fast-forward drivers around the race tick."""

import numpy as np
from loguru import logger
from pydantic import BaseModel, Field

from cyclesim.data.catalog import ROUTE
from cyclesim.errors import UnreachableTerminationError
from cyclesim.models import (
    BikeLoadout,
    Difficulty,
    Formation,
    RaceState,
    Route,
    StrategyConfig,
    TeamConfig,
    TerrainType,
    WeatherCondition,
)
from cyclesim.models.state import DEFAULT_TARGET_SECONDS
from cyclesim.simulation.events import DEFAULT_AMBIENT_EVENT_RATE
from cyclesim.simulation.race import RaceSimulator, RaceSummary, get_summary, toggle_pause

SPEED_PRESETS = (1.0, 5.0, 10.0, 50.0)
MAX_SNAPSHOTS = 100
NOMINAL_SPEED_KMH = 25.0


def estimate_race_duration(route: Route | None = None, nominal_speed_kmh: float = NOMINAL_SPEED_KMH) -> float:
    """Estimated race duration in seconds at a nominal speed."""
    route = route if route is not None else ROUTE
    return route.total_distance / nominal_speed_kmh * 3600


class RealTimeDriver:
    """Drives a race from wall-clock frames.

    Each frame advances the race by the frame time scaled with the speed
    multiplier. Pausing only gates the ticks; the state is never reset.
    """

    def __init__(self, simulator: RaceSimulator, state: RaceState, speed_multiplier: float = 1.0):
        self.simulator = simulator
        self.state = state
        self.speed_multiplier = 1.0
        self.set_speed_multiplier(speed_multiplier)

    @property
    def is_running(self) -> bool:
        return not self.state.is_paused and not self.state.is_complete

    def advance(self, frame_seconds: float) -> RaceState:
        """Advance by one wall-clock frame and return the new state."""
        if self.is_running and frame_seconds > 0:
            self.state = self.simulator.tick(self.state, frame_seconds * self.speed_multiplier)
        return self.state

    def pause(self) -> None:
        if not self.state.is_paused:
            self.state = toggle_pause(self.state)

    def resume(self) -> None:
        if self.state.is_paused:
            self.state = toggle_pause(self.state)

    def set_speed_multiplier(self, multiplier: float) -> None:
        """Set the time compression (presets are 1x, 5x, 10x and 50x)."""
        if multiplier <= 0:
            raise ValueError(f"Speed multiplier must be positive, got {multiplier}")
        if multiplier not in SPEED_PRESETS:
            logger.debug(f"Non-preset speed multiplier {multiplier}x")
        self.speed_multiplier = float(multiplier)


class RaceSnapshot(BaseModel):
    """Race state captured at one frame, for playback."""

    frame: float = Field(..., ge=0)
    distance: float
    elapsed_time: float
    speed: float
    morale: float
    stamina: list[float] = Field(default_factory=list, description="Stamina per team member")
    leader: str = Field(..., description="Id of the rider on the front")
    formation: Formation
    terrain: TerrainType
    weather: WeatherCondition

    @classmethod
    def capture(cls, state: RaceState, frame: float) -> "RaceSnapshot":
        team = state.team
        return cls(
            frame=frame,
            distance=state.distance,
            elapsed_time=state.elapsed_time,
            speed=state.speed,
            morale=team.morale,
            stamina=[m.current_stamina for m in team.members],
            leader=team.leader.id,
            formation=team.formation,
            terrain=state.terrain,
            weather=state.weather,
        )


class FastForwardConfig(BaseModel):
    """Inputs of a fast-forward run."""

    team: TeamConfig
    bike: BikeLoadout
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    difficulty: Difficulty = Difficulty.NORMAL
    duration: float = Field(default=30.0, gt=0, description="Wall-clock playback duration in seconds")
    fps: int = Field(default=30, gt=0, le=240)
    target_time: float = Field(default=DEFAULT_TARGET_SECONDS, gt=0, description="Target race time in seconds")
    weather: WeatherCondition = WeatherCondition.CLEAR
    ambient_event_rate: float = Field(default=DEFAULT_AMBIENT_EVENT_RATE, ge=0, le=1)
    nominal_speed_kmh: float = Field(default=NOMINAL_SPEED_KMH, gt=0)


class FastForwardResult(BaseModel):
    """Outcome of a fast-forward run."""

    snapshots: list[RaceSnapshot]
    summary: RaceSummary
    total_frames: int
    final_state: RaceState
    completed: bool
    failed: bool
    target_duration: float
    fps: int
    strategy: str


def downsample(snapshots: list[RaceSnapshot], limit: int = MAX_SNAPSHOTS) -> list[RaceSnapshot]:
    """Keep at most ``limit`` evenly spaced snapshots, always the last one."""
    if len(snapshots) <= limit:
        return list(snapshots)
    indices = np.unique(np.linspace(0, len(snapshots) - 1, limit).round().astype(int))
    return [snapshots[i] for i in indices]


def run_fast_forward(
    config: FastForwardConfig,
    rng: np.random.Generator | None = None,
    route: Route | None = None,
) -> FastForwardResult:
    """Run a whole race compressed into ``config.duration`` seconds of playback.

    Args:
        config: Team, bike, strategy and playback settings
        rng: Random number generator
        route: Route to race (defaults to Taipei to Kaohsiung)

    Returns:
        FastForwardResult with down-sampled snapshots and the summary

    Raises:
        UnreachableTerminationError: If the race has not finished within
            twice the expected number of frames
    """
    simulator = RaceSimulator(rng=rng, route=route, ambient_event_rate=config.ambient_event_rate)
    state = simulator.initialize_race_state(
        config.team,
        config.bike,
        config.strategy,
        difficulty=config.difficulty,
        target_time=config.target_time,
        weather=config.weather,
    )

    compression = estimate_race_duration(simulator.route, config.nominal_speed_kmh) / config.duration
    delta_time = compression / config.fps
    max_frames = int(config.fps * config.duration * 2)
    logger.info(
        f"Fast-forward: {config.strategy.label}, {compression:.0f}x compression, "
        f"dt={delta_time:.1f}s, up to {max_frames} frames"
    )

    snapshots = [RaceSnapshot.capture(state, 0)]
    frames = 0
    while not state.is_complete and frames < max_frames:
        state = simulator.tick(state, delta_time)
        frames += 1
        snapshots.append(RaceSnapshot.capture(state, frames))

    result = FastForwardResult(
        snapshots=downsample(snapshots),
        summary=get_summary(state),
        total_frames=frames,
        final_state=state,
        completed=state.is_complete and not state.failed,
        failed=state.failed,
        target_duration=config.duration,
        fps=config.fps,
        strategy=config.strategy.label,
    )
    if not state.is_complete:
        raise UnreachableTerminationError(
            f"race unfinished after {frames} frames at {state.distance:.1f} km",
            partial_result=result,
        )

    logger.info(
        f"Fast-forward finished after {frames} frames: "
        f"{'failed' if state.failed else 'completed'} at {state.distance:.1f} km"
    )
    return result


def interpolate_snapshot(snapshots: list[RaceSnapshot], target_frame: float) -> RaceSnapshot | None:
    """Blend the two snapshots around ``target_frame`` for smooth playback.

    Continuous values are interpolated linearly; leader, formation, terrain
    and weather come from the later snapshot. Targets outside the captured
    range return the boundary snapshot.
    """
    if not snapshots:
        return None
    if target_frame <= snapshots[0].frame:
        return snapshots[0]
    if target_frame >= snapshots[-1].frame:
        return snapshots[-1]

    for before, after in zip(snapshots, snapshots[1:]):
        if before.frame <= target_frame < after.frame:
            break
    if target_frame == before.frame:
        return before

    t = (target_frame - before.frame) / (after.frame - before.frame)

    def lerp(a: float, b: float) -> float:
        return a + (b - a) * t

    return RaceSnapshot(
        frame=target_frame,
        distance=lerp(before.distance, after.distance),
        elapsed_time=lerp(before.elapsed_time, after.elapsed_time),
        speed=lerp(before.speed, after.speed),
        morale=lerp(before.morale, after.morale),
        stamina=[lerp(a, b) for a, b in zip(before.stamina, after.stamina)],
        leader=after.leader,
        formation=after.formation,
        terrain=after.terrain,
        weather=after.weather,
    )
