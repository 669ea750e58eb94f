"""Race simulation engine: one tick at a time."""

import math

import numpy as np
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from cyclesim.data.catalog import ROUTE
from cyclesim.errors import InvalidConfigurationError
from cyclesim.models import (
    Ability,
    BikeLoadout,
    CharacterType,
    ClimbingPreset,
    Difficulty,
    Formation,
    MoraleEvent,
    Performance,
    RaceState,
    RaceStats,
    Route,
    RouteSegment,
    StrategyConfig,
    TeamConfig,
    TeamMember,
    TeamState,
    WeatherCondition,
)
from cyclesim.models.state import DEFAULT_TARGET_SECONDS, TIME_LIMIT_SECONDS
from cyclesim.simulation import formulas
from cyclesim.simulation.events import DEFAULT_AMBIENT_EVENT_RATE, DecisionPolicy, EventEngine, StrategyDecisionPolicy

# Maps a 0-100 speed stat to a base cruising speed in km/h
CHARACTER_SPEED_SCALE = 0.3
FORMATION_SWITCH_SECONDS = 30.0
MORALE_TIME_CONSTANT = 600.0
FAILURE_STAMINA = 5.0
FAILURE_MORALE = 5.0
EXHAUSTION_STAMINA = 15.0
SPRINT_DISTANCE = 20.0

CLIMBING_FORMATIONS: dict[ClimbingPreset, Formation | None] = {
    ClimbingPreset.SINGLE: Formation.SINGLE_LINE,
    ClimbingPreset.DOUBLE: Formation.DOUBLE_PACELINE,
    ClimbingPreset.MAINTAIN: None,
}


class RaceSummary(BaseModel):
    """Reduction of a finished race."""

    completed: bool
    failed: bool
    completion_time: float = Field(..., description="Race time in seconds")
    final_distance: float
    total_distance: float
    team_finished: int
    total_team_size: int
    average_fatigue: float = Field(..., ge=0, le=1, description="1 - mean stamina of finishers (0-1)")
    final_morale: float
    stats: RaceStats
    team_integrity: float
    formation_broken: bool
    difficulty: Difficulty
    target_time: float = Field(..., description="Target race time in seconds")
    average_speed: float = Field(..., description="km/h over the whole race")
    strategy: StrategyConfig


def assess_performance(state: RaceState) -> Performance:
    """Compare progress along the route with progress through the target time."""
    if state.elapsed_time <= 0:
        return Performance.ON_TARGET
    expected = state.elapsed_time / state.target_time
    actual = state.distance / state.total_distance
    ratio = actual / expected
    if ratio >= 1.05:
        return Performance.LEADING
    if ratio >= 0.95:
        return Performance.ON_TARGET
    if ratio >= 0.8:
        return Performance.BEHIND
    return Performance.FAR_BEHIND


class RaceSimulator:
    """Advances a cycling race tick by tick."""

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        route: Route | None = None,
        event_engine: EventEngine | None = None,
        decision_policy: DecisionPolicy | None = None,
        ambient_event_rate: float = DEFAULT_AMBIENT_EVENT_RATE,
    ):
        """Initialize race simulator.

        Args:
            rng: Random number generator
            route: Route to race (defaults to Taipei to Kaohsiung)
            event_engine: Event engine (built from rng if None)
            decision_policy: Answers event decisions (defaults to the race strategy)
            ambient_event_rate: Chance per simulated second of an ambient event roll
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self.route = route if route is not None else ROUTE
        self.event_engine = event_engine or EventEngine(rng=self.rng, ambient_event_rate=ambient_event_rate)
        self.decision_policy = decision_policy or StrategyDecisionPolicy()

    def initialize_race_state(
        self,
        team_config: TeamConfig | dict | None,
        bike_config: BikeLoadout | dict | None,
        strategy_config: StrategyConfig | dict | None = None,
        difficulty: Difficulty | str = Difficulty.NORMAL,
        target_time: float = DEFAULT_TARGET_SECONDS,
        weather: WeatherCondition | str = WeatherCondition.CLEAR,
    ) -> RaceState:
        """Create the starting state.

        Args:
            team_config: Hired riders and starting formation
            bike_config: Bike loadout
            strategy_config: Strategy presets (defaults apply if None)
            difficulty: Difficulty level
            target_time: Target race time in seconds
            weather: Weather at the start

        Returns:
            RaceState at km 0

        Raises:
            InvalidConfigurationError: If any configuration is missing or invalid
        """
        if team_config is None:
            raise InvalidConfigurationError("team configuration is required")
        if bike_config is None:
            raise InvalidConfigurationError("bike configuration is required")

        try:
            team = TeamConfig.model_validate(team_config)
            bike = BikeLoadout.model_validate(bike_config)
            strategy = StrategyConfig.model_validate(strategy_config or {})
            difficulty = Difficulty(difficulty)
            weather = WeatherCondition(weather)
        except ValidationError as e:
            details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise InvalidConfigurationError(details) from e
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

        members = [
            TeamMember(id=f"{archetype.id}_{i + 1}", archetype=archetype, current_stamina=100.0)
            for i, archetype in enumerate(team.members)
        ]
        state = RaceState(
            total_distance=self.route.total_distance,
            team=TeamState(
                members=members,
                formation=team.formation,
                base_formation=team.formation,
                morale=team.morale,
            ),
            bike=bike,
            strategy=strategy,
            difficulty=difficulty,
            target_time=target_time,
            base_weather=weather,
            weather=weather,
            terrain=self.route.segments[0].terrain,
        )
        logger.info(
            f"Race initialized: {len(members)} riders, formation={team.formation.value}, "
            f"strategy={strategy.label}, difficulty={difficulty.value}"
        )
        return state

    def tick(self, state: RaceState, delta_time: float) -> RaceState:
        """Advance the race by one tick.

        Args:
            state: Current state (left untouched)
            delta_time: Simulated seconds to advance

        Returns:
            New state; the same object if paused, complete or delta_time <= 0
        """
        if state.is_complete or state.is_paused or delta_time <= 0:
            return state

        s = state.model_copy(deep=True)
        team = s.team

        # Temporary effects
        s.active_effects = [e for e in s.active_effects if not e.is_expired(s.elapsed_time)]
        speed_product = math.prod(e.speed_modifier for e in s.active_effects)
        drain_product = math.prod(e.stamina_drain for e in s.active_effects)
        supplied = any(e.supplied for e in s.active_effects)
        s.weather = s.base_weather
        for effect in s.active_effects:
            if effect.weather is not None:
                s.weather = effect.weather

        # Terrain
        segment = self.route.segment_at(s.distance)
        if s.terrain.is_climb() and not segment.terrain.is_climb():
            s.stats.climbs_completed += 1
            self._morale_event(s, MoraleEvent.SUCCESSFUL_CLIMB)
        s.terrain = segment.terrain
        self._update_formation(s, segment)

        active = team.active_members
        if active:
            self._ensure_active_leader(s)
            leader = team.leader
            riding_order = [leader] + [m for m in active if m is not leader]
            positions = formulas.formation_positions(team.formation, len(riding_order))
            pack_position = positions[1] if len(positions) > 1 else positions[0]
            morale_fx = formulas.morale_effects(team.morale)

            # Speed
            if segment.terrain.is_climb():
                stat = sum((m.stats.speed + m.stats.climbing) / 2 for m in active) / len(active)
            else:
                stat = sum(m.stats.speed for m in active) / len(active)
            speed = formulas.effective_speed(
                character_speed=stat * CHARACTER_SPEED_SCALE,
                equipment_bonus=s.bike.equipment_bonus,
                terrain=segment.terrain,
                stamina=team.average_stamina,
                formation=team.formation,
                position=pack_position,
                weather=s.weather,
                abilities=self._active_abilities(s, segment),
                event_modifier=morale_fx.speed,
            )
            speed *= speed_product * s.strategy.speed_multiplier
            s.speed = speed
            s.stats.max_speed = max(s.stats.max_speed, speed)

            # Distance and time
            distance = speed * delta_time / 3600
            s.distance += distance
            s.distance_since_last_event += distance
            s.elapsed_time += delta_time

            # Stamina
            team_support = min(100.0, team.harmony * (1 + morale_fx.teamwork))
            for member, position in zip(riding_order, positions):
                consumption = formulas.stamina_consumption(
                    distance=distance,
                    speed=speed,
                    terrain=segment.terrain,
                    formation=team.formation,
                    position=position,
                    weather=s.weather,
                    bike_weight=s.bike.total_weight,
                    endurance=member.stats.stamina,
                    is_leading=member is leader,
                )
                consumption *= drain_product * s.strategy.consumption_multiplier
                consumption *= (1 + morale_fx.stamina) * (1 - s.bike.stamina_saving)
                rate = formulas.recovery_rate(
                    base_recovery=member.stats.recovery,
                    current_speed=speed,
                    is_resting=False,
                    has_supplies=supplied,
                    team_support=team_support,
                    morale=team.morale,
                    weather=s.weather,
                )
                recovered = rate * (1 + morale_fx.recovery) / 60 * delta_time
                member.current_stamina = max(0.0, min(100.0, member.current_stamina - consumption + recovered))
            self._check_dropped(s)

            # Leader rotation
            self._rotate_leader(s)

            # Morale
            fatigue = 100 - team.average_stamina
            delta = formulas.morale_change(
                current_morale=team.morale,
                event=None,
                performance=assess_performance(s),
                team_harmony=team.harmony,
                weather=s.weather,
                fatigue=fatigue,
            )
            team.morale = max(0.0, min(100.0, team.morale + delta * delta_time / MORALE_TIME_CONSTANT))
            if not s.exhaustion_reported and team.average_stamina < EXHAUSTION_STAMINA:
                s.exhaustion_reported = True
                self._morale_event(s, MoraleEvent.EXHAUSTION)
        else:
            s.speed = 0.0
            s.elapsed_time += delta_time

        # Events
        for template, location in self.event_engine.check_mandatory(s):
            choices = self.decision_policy(template, s)
            resolved = self.event_engine.resolve(template, choices, team, s.bike, location)
            self.event_engine.apply_in_place(s, resolved)

        template = self.event_engine.check_ambient(s, segment, delta_time)
        if template is not None:
            choices = self.decision_policy(template, s) if template.has_decision else {}
            resolved = self.event_engine.resolve(template, choices, team, s.bike)
            self.event_engine.apply_in_place(s, resolved)
        self._check_dropped(s)
        if team.active_members:
            self._ensure_active_leader(s)

        self._check_termination(s)
        return s

    def run(self, state: RaceState, delta_time: float, max_ticks: int = 100_000) -> RaceState:
        """Tick until the race is complete, paused or max_ticks is reached."""
        for _ in range(max_ticks):
            if state.is_complete or state.is_paused:
                break
            state = self.tick(state, delta_time)
        return state

    def _active_abilities(self, state: RaceState, segment: RouteSegment) -> list[Ability]:
        team = state.team
        leader = team.leader
        abilities = list(state.bike.abilities)

        if leader.type == CharacterType.CLIMBER and segment.terrain.is_climb():
            abilities.append(Ability.MOUNTAIN_ACCELERATION)
        if (
            leader.type == CharacterType.SPRINTER
            and not segment.terrain.is_climb()
            and state.remaining_distance <= SPRINT_DISTANCE
        ):
            abilities.append(Ability.SPRINT_BURST)
        if leader.type == CharacterType.DOMESTIQUE:
            abilities.append(Ability.TEAM_LEADER)

        active = team.active_members
        if any(m.type == CharacterType.ALL_ROUNDER for m in active) and all(
            m.current_stamina >= 60 for m in active
        ):
            abilities.append(Ability.ENDURANCE_BOOST)
        return abilities

    def _update_formation(self, state: RaceState, segment: RouteSegment) -> None:
        """Switch to the climbing formation on climbs and back afterwards."""
        team = state.team
        if team.formation_broken:
            return

        desired = team.base_formation
        if segment.terrain.is_climb():
            desired = CLIMBING_FORMATIONS[state.strategy.climbing] or team.base_formation

        if desired != team.formation:
            logger.debug(f"Formation {team.formation.value} -> {desired.value} at {state.distance:.1f} km")
            team.formation = desired
            state.stats.formation_changes += 1
            state.elapsed_time += FORMATION_SWITCH_SECONDS

    def _ensure_active_leader(self, state: RaceState) -> None:
        """Hand the lead on if the current leader has dropped."""
        team = state.team
        if team.leader.dropped:
            best = self._strongest_member(team)
            if best is not None:
                team.leader_index = best
                state.stats.leader_rotations += 1

    def _rotate_leader(self, state: RaceState) -> None:
        team = state.team
        leader = team.leader
        if leader.current_stamina >= state.strategy.rotation_threshold:
            return

        best = self._strongest_member(team)
        if best is None or best == team.leader_index:
            return
        if team.members[best].current_stamina > leader.current_stamina:
            logger.debug(
                f"Leader rotation at {state.distance:.1f} km: {leader.id} "
                f"({leader.current_stamina:.0f}%) -> {team.members[best].id}"
            )
            team.leader_index = best
            state.stats.leader_rotations += 1

    @staticmethod
    def _strongest_member(team: TeamState) -> int | None:
        """Index of the active member with most stamina (lowest index on ties)."""
        best: int | None = None
        for i, member in enumerate(team.members):
            if member.dropped:
                continue
            if best is None or member.current_stamina > team.members[best].current_stamina:
                best = i
        return best

    def _check_dropped(self, state: RaceState) -> None:
        for member in state.team.members:
            if not member.dropped and member.current_stamina <= 0:
                member.dropped = True
                state.stats.riders_dropped += 1
                logger.info(f"{member.id} dropped out at {state.distance:.1f} km")
                self._morale_event(state, MoraleEvent.DROPPED)

    def _morale_event(self, state: RaceState, event: MoraleEvent) -> None:
        team = state.team
        delta = formulas.morale_change(
            current_morale=team.morale,
            event=event,
            performance=None,
            team_harmony=team.harmony,
            weather=None,
            fatigue=100 - team.average_stamina,
        )
        team.morale = max(0.0, min(100.0, team.morale + delta))

    def _check_termination(self, state: RaceState) -> None:
        if state.distance >= state.total_distance:
            state.distance = state.total_distance
            state.is_complete = True
            logger.info(
                f"Race complete in {formulas.format_duration(state.elapsed_time)} "
                f"with {len(state.team.active_members)}/{len(state.team.members)} riders"
            )
            return

        active = state.team.active_members
        exhausted = all(m.current_stamina < FAILURE_STAMINA for m in active)
        if exhausted or state.team.morale < FAILURE_MORALE or state.elapsed_time >= TIME_LIMIT_SECONDS:
            state.is_complete = True
            state.failed = True
            logger.info(
                f"Race failed at {state.distance:.1f} km after {formulas.format_duration(state.elapsed_time)} "
                f"(morale={state.team.morale:.0f}, average stamina={state.team.average_stamina:.0f})"
            )


def get_summary(state: RaceState) -> RaceSummary:
    """Reduce a race state to its summary. Pure; meaningful once complete."""
    team = state.team
    active = team.active_members
    completed = state.is_complete and not state.failed
    if active:
        average_fatigue = 1 - sum(m.current_stamina for m in active) / len(active) / 100
    else:
        average_fatigue = 1.0
    hours = state.elapsed_time / 3600
    return RaceSummary(
        completed=completed,
        failed=state.failed,
        completion_time=state.elapsed_time,
        final_distance=state.distance,
        total_distance=state.total_distance,
        team_finished=len(active) if completed else 0,
        total_team_size=len(team.members),
        average_fatigue=max(0.0, min(1.0, average_fatigue)),
        final_morale=team.morale,
        stats=state.stats.model_copy(),
        team_integrity=team.integrity,
        formation_broken=team.formation_broken,
        difficulty=state.difficulty,
        target_time=state.target_time,
        average_speed=state.distance / hours if hours > 0 else 0.0,
        strategy=state.strategy,
    )


def initialize_race_state(
    team_config: TeamConfig | dict | None,
    bike_config: BikeLoadout | dict | None,
    strategy_config: StrategyConfig | dict | None = None,
    difficulty: Difficulty | str = Difficulty.NORMAL,
) -> RaceState:
    """Create the starting state on the default route."""
    return RaceSimulator().initialize_race_state(team_config, bike_config, strategy_config, difficulty)


def tick(state: RaceState, delta_time: float, rng: np.random.Generator | None = None) -> RaceState:
    """Advance a race by one tick on the default route."""
    return RaceSimulator(rng=rng).tick(state, delta_time)


def toggle_pause(state: RaceState) -> RaceState:
    """Return a copy with the pause gate flipped."""
    return state.model_copy(update={"is_paused": not state.is_paused}, deep=True)
