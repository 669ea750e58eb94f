"""Race state aggregate threaded through every simulation tick."""

from pydantic import BaseModel, Field

from cyclesim.models.equipment import BikeLoadout
from cyclesim.models.event import ActiveEffect, EventRecord
from cyclesim.models.rider import TeamMember
from cyclesim.models.route import TerrainType
from cyclesim.models.strategy import Difficulty, StrategyConfig
from cyclesim.models.team import Formation
from cyclesim.models.weather import WeatherCondition

TOTAL_DISTANCE_KM = 380.0
TIME_LIMIT_SECONDS = 24 * 60 * 60
DEFAULT_TARGET_SECONDS = 12 * 60 * 60


class RaceStats(BaseModel):
    """Running counters for one race."""

    mechanical_failures: int = 0
    weather_challenges: int = 0
    events_handled: int = 0
    supply_stops: int = 0
    formation_changes: int = 0
    leader_rotations: int = 0
    climbs_completed: int = 0
    riders_dropped: int = 0
    max_speed: float = 0.0


class TeamState(BaseModel):
    """Team as it rides: members, formation, leader and morale."""

    members: list[TeamMember] = Field(..., min_length=1)
    formation: Formation = Field(default=Formation.SINGLE_LINE, description="Current formation")
    base_formation: Formation = Field(default=Formation.SINGLE_LINE, description="Formation chosen before the start")
    formation_broken: bool = Field(default=False, description="Formation permanently lost to an event")
    leader_index: int = Field(default=0, ge=0, description="Index into members of the rider on the front")
    morale: float = Field(default=100.0, ge=0, le=100)
    integrity: float = Field(default=100.0, ge=0, le=100, description="Team cohesion (zeroed on disband)")

    @property
    def leader(self) -> TeamMember:
        return self.members[self.leader_index]

    @property
    def active_members(self) -> list[TeamMember]:
        """Members still in the race."""
        return [m for m in self.members if not m.dropped]

    @property
    def average_stamina(self) -> float:
        active = self.active_members
        if not active:
            return 0.0
        return sum(m.current_stamina for m in active) / len(active)

    @property
    def harmony(self) -> float:
        """Mean teamwork rating of active members."""
        active = self.active_members
        if not active:
            return 0.0
        return sum(m.stats.teamwork for m in active) / len(active)


class RaceState(BaseModel):
    """Complete race state.

    A plain serialisable value: transitions return new instances and never
    mutate the one they were given.
    """

    distance: float = Field(default=0.0, ge=0, description="Cumulative distance in km")
    total_distance: float = Field(default=TOTAL_DISTANCE_KM, gt=0)
    elapsed_time: float = Field(default=0.0, ge=0, description="Race time in seconds")
    speed: float = Field(default=0.0, ge=0, description="Pack speed on the last tick (km/h)")
    team: TeamState
    bike: BikeLoadout
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    difficulty: Difficulty = Difficulty.NORMAL
    target_time: float = Field(default=DEFAULT_TARGET_SECONDS, gt=0, description="Target race time in seconds")
    base_weather: WeatherCondition = WeatherCondition.CLEAR
    weather: WeatherCondition = WeatherCondition.CLEAR
    terrain: TerrainType = TerrainType.FLAT
    event_history: list[EventRecord] = Field(default_factory=list)
    active_effects: list[ActiveEffect] = Field(default_factory=list)
    triggered_events: list[str] = Field(default_factory=list)
    reached_stations: list[float] = Field(default_factory=list)
    distance_since_last_event: float = Field(default=0.0, ge=0)
    exhaustion_reported: bool = False
    stats: RaceStats = Field(default_factory=RaceStats)
    is_complete: bool = False
    failed: bool = False
    is_paused: bool = False

    @property
    def progress(self) -> float:
        """Fraction of the route covered (0-1)."""
        return min(1.0, self.distance / self.total_distance)

    @property
    def remaining_distance(self) -> float:
        return max(0.0, self.total_distance - self.distance)

    def has_triggered(self, key: str) -> bool:
        return key in self.triggered_events
