"""Event templates, effect bundles and runtime event records."""

from enum import Enum

from pydantic import BaseModel, Field

from cyclesim.models.rider import CharacterType
from cyclesim.models.route import TerrainType
from cyclesim.models.weather import WeatherCondition


class EventCategory(str, Enum):
    """Event families."""

    WEATHER = "weather"
    MECHANICAL = "mechanical"
    SUPPLY = "supply"
    ROAD = "road"
    MORALE = "morale"
    PHYSICAL = "physical"


class MoraleEvent(str, Enum):
    """Discrete happenings that shift team morale."""

    OVERTAKE = "overtake"
    GOOD_WEATHER = "good_weather"
    SUCCESSFUL_CLIMB = "successful_climb"
    TEAMWORK_SUCCESS = "teamwork_success"
    MYSTERY_BONUS = "mystery_bonus"
    MECHANICAL_FAILURE = "mechanical_failure"
    BAD_WEATHER = "bad_weather"
    DROPPED = "dropped"
    CONFLICT = "conflict"
    EXHAUSTION = "exhaustion"


class Performance(str, Enum):
    """Progress against the target time."""

    LEADING = "leading"
    ON_TARGET = "on_target"
    BEHIND = "behind"
    FAR_BEHIND = "far_behind"


class EffectBundle(BaseModel):
    """Effects of an event or of one decision option.

    Unset fields (None) leave the race state untouched, which lets a
    second-layer option override only what it names.
    """

    speed_modifier: float | None = Field(default=None, gt=0, le=2, description="Speed multiplier while active")
    stamina_drain: float | None = Field(default=None, gt=0, le=3, description="Consumption multiplier while active")
    stamina_delta: float | None = Field(default=None, ge=-100, le=100, description="Instant stamina change (points)")
    morale_delta: float | None = Field(default=None, ge=-100, le=100, description="Instant morale change (points)")
    time_delay: float | None = Field(default=None, ge=0, description="Time lost in seconds")
    formation_break: bool | None = Field(default=None, description="Formation falls apart for the rest of the race")
    team_disband: bool | None = Field(default=None, description="Team integrity drops to zero")
    weather: WeatherCondition | None = Field(default=None, description="Weather while active")
    supplied: bool | None = Field(default=None, description="Riders resupplied (boosts recovery)")

    def merged(self, other: "EffectBundle") -> "EffectBundle":
        """Return a bundle where every field set on ``other`` wins."""
        return self.model_copy(update=other.model_dump(exclude_none=True))

    def scaled(self, scale: "EffectScale") -> "EffectBundle":
        """Scale time, stamina and morale deltas."""
        update = {}
        if self.time_delay is not None:
            update["time_delay"] = self.time_delay * scale.time
        if self.stamina_delta is not None:
            update["stamina_delta"] = max(-100.0, min(100.0, self.stamina_delta * scale.stamina))
        if self.morale_delta is not None:
            update["morale_delta"] = max(-100.0, min(100.0, self.morale_delta * scale.morale))
        return self.model_copy(update=update)

    @property
    def is_timed(self) -> bool:
        """Check if the bundle carries anything that lasts over time."""
        return (
            self.speed_modifier is not None
            or self.stamina_drain is not None
            or self.weather is not None
            or bool(self.supplied)
        )


class EffectScale(BaseModel):
    """Multipliers applied to resolved time, stamina and morale deltas."""

    time: float = Field(default=1.0, ge=0, le=5)
    stamina: float = Field(default=1.0, ge=0, le=5)
    morale: float = Field(default=1.0, ge=0, le=5)

    def combine(self, other: "EffectScale") -> "EffectScale":
        return EffectScale(
            time=self.time * other.time,
            stamina=self.stamina * other.stamina,
            morale=self.morale * other.morale,
        )


class EventChoice(BaseModel):
    """One option of a decision layer."""

    id: str = Field(..., description="Option identifier")
    label: str = Field(..., description="Display label")
    description: str = Field(default="")
    effects: EffectBundle = Field(default_factory=EffectBundle)
    next_layer: str | None = Field(default=None, description="Name of the follow-up decision layer")
    duration: float | None = Field(default=None, gt=0, description="Duration of timed effects in seconds")


class TriggerConditions(BaseModel):
    """When an event may fire."""

    probability: float = Field(default=0.1, ge=0, le=1, description="Base probability per roll")
    fixed_locations: list[float] = Field(default_factory=list, description="Km markers for location events")
    mandatory: bool = Field(default=False, description="Fires unconditionally at each fixed location")
    distance_ranges: list[tuple[float, float]] = Field(
        default_factory=list,
        description="Inclusive (start, end) km windows; empty means anywhere",
    )
    terrain: list[TerrainType] = Field(default_factory=list, description="Allowed terrain; empty means any")
    morale_threshold: float | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Only fires while morale is below this value",
    )


class EventTemplate(BaseModel):
    """Immutable catalog entry for an event."""

    id: str = Field(..., description="Template identifier")
    name: str = Field(..., description="Display name")
    category: EventCategory
    description: str = Field(default="")
    trigger: TriggerConditions = Field(default_factory=TriggerConditions)
    effects: EffectBundle = Field(default_factory=EffectBundle, description="Direct effects")
    duration: float | None = Field(default=None, gt=0, description="Duration of timed effects in seconds")
    decision_tree: dict[str, list[EventChoice]] = Field(
        default_factory=dict,
        description="Decision layers; 'layer1' is the root",
    )
    character_modifiers: dict[CharacterType, EffectScale] = Field(default_factory=dict)
    equipment_modifiers: dict[str, EffectScale] = Field(default_factory=dict)
    morale_event: MoraleEvent | None = Field(
        default=None,
        description="Morale reaction used when no explicit morale delta resolves",
    )

    model_config = {"frozen": True}

    @property
    def has_decision(self) -> bool:
        return bool(self.decision_tree.get("layer1"))

    def options(self, layer: str = "layer1") -> list[EventChoice]:
        return self.decision_tree.get(layer, [])

    def option(self, layer: str, option_id: str) -> EventChoice | None:
        for choice in self.options(layer):
            if choice.id == option_id:
                return choice
        return None


class ActiveEffect(BaseModel):
    """Temporary modifier attached to a race until it expires."""

    source: str = Field(..., description="Event key that created the effect")
    speed_modifier: float = Field(default=1.0, gt=0, le=2)
    stamina_drain: float = Field(default=1.0, gt=0, le=3)
    weather: WeatherCondition | None = None
    supplied: bool = False
    expires_at: float = Field(..., ge=0, description="Elapsed race time (s) at which the effect ends")

    def is_expired(self, elapsed_time: float) -> bool:
        return elapsed_time >= self.expires_at


class ResolvedEvent(BaseModel):
    """Event after choices have been applied, ready to mutate a race."""

    key: str = Field(..., description="Trigger key (template id, or template@km for location events)")
    template_id: str
    name: str
    category: EventCategory
    choices: dict[str, str] = Field(default_factory=dict)
    effects: EffectBundle = Field(default_factory=EffectBundle)
    duration: float | None = None
    morale_event: MoraleEvent | None = None
    location: float | None = Field(default=None, description="Km marker for location events")
    narrative: str = ""

    @property
    def had_decision(self) -> bool:
        return bool(self.choices)


class EventRecord(BaseModel):
    """Entry in the race's event history."""

    key: str
    template_id: str
    name: str
    category: EventCategory
    elapsed_time: float
    distance: float
    choices: dict[str, str] = Field(default_factory=dict)
    effects: EffectBundle = Field(default_factory=EffectBundle)
    narrative: str = ""
