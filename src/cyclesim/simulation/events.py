"""Race events: triggering, decision resolution and effects."""

from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from loguru import logger

from cyclesim.data.catalog import EVENT_TEMPLATES
from cyclesim.models import (
    ActiveEffect,
    BikeLoadout,
    CharacterType,
    Difficulty,
    EffectBundle,
    EffectScale,
    EventCategory,
    EventChoice,
    EventRecord,
    EventTemplate,
    Formation,
    RaceState,
    ResolvedEvent,
    RouteSegment,
    StrategyConfig,
    TeamState,
    WeatherCondition,
)
from cyclesim.simulation import formulas

DEFAULT_EFFECT_DURATION = 600.0
DEFAULT_AMBIENT_EVENT_RATE = 0.0005
DROUGHT_DISTANCE = 50.0

DIFFICULTY_EVENT_MULTIPLIER: dict[Difficulty, float] = {
    Difficulty.EASY: 0.5,
    Difficulty.NORMAL: 1.0,
    Difficulty.HARD: 1.5,
    Difficulty.EXTREME: 2.0,
}

WEATHER_EVENT_MULTIPLIER: dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 0.8,
    WeatherCondition.SUNNY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 1.0,
    WeatherCondition.CLOUDY: 1.0,
    WeatherCondition.HEADWIND: 1.0,
    WeatherCondition.TAILWIND: 1.0,
    WeatherCondition.SIDEWIND: 1.0,
    WeatherCondition.RAIN: 1.5,
    WeatherCondition.STORM: 2.0,
    WeatherCondition.HOT: 1.0,
    WeatherCondition.COLD: 1.0,
    WeatherCondition.HOT_SUNNY: 1.0,
}

DecisionPolicy = Callable[[EventTemplate, RaceState], dict[str, str]]


@dataclass
class Recommendation:
    """Scored decision option."""

    option_id: str
    label: str
    score: float
    risk_level: str
    expected_outcome: str
    reasoning: list[str] = field(default_factory=list)


def event_key(template: EventTemplate, location: float | None = None) -> str:
    """Key under which a firing is remembered; location events get one per km marker."""
    if location is None:
        return template.id
    return f"{template.id}@{location:g}"


def _risk_level(effects: EffectBundle) -> str:
    risk = 0.0
    if effects.team_disband:
        risk += 50
    if effects.formation_break:
        risk += 30
    if effects.stamina_drain is not None and effects.stamina_drain > 1.2:
        risk += 20
    if effects.time_delay is not None and effects.time_delay > 900:
        risk += 15
    if effects.speed_modifier is not None and effects.speed_modifier < 0.9:
        risk += 10

    if risk > 50:
        return "high"
    if risk > 25:
        return "medium"
    return "low"


def summarize_effects(effects: EffectBundle) -> str:
    """Short human-readable outcome, e.g. 'speed -20%, +5 min, morale +5'."""
    parts = []
    if effects.speed_modifier is not None and effects.speed_modifier != 1.0:
        parts.append(f"speed {(effects.speed_modifier - 1) * 100:+.0f}%")
    if effects.time_delay:
        parts.append(f"+{effects.time_delay / 60:.0f} min")
    if effects.stamina_delta:
        parts.append(f"stamina {effects.stamina_delta:+.0f}")
    if effects.morale_delta:
        parts.append(f"morale {effects.morale_delta:+.0f}")
    if effects.formation_break:
        parts.append("formation broken")
    if effects.team_disband:
        parts.append("team splits up")
    return ", ".join(parts) or "no noticeable effect"


def recommend_choices(template: EventTemplate, state: RaceState) -> list[Recommendation]:
    """Score the first-layer options of a decision event, best first.

    Args:
        template: Event awaiting a decision
        state: Current race state

    Returns:
        Recommendations sorted by score (ties keep catalog order)
    """
    team = state.team
    average_stamina = team.average_stamina
    has_climber = any(m.type == CharacterType.CLIMBER for m in team.active_members)

    recommendations = []
    for option in template.options("layer1"):
        effects = option.effects
        score = 50.0
        reasoning: list[str] = []

        pushing = (effects.stamina_drain or 1.0) > 1.0 or (effects.speed_modifier or 1.0) > 1.0
        if average_stamina < 30 and pushing:
            score -= 20
            reasoning.append("Stamina too low for a costly option")
        if average_stamina < 30 and (effects.stamina_delta or 0) > 0:
            score += 15
            reasoning.append("Riders need the recovery")
        if state.progress > 0.8 and (effects.time_delay or 0) > 600:
            score -= 15
            reasoning.append("Close to the finish, avoid long stops")
        if team.morale < 40 and (effects.morale_delta or 0) > 0:
            score += 15
            reasoning.append("Morale is low, pick the option that lifts it")
        if effects.team_disband:
            score -= 30
            reasoning.append("Splitting up costs team integrity")
        if effects.formation_break:
            score -= 10
            reasoning.append("Losing the formation costs drafting for the rest of the race")
        if has_climber and "climb" in option.id:
            score += 10
            reasoning.append("The team has a climber")

        recommendations.append(Recommendation(
            option_id=option.id,
            label=option.label,
            score=max(0.0, min(100.0, score)),
            risk_level=_risk_level(effects),
            expected_outcome=summarize_effects(effects),
            reasoning=reasoning,
        ))

    recommendations.sort(key=lambda r: r.score, reverse=True)
    return recommendations


class StrategyDecisionPolicy:
    """Answers event decisions from the race strategy.

    Supply stations and mechanical failures use the matching strategy preset;
    other decision events take the top recommendation. Follow-up layers take
    their first option.
    """

    def __init__(self, strategy: StrategyConfig | None = None):
        self.strategy = strategy

    def __call__(self, template: EventTemplate, state: RaceState) -> dict[str, str]:
        strategy = self.strategy or state.strategy
        preferred: str | None = None
        if template.category == EventCategory.SUPPLY:
            preferred = strategy.supply.value
        elif template.category == EventCategory.MECHANICAL:
            preferred = strategy.mechanical.value

        first = template.option("layer1", preferred) if preferred else None
        if first is None:
            recommendations = recommend_choices(template, state)
            if not recommendations:
                return {}
            first = template.option("layer1", recommendations[0].option_id)

        choices = {"layer1": first.id}
        if first.next_layer and template.options(first.next_layer):
            choices["layer2"] = template.options(first.next_layer)[0].id
        return choices


def recent_events(state: RaceState, n: int = 3) -> list[EventRecord]:
    """Most recent events, newest first."""
    if n <= 0:
        return []
    return list(reversed(state.event_history[-n:]))


class EventEngine:
    """Decides which events fire, resolves choices and applies effects."""

    def __init__(
        self,
        templates: list[EventTemplate] | None = None,
        rng: np.random.Generator | None = None,
        ambient_event_rate: float = DEFAULT_AMBIENT_EVENT_RATE,
    ):
        """Initialize the event engine.

        Args:
            templates: Event catalog (defaults to the built-in catalog)
            rng: Random number generator
            ambient_event_rate: Chance per simulated second of an ambient roll
        """
        self.templates = templates if templates is not None else EVENT_TEMPLATES
        self.rng = rng if rng is not None else np.random.default_rng()
        self.ambient_event_rate = ambient_event_rate

    def check_mandatory(self, state: RaceState) -> list[tuple[EventTemplate, float]]:
        """Location events reached and not yet fired, in route order."""
        due = []
        for template in self.templates:
            if not template.trigger.mandatory:
                continue
            for location in template.trigger.fixed_locations:
                if state.distance >= location and not state.has_triggered(event_key(template, location)):
                    due.append((template, location))
        return sorted(due, key=lambda item: item[1])

    def adjusted_probability(self, template: EventTemplate, state: RaceState) -> float:
        """Trigger probability after difficulty, weather, drought and durability scaling."""
        probability = template.trigger.probability
        probability *= DIFFICULTY_EVENT_MULTIPLIER[state.difficulty]
        probability *= WEATHER_EVENT_MULTIPLIER[state.weather]
        if state.distance_since_last_event > DROUGHT_DISTANCE:
            probability *= 2
        if template.category == EventCategory.MECHANICAL:
            probability *= 1 - state.bike.durability / 200
        return min(1.0, probability)

    def _passes_gates(self, template: EventTemplate, state: RaceState, segment: RouteSegment) -> bool:
        trigger = template.trigger
        if trigger.distance_ranges and not any(
            start <= state.distance <= end for start, end in trigger.distance_ranges
        ):
            return False
        if trigger.terrain and segment.terrain not in trigger.terrain:
            return False
        if trigger.morale_threshold is not None and state.team.morale >= trigger.morale_threshold:
            return False
        return True

    def check_ambient(self, state: RaceState, segment: RouteSegment, delta_time: float) -> EventTemplate | None:
        """Roll for one ambient event this tick.

        Args:
            state: Current race state
            segment: Segment the team is on
            delta_time: Tick length in seconds

        Returns:
            Chosen template, or None
        """
        if self.rng.random() >= self.ambient_event_rate * delta_time:
            return None

        candidates = []
        for template in self.templates:
            if template.trigger.mandatory or state.has_triggered(template.id):
                continue
            if not self._passes_gates(template, state, segment):
                continue
            if self.rng.random() < self.adjusted_probability(template, state):
                candidates.append(template)

        if not candidates:
            return None
        return candidates[int(self.rng.integers(len(candidates)))]

    def resolve(
        self,
        template: EventTemplate,
        choices: dict[str, str] | None,
        team: TeamState,
        bike: BikeLoadout,
        location: float | None = None,
    ) -> ResolvedEvent:
        """Turn a template and the chosen options into concrete effects.

        Decision events take the first-layer option's effects, overridden
        field by field by the second-layer option. Unknown option ids fall
        back to the first option of the layer.

        Args:
            template: Event that fired
            choices: Option id per layer ('layer1', 'layer2')
            team: Team at the time of the event
            bike: Bike loadout
            location: Km marker for location events

        Returns:
            ResolvedEvent ready to apply
        """
        choices = choices or {}
        effects = template.effects
        duration = template.duration
        chosen: dict[str, str] = {}
        picked: list[EventChoice] = []

        if template.has_decision:
            first = self._pick(template, "layer1", choices.get("layer1"))
            picked.append(first)
            chosen["layer1"] = first.id
            effects = first.effects
            duration = first.duration or duration

            if first.next_layer and template.options(first.next_layer):
                second = self._pick(template, first.next_layer, choices.get("layer2"))
                picked.append(second)
                chosen["layer2"] = second.id
                effects = effects.merged(second.effects)
                duration = second.duration or duration

        scale = EffectScale()
        for char_type in {m.type for m in team.active_members}:
            if char_type in template.character_modifiers:
                scale = scale.combine(template.character_modifiers[char_type])
        for item in bike.items:
            if item.id in template.equipment_modifiers:
                scale = scale.combine(template.equipment_modifiers[item.id])
        effects = effects.scaled(scale)

        narrative = template.description
        if picked:
            narrative += " | Choice: " + " > ".join(choice.label for choice in picked)
        narrative += f" | {summarize_effects(effects)}"

        return ResolvedEvent(
            key=event_key(template, location),
            template_id=template.id,
            name=template.name,
            category=template.category,
            choices=chosen,
            effects=effects,
            duration=duration,
            morale_event=template.morale_event,
            location=location,
            narrative=narrative,
        )

    def _pick(self, template: EventTemplate, layer: str, option_id: str | None) -> EventChoice:
        option = template.option(layer, option_id) if option_id else None
        if option is None:
            option = template.options(layer)[0]
            if option_id is not None:
                logger.warning(f"Event {template.id}: unknown option '{option_id}' in {layer}, using '{option.id}'")
        return option

    def apply(self, state: RaceState, resolved: ResolvedEvent) -> RaceState:
        """Return a new state with the resolved event applied."""
        new_state = state.model_copy(deep=True)
        self.apply_in_place(new_state, resolved)
        return new_state

    def apply_in_place(self, state: RaceState, resolved: ResolvedEvent) -> None:
        """Apply a resolved event to a state the caller owns."""
        effects = resolved.effects
        team = state.team

        if effects.time_delay:
            state.elapsed_time += effects.time_delay
            self._rest(state, effects.time_delay, bool(effects.supplied))

        if effects.stamina_delta:
            for member in team.active_members:
                member.current_stamina = max(0.0, min(100.0, member.current_stamina + effects.stamina_delta))

        if effects.morale_delta is not None:
            morale_delta = effects.morale_delta
        elif resolved.morale_event is not None:
            morale_delta = formulas.morale_change(
                current_morale=team.morale,
                event=resolved.morale_event,
                performance=None,
                team_harmony=team.harmony,
                weather=None,
                fatigue=100 - team.average_stamina,
            )
        else:
            morale_delta = 0.0
        team.morale = max(0.0, min(100.0, team.morale + morale_delta))

        if effects.is_timed:
            duration = resolved.duration or DEFAULT_EFFECT_DURATION
            state.active_effects.append(ActiveEffect(
                source=resolved.key,
                speed_modifier=effects.speed_modifier or 1.0,
                stamina_drain=effects.stamina_drain or 1.0,
                weather=effects.weather,
                supplied=bool(effects.supplied),
                expires_at=state.elapsed_time + duration,
            ))
            if effects.weather is not None:
                state.weather = effects.weather

        if effects.formation_break and not team.formation_broken:
            team.formation = Formation.SOLO
            team.formation_broken = True
            state.stats.formation_changes += 1
        if effects.team_disband:
            team.integrity = 0.0

        if resolved.category == EventCategory.MECHANICAL:
            state.stats.mechanical_failures += 1
        elif resolved.category == EventCategory.WEATHER:
            state.stats.weather_challenges += 1
        elif resolved.category == EventCategory.SUPPLY:
            if resolved.location is not None:
                state.reached_stations.append(resolved.location)
            if effects.supplied:
                state.stats.supply_stops += 1
        if resolved.had_decision and resolved.category != EventCategory.SUPPLY:
            state.stats.events_handled += 1

        state.event_history.append(EventRecord(
            key=resolved.key,
            template_id=resolved.template_id,
            name=resolved.name,
            category=resolved.category,
            elapsed_time=state.elapsed_time,
            distance=state.distance,
            choices=resolved.choices,
            effects=effects,
            narrative=resolved.narrative,
        ))
        state.triggered_events.append(resolved.key)
        state.distance_since_last_event = 0.0

        logger.debug(f"Event {resolved.key} at {state.distance:.1f} km: {resolved.narrative}")

    def _rest(self, state: RaceState, seconds: float, has_supplies: bool) -> None:
        """Riders recover while the team is stopped."""
        team = state.team
        minutes = seconds / 60
        for member in team.active_members:
            rate = formulas.recovery_rate(
                base_recovery=member.stats.recovery,
                current_speed=0.0,
                is_resting=True,
                has_supplies=has_supplies,
                team_support=team.harmony,
                morale=team.morale,
                weather=state.weather,
                rest_duration=minutes,
            )
            member.current_stamina = min(100.0, member.current_stamina + rate * minutes)
