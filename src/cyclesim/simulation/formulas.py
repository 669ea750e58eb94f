"""Speed, stamina, recovery, morale and score formulas.

Every function is pure and total: out-of-range input is clamped, never
rejected. Lookup tables are exhaustive over their enumerations.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from cyclesim.models import (
    Ability,
    Difficulty,
    Formation,
    FormationPosition,
    MoraleEvent,
    Performance,
    TerrainType,
    WeatherCondition,
)

SPEED_MIN = 10.0
SPEED_MAX = 50.0
NOMINAL_SPEED = 25.0
RECOVERY_MIN = 0.1
RECOVERY_MAX = 5.0
NO_RECOVERY_SPEED = 30.0

TERRAIN_SPEED: dict[TerrainType, float] = {
    TerrainType.FLAT: 1.0,
    TerrainType.SLIGHT_UPHILL: 0.85,
    TerrainType.UPHILL: 0.70,
    TerrainType.STEEP_UPHILL: 0.55,
    TerrainType.EXTREME_UPHILL: 0.40,
    TerrainType.SLIGHT_DOWNHILL: 1.15,
    TerrainType.DOWNHILL: 1.25,
    TerrainType.STEEP_DOWNHILL: 1.35,
    TerrainType.TECHNICAL: 0.80,
    TerrainType.ROLLING: 0.90,
    TerrainType.CLIMBING: 0.60,
    TerrainType.DESCENDING_TO_FLAT: 1.10,
    TerrainType.FLAT_UNDULATING: 0.95,
    TerrainType.FLAT_TO_HILLS: 0.85,
}

TERRAIN_CONSUMPTION: dict[TerrainType, float] = {
    TerrainType.FLAT: 1.0,
    TerrainType.SLIGHT_UPHILL: 1.3,
    TerrainType.UPHILL: 1.8,
    TerrainType.STEEP_UPHILL: 2.5,
    TerrainType.EXTREME_UPHILL: 3.0,
    TerrainType.SLIGHT_DOWNHILL: 0.5,
    TerrainType.DOWNHILL: 0.3,
    TerrainType.STEEP_DOWNHILL: 1.0,
    TerrainType.TECHNICAL: 1.3,
    TerrainType.ROLLING: 1.2,
    TerrainType.CLIMBING: 2.2,
    TerrainType.DESCENDING_TO_FLAT: 0.4,
    TerrainType.FLAT_UNDULATING: 1.1,
    TerrainType.FLAT_TO_HILLS: 1.4,
}

WEATHER_SPEED: dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 1.0,
    WeatherCondition.SUNNY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 0.98,
    WeatherCondition.CLOUDY: 0.95,
    WeatherCondition.HEADWIND: 0.75,
    WeatherCondition.TAILWIND: 1.15,
    WeatherCondition.SIDEWIND: 0.85,
    WeatherCondition.RAIN: 0.80,
    WeatherCondition.STORM: 0.60,
    WeatherCondition.HOT: 0.90,
    WeatherCondition.COLD: 0.92,
    WeatherCondition.HOT_SUNNY: 0.88,
}

WEATHER_CONSUMPTION: dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 1.0,
    WeatherCondition.SUNNY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 1.0,
    WeatherCondition.CLOUDY: 1.0,
    WeatherCondition.HEADWIND: 1.4,
    WeatherCondition.TAILWIND: 0.8,
    WeatherCondition.SIDEWIND: 1.0,
    WeatherCondition.RAIN: 1.2,
    WeatherCondition.STORM: 1.0,
    WeatherCondition.HOT: 1.3,
    WeatherCondition.COLD: 1.1,
    WeatherCondition.HOT_SUNNY: 1.35,
}

WEATHER_RECOVERY: dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 1.0,
    WeatherCondition.SUNNY: 1.0,
    WeatherCondition.PARTLY_CLOUDY: 1.0,
    WeatherCondition.CLOUDY: 1.0,
    WeatherCondition.HEADWIND: 1.0,
    WeatherCondition.TAILWIND: 1.0,
    WeatherCondition.SIDEWIND: 1.0,
    WeatherCondition.RAIN: 0.8,
    WeatherCondition.STORM: 1.0,
    WeatherCondition.HOT: 0.7,
    WeatherCondition.COLD: 0.9,
    WeatherCondition.HOT_SUNNY: 0.65,
}

WEATHER_MOOD: dict[WeatherCondition, float] = {
    WeatherCondition.CLEAR: 0.5,
    WeatherCondition.SUNNY: 0.5,
    WeatherCondition.PARTLY_CLOUDY: 0.0,
    WeatherCondition.CLOUDY: 0.0,
    WeatherCondition.HEADWIND: 0.0,
    WeatherCondition.TAILWIND: 0.0,
    WeatherCondition.SIDEWIND: 0.0,
    WeatherCondition.RAIN: -1.0,
    WeatherCondition.STORM: -2.0,
    WeatherCondition.HOT: 0.0,
    WeatherCondition.COLD: 0.0,
    WeatherCondition.HOT_SUNNY: 0.0,
}

# Drafting bonus by formation slot. The same table gives the stamina saving.
FORMATION_BONUS: dict[Formation, dict[FormationPosition, float]] = {
    Formation.SOLO: {FormationPosition.ANY: 0.0},
    Formation.SINGLE_LINE: {
        FormationPosition.LEAD: 0.0,
        FormationPosition.SECOND: 0.20,
        FormationPosition.THIRD: 0.25,
        FormationPosition.LAST: 0.30,
    },
    Formation.SIDE_BY_SIDE: {
        FormationPosition.LEFT: 0.10,
        FormationPosition.RIGHT: 0.15,
    },
    Formation.DOUBLE_PACELINE: {
        FormationPosition.LEAD_A: 0.05,
        FormationPosition.LEAD_B: 0.05,
        FormationPosition.FOLLOW_A: 0.18,
        FormationPosition.FOLLOW_B: 0.18,
    },
    Formation.ECHELON: {
        FormationPosition.FRONT: 0.0,
        FormationPosition.PROTECTED: 0.35,
    },
    Formation.TRAIN: {
        FormationPosition.LEAD: 0.0,
        FormationPosition.GUARD: 0.15,
        FormationPosition.PROTECTED: 0.40,
    },
    Formation.DIAMOND: {
        FormationPosition.FRONT: 0.0,
        FormationPosition.SIDE: 0.20,
        FormationPosition.BACK: 0.25,
    },
}

FORMATION_STAMINA_SAVING = FORMATION_BONUS

ABILITY_BONUS: dict[Ability, float] = {
    Ability.MOUNTAIN_ACCELERATION: 0.15,
    Ability.SPRINT_BURST: 0.20,
    Ability.ENDURANCE_BOOST: 0.10,
    Ability.TEAM_LEADER: 0.08,
    Ability.AERO_SPECIALIST: 0.12,
}

MORALE_EVENT_DELTA: dict[MoraleEvent, float] = {
    MoraleEvent.OVERTAKE: 10,
    MoraleEvent.GOOD_WEATHER: 5,
    MoraleEvent.SUCCESSFUL_CLIMB: 15,
    MoraleEvent.TEAMWORK_SUCCESS: 12,
    MoraleEvent.MYSTERY_BONUS: 20,
    MoraleEvent.MECHANICAL_FAILURE: -15,
    MoraleEvent.BAD_WEATHER: -10,
    MoraleEvent.DROPPED: -20,
    MoraleEvent.CONFLICT: -25,
    MoraleEvent.EXHAUSTION: -30,
}

PERFORMANCE_DELTA: dict[Performance, float] = {
    Performance.LEADING: 5,
    Performance.ON_TARGET: 2,
    Performance.BEHIND: -5,
    Performance.FAR_BEHIND: -10,
}

DIFFICULTY_SCORE_MULTIPLIER: dict[Difficulty, float] = {
    Difficulty.EASY: 0.8,
    Difficulty.NORMAL: 1.0,
    Difficulty.HARD: 1.3,
    Difficulty.EXTREME: 1.6,
}


class Achievement(str, Enum):
    """Special achievements awarded at the end of a race."""

    NO_DROPOUT = "no_dropout"
    PERFECT_FORMATION = "perfect_formation"
    MOUNTAIN_KING = "mountain_king"
    SPEED_DEMON = "speed_demon"
    IRON_WILL = "iron_will"
    WEATHER_MASTER = "weather_master"
    MECHANICAL_GENIUS = "mechanical_genius"
    TEAM_HARMONY = "team_harmony"


ACHIEVEMENT_POINTS: dict[Achievement, int] = {
    Achievement.NO_DROPOUT: 1000,
    Achievement.PERFECT_FORMATION: 800,
    Achievement.MOUNTAIN_KING: 600,
    Achievement.SPEED_DEMON: 700,
    Achievement.IRON_WILL: 900,
    Achievement.WEATHER_MASTER: 500,
    Achievement.MECHANICAL_GENIUS: 400,
    Achievement.TEAM_HARMONY: 600,
}

# Slot order for fixed-shape formations; the leader takes slot 0.
FORMATION_SLOTS: dict[Formation, list[FormationPosition]] = {
    Formation.DOUBLE_PACELINE: [
        FormationPosition.LEAD_A,
        FormationPosition.LEAD_B,
        FormationPosition.FOLLOW_A,
        FormationPosition.FOLLOW_B,
    ],
    Formation.DIAMOND: [FormationPosition.FRONT, FormationPosition.SIDE, FormationPosition.SIDE, FormationPosition.BACK],
}


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def terrain_multiplier(terrain: TerrainType) -> float:
    return TERRAIN_SPEED[terrain]


def weather_speed_multiplier(weather: WeatherCondition) -> float:
    return WEATHER_SPEED[weather]


def get_formation_bonus(formation: Formation, position: FormationPosition) -> float:
    """Drafting speed bonus for a formation slot.

    Slots that are not part of the formation give no bonus.
    """
    return FORMATION_BONUS[formation].get(position, 0.0)


def formation_stamina_saving(formation: Formation, position: FormationPosition) -> float:
    return FORMATION_STAMINA_SAVING[formation].get(position, 0.0)


def ability_bonus(abilities: Iterable[Ability]) -> float:
    """Sum of the bonuses of distinct active abilities."""
    return sum(ABILITY_BONUS[ability] for ability in set(abilities))


def formation_positions(formation: Formation, team_size: int) -> list[FormationPosition]:
    """Slot for each rider in riding order (slot 0 is the leader).

    Args:
        formation: Current formation
        team_size: Number of riders still in the race

    Returns:
        One position per rider
    """
    if team_size <= 0:
        return []

    if formation == Formation.SOLO:
        return [FormationPosition.ANY] * team_size

    if formation == Formation.SINGLE_LINE:
        if team_size == 1:
            return [FormationPosition.LEAD]
        middle = [FormationPosition.SECOND, FormationPosition.THIRD]
        inner = [middle[min(i, 1)] for i in range(team_size - 2)]
        return [FormationPosition.LEAD, *inner, FormationPosition.LAST]

    if formation == Formation.SIDE_BY_SIDE:
        return [FormationPosition.LEFT if i % 2 == 0 else FormationPosition.RIGHT for i in range(team_size)]

    if formation == Formation.ECHELON:
        return [FormationPosition.FRONT] + [FormationPosition.PROTECTED] * (team_size - 1)

    if formation == Formation.TRAIN:
        if team_size == 1:
            return [FormationPosition.LEAD]
        guards = [FormationPosition.GUARD] * (team_size - 2)
        return [FormationPosition.LEAD, *guards, FormationPosition.PROTECTED]

    slots = FORMATION_SLOTS[formation]
    return [slots[min(i, len(slots) - 1)] for i in range(team_size)]


def stamina_effect(stamina: float) -> float:
    """Speed multiplier from stamina.

    Piecewise linear and non-increasing as stamina falls: flat above 80, then
    steeper with each 20-point band, never below 0.50.

    Args:
        stamina: Stamina percentage (clamped to 0-100)

    Returns:
        Multiplier in [0.50, 1.0]
    """
    s = _clamp(stamina, 0.0, 100.0)
    if s >= 80:
        return 1.0
    if s >= 60:
        return 1.0 - (80 - s) * 0.0025
    if s >= 40:
        return 0.95 - (60 - s) * 0.005
    if s >= 20:
        return 0.85 - (40 - s) * 0.0075
    return max(0.50, 0.70 - (20 - s) * 0.015)


def effective_speed(
    character_speed: float,
    equipment_bonus: float,
    terrain: TerrainType,
    stamina: float,
    formation: Formation,
    position: FormationPosition,
    weather: WeatherCondition,
    abilities: Iterable[Ability] = (),
    event_modifier: float = 0.0,
) -> float:
    """Calculate instantaneous speed.

    Factors are applied in a fixed order: equipment, terrain, stamina,
    formation, weather, abilities, event.

    Args:
        character_speed: Rider base speed in km/h
        equipment_bonus: Fractional bonus from the bike (e.g. 0.05)
        terrain: Current terrain
        stamina: Rider stamina percentage
        formation: Current formation
        position: Rider's slot in the formation
        weather: Current weather
        abilities: Active special abilities
        event_modifier: Fractional bonus from events and morale

    Returns:
        Speed in km/h, clamped to [10, 50]
    """
    speed = character_speed
    speed *= 1 + equipment_bonus
    speed *= terrain_multiplier(terrain)
    speed *= stamina_effect(stamina)
    speed *= 1 + get_formation_bonus(formation, position)
    speed *= weather_speed_multiplier(weather)
    speed *= 1 + ability_bonus(abilities)
    speed *= 1 + event_modifier
    return _clamp(speed, SPEED_MIN, SPEED_MAX)


def stamina_consumption(
    distance: float,
    speed: float,
    terrain: TerrainType,
    formation: Formation,
    position: FormationPosition,
    weather: WeatherCondition,
    bike_weight: float,
    endurance: float,
    is_leading: bool,
) -> float:
    """Stamina spent over a distance. Pure: the caller subtracts it.

    Args:
        distance: Distance covered in km
        speed: Riding speed in km/h
        terrain: Current terrain
        formation: Current formation
        position: Rider's slot in the formation
        weather: Current weather
        bike_weight: Total bike weight in kg
        endurance: Rider stamina stat (0-100)
        is_leading: Whether the rider is on the front

    Returns:
        Stamina percentage points consumed, clamped to [0, 100]
    """
    distance = max(0.0, distance)
    speed = max(0.0, speed)
    endurance = _clamp(endurance, 0.0, 100.0)

    consumption = 0.3 * (speed / NOMINAL_SPEED) ** 1.5
    consumption *= TERRAIN_CONSUMPTION[terrain]
    consumption *= 1 - formation_stamina_saving(formation, position)
    if is_leading:
        consumption *= 1.5
    consumption *= WEATHER_CONSUMPTION[weather]
    consumption *= max(0.9, 1 + (bike_weight - 7) * 0.01)
    consumption *= 1 - endurance / 100 * 0.3
    return _clamp(consumption * distance, 0.0, 100.0)


def recovery_rate(
    base_recovery: float,
    current_speed: float,
    is_resting: bool,
    has_supplies: bool,
    team_support: float,
    morale: float,
    weather: WeatherCondition,
    rest_duration: float = 0.0,
) -> float:
    """Stamina recovery rate.

    Args:
        base_recovery: Rider recovery stat (0-100)
        current_speed: Riding speed in km/h (ignored while resting)
        is_resting: Whether the team is stopped
        has_supplies: Whether riders were resupplied
        team_support: Support from teammates (0-100)
        morale: Team morale (0-100)
        weather: Current weather
        rest_duration: Minutes spent resting so far

    Returns:
        Percent per minute, clamped to [0.1, 5]
    """
    rate = _clamp(base_recovery, 0.0, 100.0) / 100

    if is_resting:
        rate *= 2 + math.log10(max(0.0, rest_duration) + 1) / math.log10(11)
    elif current_speed > NO_RECOVERY_SPEED:
        rate = 0.0
    elif current_speed < 15:
        rate *= 0.5
    else:
        rate *= 0.3

    if has_supplies:
        rate *= 1.5
    rate *= 1 + _clamp(team_support, 0.0, 100.0) / 100 * 0.3
    rate *= 0.5 + _clamp(morale, 0.0, 100.0) / 100
    rate *= WEATHER_RECOVERY[weather]
    return _clamp(rate, RECOVERY_MIN, RECOVERY_MAX)


def morale_change(
    current_morale: float,
    event: MoraleEvent | None,
    performance: Performance | None,
    team_harmony: float,
    weather: WeatherCondition | None,
    fatigue: float,
) -> float:
    """Morale delta from an event, recent performance and conditions.

    Args:
        current_morale: Team morale (0-100)
        event: Discrete morale event, if any
        performance: Progress against target, if assessed
        team_harmony: Mean teamwork (0-100)
        weather: Current weather, if it should colour the mood
        fatigue: Team fatigue (0-100)

    Returns:
        Morale delta (unclamped; the caller clamps morale)
    """
    change = 0.0
    if event is not None:
        change += MORALE_EVENT_DELTA[event]
    if performance is not None:
        change += PERFORMANCE_DELTA[performance]

    change *= 0.5 + _clamp(team_harmony, 0.0, 100.0) / 100

    if fatigue > 70:
        change *= 0.5 if change > 0 else 1.5

    if weather is not None:
        change += WEATHER_MOOD[weather]

    # Damp runaway near the extremes
    if current_morale > 80 and change > 0:
        change *= 0.5
    elif current_morale < 20 and change < 0:
        change *= 0.5

    return change


@dataclass(frozen=True)
class MoraleEffects:
    """Modifiers applied by a morale band."""

    speed: float
    stamina: float
    recovery: float
    teamwork: float


MORALE_BANDS: list[tuple[float, MoraleEffects]] = [
    (80, MoraleEffects(speed=0.10, stamina=-0.10, recovery=0.20, teamwork=0.15)),
    (60, MoraleEffects(speed=0.05, stamina=0.0, recovery=0.10, teamwork=0.05)),
    (40, MoraleEffects(speed=-0.05, stamina=0.10, recovery=-0.10, teamwork=-0.10)),
    (20, MoraleEffects(speed=-0.15, stamina=0.20, recovery=-0.30, teamwork=-0.25)),
]
MORALE_FLOOR_EFFECTS = MoraleEffects(speed=-0.30, stamina=0.40, recovery=-0.50, teamwork=-0.50)


def morale_effects(morale: float) -> MoraleEffects:
    """Step function from morale to modifiers (band edges inclusive)."""
    for threshold, effects in MORALE_BANDS:
        if morale >= threshold:
            return effects
    return MORALE_FLOOR_EFFECTS


def final_score(
    completion_time: float,
    target_time: float,
    team_integrity: float,
    supplies_used: int,
    events_handled: int,
    special_achievements: Iterable[Achievement | str],
    difficulty: Difficulty | str,
) -> int:
    """Final score.

    Args:
        completion_time: Race time in minutes
        target_time: Target time in minutes
        team_integrity: Team cohesion (0-100)
        supplies_used: Number of supply stops taken
        events_handled: Number of decisions taken
        special_achievements: Achievements earned; unknown ones score nothing
        difficulty: Difficulty level

    Returns:
        Integer score
    """
    score = 10000.0
    score += max(0.0, (target_time - completion_time) * 10)
    score += _clamp(team_integrity, 0.0, 100.0) * 20
    score += max(0, (20 - supplies_used) * 50)
    score += max(0, events_handled) * 500
    score += sum(ACHIEVEMENT_POINTS.get(achievement, 0) for achievement in special_achievements)
    score *= DIFFICULTY_SCORE_MULTIPLIER.get(difficulty, 1.0)
    return math.floor(score)


def segment_time(
    distance: float,
    base_speed: float,
    terrain: TerrainType = TerrainType.FLAT,
    weather: WeatherCondition = WeatherCondition.CLEAR,
    formation: Formation = Formation.SOLO,
    stamina: float = 100.0,
    event_delays: Iterable[float] = (),
) -> float:
    """Estimated minutes to ride a segment, plus event delays in minutes."""
    speed = effective_speed(
        character_speed=base_speed,
        equipment_bonus=0.0,
        terrain=terrain,
        stamina=stamina,
        formation=formation,
        position=formation_positions(formation, 1)[0],
        weather=weather,
    )
    return max(0.0, distance) / speed * 60 + sum(event_delays)


def format_duration(seconds: float) -> str:
    """Format seconds as e.g. '11h 42m 05s'."""
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes:02d}m {secs:02d}s"
