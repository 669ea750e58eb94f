"""Data models for the cycling race simulation."""

from .equipment import BikeLoadout, EquipmentItem, EquipmentSlot
from .event import (
    ActiveEffect,
    EffectBundle,
    EffectScale,
    EventCategory,
    EventChoice,
    EventRecord,
    EventTemplate,
    MoraleEvent,
    Performance,
    ResolvedEvent,
    TriggerConditions,
)
from .rider import Ability, BaseStats, CharacterArchetype, CharacterType, TeamMember
from .route import Route, RouteSegment, SupplyKind, SupplyStation, TerrainType
from .state import RaceState, RaceStats, TeamState
from .strategy import (
    ClimbingPreset,
    Difficulty,
    MechanicalPreset,
    PacePreset,
    StrategyConfig,
    SupplyPreset,
)
from .team import Formation, FormationPosition, TeamConfig
from .weather import WeatherCondition

__all__ = [
    "Ability",
    "ActiveEffect",
    "BaseStats",
    "BikeLoadout",
    "CharacterArchetype",
    "CharacterType",
    "ClimbingPreset",
    "Difficulty",
    "EffectBundle",
    "EffectScale",
    "EquipmentItem",
    "EquipmentSlot",
    "EventCategory",
    "EventChoice",
    "EventRecord",
    "EventTemplate",
    "Formation",
    "FormationPosition",
    "MechanicalPreset",
    "MoraleEvent",
    "PacePreset",
    "Performance",
    "RaceState",
    "RaceStats",
    "ResolvedEvent",
    "Route",
    "RouteSegment",
    "StrategyConfig",
    "SupplyKind",
    "SupplyPreset",
    "SupplyStation",
    "TeamConfig",
    "TeamMember",
    "TeamState",
    "TerrainType",
    "TriggerConditions",
    "WeatherCondition",
]
