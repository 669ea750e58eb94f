"""Catalog loading: turns raw payloads into immutable domain models."""

from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from cyclesim.data import tables
from cyclesim.models import (
    Ability,
    BikeLoadout,
    CharacterArchetype,
    CharacterType,
    EquipmentItem,
    EquipmentSlot,
    EventCategory,
    EventTemplate,
    Formation,
    MoraleEvent,
    Route,
    SupplyKind,
    TeamConfig,
    TerrainType,
    WeatherCondition,
)

E = TypeVar("E", bound=Enum)


class CatalogLoader:
    """Builds catalog models from plain dict payloads (e.g. parsed JSON).

    This is the only place where string keys become enumerations. Unknown
    terrain, weather and formation keys fall back to a neutral member with a
    warning; the fallbacks are kept in ``fallbacks`` for inspection.
    """

    def __init__(self) -> None:
        self.fallbacks: list[str] = []

    def _parse(self, enum_cls: type[E], value: Any, default: E, context: str) -> E:
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            message = f"{context}: unknown {enum_cls.__name__} '{value}', using '{default.value}'"
            logger.warning(message)
            self.fallbacks.append(message)
            return default

    def _parse_strict(self, enum_cls: type[E], value: Any, context: str) -> E | None:
        """Parse a key that has no neutral member; unknown keys are skipped."""
        if value is None:
            return None
        try:
            return enum_cls(value)
        except ValueError:
            message = f"{context}: unknown {enum_cls.__name__} '{value}', ignored"
            logger.warning(message)
            self.fallbacks.append(message)
            return None

    def terrain(self, value: Any, context: str = "terrain") -> TerrainType:
        return self._parse(TerrainType, value, TerrainType.FLAT, context)

    def weather(self, value: Any, context: str = "weather") -> WeatherCondition:
        return self._parse(WeatherCondition, value, WeatherCondition.CLEAR, context)

    def formation(self, value: Any, context: str = "formation") -> Formation:
        return self._parse(Formation, value, Formation.SOLO, context)

    def load_route(self, data: dict[str, Any]) -> Route:
        """Build a route, deriving each segment's start from the running total."""
        segments = []
        start_km = 0.0
        for raw in data["segments"]:
            segment = dict(raw)
            segment["terrain"] = self.terrain(raw.get("terrain"), f"segment {raw.get('id')}")
            segment.setdefault("start_km", start_km)
            start_km = segment["start_km"] + segment["distance"]
            segments.append(segment)

        stations = []
        for raw in data.get("stations", []):
            supplies = [
                kind
                for kind in (
                    self._parse_strict(SupplyKind, s, f"station {raw.get('name')}") for s in raw.get("supplies", [])
                )
                if kind is not None
            ]
            stations.append({**raw, "supplies": supplies})

        return Route.model_validate({**data, "segments": segments, "stations": stations})

    def load_characters(self, data: list[dict[str, Any]]) -> dict[str, CharacterArchetype]:
        characters: dict[str, CharacterArchetype] = {}
        for raw in data:
            char_type = self._parse(CharacterType, raw.get("type"), CharacterType.ALL_ROUNDER, f"character {raw['id']}")
            characters[raw["id"]] = CharacterArchetype.model_validate({**raw, "type": char_type})
        return characters

    def load_equipment(self, data: dict[str, list[dict[str, Any]]]) -> dict[EquipmentSlot, dict[str, EquipmentItem]]:
        equipment: dict[EquipmentSlot, dict[str, EquipmentItem]] = {slot: {} for slot in EquipmentSlot}
        for slot_key, items in data.items():
            slot = self._parse_strict(EquipmentSlot, slot_key, "equipment")
            if slot is None:
                continue
            for raw in items:
                item = dict(raw)
                item["slot"] = slot
                ability = item.pop("ability", None)
                item["grants_ability"] = self._parse_strict(Ability, ability, f"equipment {raw['id']}")
                equipment[slot][raw["id"]] = EquipmentItem.model_validate(item)
        return equipment

    def load_event_templates(self, data: list[dict[str, Any]]) -> list[EventTemplate]:
        return [self.load_event_template(raw) for raw in data]

    def load_event_template(self, raw: dict[str, Any]) -> EventTemplate:
        context = f"event {raw['id']}"
        template = dict(raw)
        template["category"] = self._parse(EventCategory, raw.get("category"), EventCategory.ROAD, context)
        template["effects"] = self._effects(raw.get("effects", {}), context)

        trigger = dict(raw.get("trigger", {}))
        if "terrain" in trigger:
            trigger["terrain"] = [self.terrain(t, context) for t in trigger["terrain"]]
        template["trigger"] = trigger

        template["decision_tree"] = {
            layer: [{**choice, "effects": self._effects(choice.get("effects", {}), context)} for choice in choices]
            for layer, choices in raw.get("decision_tree", {}).items()
        }

        character_modifiers = {}
        for key, scale in raw.get("character_modifiers", {}).items():
            char_type = self._parse_strict(CharacterType, key, context)
            if char_type is not None:
                character_modifiers[char_type] = scale
        template["character_modifiers"] = character_modifiers
        template["morale_event"] = self._parse_strict(MoraleEvent, raw.get("morale_event"), context)

        return EventTemplate.model_validate(template)

    def _effects(self, raw: dict[str, Any], context: str) -> dict[str, Any]:
        effects = dict(raw)
        if "weather" in effects:
            effects["weather"] = self.weather(effects["weather"], context)
        return effects

    def load_team(self, data: dict[str, Any], characters: dict[str, CharacterArchetype]) -> TeamConfig:
        """Build a team from ``{"members": [archetype ids], "formation": ..., "morale": ...}``.

        Unknown archetype ids are skipped; the team size check is left to the model.
        """
        members = []
        for member_id in data.get("members", []):
            if member_id in characters:
                members.append(characters[member_id])
            else:
                message = f"team: unknown character '{member_id}', skipped"
                logger.warning(message)
                self.fallbacks.append(message)
        return TeamConfig(
            members=members,
            formation=self.formation(data.get("formation", Formation.SINGLE_LINE.value)),
            morale=data.get("morale", 100.0),
        )


_loader = CatalogLoader()

ROUTE: Route = _loader.load_route(tables.ROUTE_DATA)
CHARACTERS: dict[str, CharacterArchetype] = _loader.load_characters(tables.CHARACTER_DATA)
EQUIPMENT: dict[EquipmentSlot, dict[str, EquipmentItem]] = _loader.load_equipment(tables.EQUIPMENT_DATA)
EVENT_TEMPLATES: list[EventTemplate] = _loader.load_event_templates(tables.EVENT_DATA)


def get_character(character_id: str) -> CharacterArchetype:
    """Get an archetype by id.

    Raises:
        KeyError: If the id is not in the catalog
    """
    return CHARACTERS[character_id]


def get_equipment(slot: EquipmentSlot | str, item_id: str) -> EquipmentItem:
    """Get an equipment item by slot and id.

    Raises:
        KeyError: If the slot or id is not in the catalog
    """
    return EQUIPMENT[EquipmentSlot(slot)][item_id]


def equipment_in_budget(slot: EquipmentSlot | str, budget: float) -> list[EquipmentItem]:
    """Items of a slot affordable within the budget, cheapest first."""
    items = [item for item in EQUIPMENT[EquipmentSlot(slot)].values() if item.cost <= budget]
    return sorted(items, key=lambda item: item.cost)


def get_event_template(template_id: str) -> EventTemplate:
    for template in EVENT_TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(template_id)


def default_loadout() -> BikeLoadout:
    ids = tables.DEFAULT_LOADOUT_IDS
    return BikeLoadout(
        frame=get_equipment(EquipmentSlot.FRAME, ids["frame"]),
        wheels=get_equipment(EquipmentSlot.WHEELS, ids["wheels"]),
        gears=get_equipment(EquipmentSlot.GEARS, ids["gears"]),
        accessories=[get_equipment(EquipmentSlot.ACCESSORY, acc) for acc in ids["accessory"]],
    )


def default_team(size: int = tables.MAX_TEAM_SIZE, formation: Formation = Formation.SINGLE_LINE) -> TeamConfig:
    size = max(tables.MIN_TEAM_SIZE, min(tables.MAX_TEAM_SIZE, size))
    return TeamConfig(
        members=[get_character(cid) for cid in tables.DEFAULT_TEAM_IDS[:size]],
        formation=formation,
    )
