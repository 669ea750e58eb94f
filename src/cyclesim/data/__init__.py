"""Static catalog data and loaders."""

from .catalog import (
    CHARACTERS,
    EQUIPMENT,
    EVENT_TEMPLATES,
    ROUTE,
    CatalogLoader,
    default_loadout,
    default_team,
    equipment_in_budget,
    get_character,
    get_equipment,
    get_event_template,
)

__all__ = [
    "CHARACTERS",
    "EQUIPMENT",
    "EVENT_TEMPLATES",
    "ROUTE",
    "CatalogLoader",
    "default_loadout",
    "default_team",
    "equipment_in_budget",
    "get_character",
    "get_equipment",
    "get_event_template",
]
