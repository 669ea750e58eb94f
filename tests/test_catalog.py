"""Tests for catalog data, loaders and domain models."""

import pytest
from pydantic import ValidationError

from cyclesim.data import (
    CHARACTERS,
    EQUIPMENT,
    EVENT_TEMPLATES,
    ROUTE,
    CatalogLoader,
    default_loadout,
    default_team,
    equipment_in_budget,
    get_equipment,
    get_event_template,
)
from cyclesim.data import tables
from cyclesim.models import (
    Ability,
    CharacterType,
    EquipmentSlot,
    EventCategory,
    Formation,
    StrategyConfig,
    TeamConfig,
    TerrainType,
    WeatherCondition,
)


class TestRoute:
    def test_segments_cover_the_whole_distance(self):
        assert sum(s.distance for s in ROUTE.segments) == ROUTE.total_distance == 380

    def test_segments_are_contiguous(self):
        for previous, segment in zip(ROUTE.segments, ROUTE.segments[1:]):
            assert segment.start_km == previous.end_km

    def test_segment_lookup(self):
        assert ROUTE.segment_at(0).id == "seg_1"
        assert ROUTE.segment_at(20).id == "seg_2"
        assert ROUTE.segment_at(60).terrain == TerrainType.UPHILL
        assert ROUTE.segment_at(380).id == "seg_11"
        assert ROUTE.segment_at(10_000).id == "seg_11"

    def test_two_climbs(self):
        assert sum(1 for s in ROUTE.segments if s.terrain.is_climb()) == 2

    def test_supply_stations(self):
        assert [s.km for s in ROUTE.stations] == list(tables.SUPPLY_STATION_KMS)


class TestCharacters:
    def test_one_archetype_per_type(self):
        assert {c.type for c in CHARACTERS.values()} == set(CharacterType)

    def test_archetypes_are_frozen(self):
        with pytest.raises(ValidationError):
            CHARACTERS["climber"].cost = 0


class TestEquipment:
    def test_every_slot_stocked(self):
        for slot in EquipmentSlot:
            assert EQUIPMENT[slot]

    def test_aero_bars_grant_ability(self):
        assert get_equipment("accessory", "acc_aero_bars").grants_ability == Ability.AERO_SPECIALIST

    def test_budget_filter_cheapest_first(self):
        items = equipment_in_budget(EquipmentSlot.FRAME, 1500)
        assert [i.id for i in items] == ["frame_steel_classic", "frame_aluminum_sport"]

    def test_unknown_item(self):
        with pytest.raises(KeyError):
            get_equipment(EquipmentSlot.FRAME, "frame_titanium")


class TestBikeLoadout:
    def test_default_loadout_derived_stats(self):
        bike = default_loadout()
        assert bike.total_weight == pytest.approx(7.5 + 1.4 + 0.28 + 0.2)
        assert bike.aero_rating == pytest.approx((85 + 88) / 2)
        assert bike.durability == pytest.approx((90 + 88) / 2)
        assert bike.total_cost == 2500 + 2000 + 1400 + 200
        assert bike.stamina_saving == pytest.approx(0.05)
        assert bike.abilities == []

    def test_swapping_a_part_changes_derived_stats(self):
        bike = default_loadout()
        heavier = bike.with_item(get_equipment(EquipmentSlot.FRAME, "frame_steel_classic"))
        assert heavier.frame.id == "frame_steel_classic"
        assert heavier.total_weight > bike.total_weight
        assert heavier.equipment_bonus < bike.equipment_bonus
        # The source loadout is untouched
        assert bike.frame.id == "frame_carbon_endurance"

    def test_accessories_append_once(self):
        bars = get_equipment(EquipmentSlot.ACCESSORY, "acc_aero_bars")
        bike = default_loadout().with_item(bars).with_item(bars)
        assert [a.id for a in bike.accessories] == ["acc_hydration_system", "acc_aero_bars"]
        assert bike.abilities == [Ability.AERO_SPECIALIST]
        assert bike.aero_rating == pytest.approx((85 + 88) / 2 + 5)
        assert bike.has_part("acc_aero_bars")

    def test_equipment_bonus_bounds(self):
        bike = default_loadout()
        assert -0.2 <= bike.equipment_bonus <= 0.3


class TestEvents:
    def test_every_category_present(self):
        assert {t.category for t in EVENT_TEMPLATES} == set(EventCategory)

    def test_supply_station_is_mandatory_at_every_station(self):
        template = get_event_template("supply_station")
        assert template.trigger.mandatory
        assert template.trigger.fixed_locations == list(tables.SUPPLY_STATION_KMS)
        assert [o.id for o in template.options()] == ["skip", "quick", "full"]

    def test_decision_layers_resolve(self):
        for template in EVENT_TEMPLATES:
            for choices in template.decision_tree.values():
                for choice in choices:
                    if choice.next_layer:
                        assert template.options(choice.next_layer)

    def test_unknown_template(self):
        with pytest.raises(KeyError):
            get_event_template("alien_abduction")


class TestCatalogLoader:
    def test_unknown_terrain_falls_back_to_flat(self):
        loader = CatalogLoader()
        route = loader.load_route({
            "id": "test",
            "name": "Test",
            "segments": [
                {"id": "a", "name": "A", "distance": 10, "terrain": "lava"},
                {"id": "b", "name": "B", "distance": 5, "terrain": "uphill"},
            ],
            "stations": [{"km": 5, "name": "S", "supplies": ["water", "champagne"]}],
        })
        assert route.segments[0].terrain == TerrainType.FLAT
        assert route.segments[1].start_km == 10
        assert route.total_distance == 15
        assert len(route.stations[0].supplies) == 1
        assert len(loader.fallbacks) == 2

    def test_unknown_weather_in_effects(self):
        loader = CatalogLoader()
        template = loader.load_event_template({
            "id": "fog",
            "name": "Fog",
            "category": "weather",
            "effects": {"weather": "fog", "speed_modifier": 0.9},
        })
        assert template.effects.weather == WeatherCondition.CLEAR
        assert loader.fallbacks

    def test_load_team(self):
        loader = CatalogLoader()
        team = loader.load_team({"members": ["climber", "sprinter", "pirate"], "formation": "echelon"}, CHARACTERS)
        assert [m.id for m in team.members] == ["climber", "sprinter"]
        assert team.formation == Formation.ECHELON
        assert len(loader.fallbacks) == 1


class TestConfigModels:
    def test_team_size_limits(self):
        with pytest.raises(ValidationError):
            TeamConfig(members=[CHARACTERS["climber"]])
        with pytest.raises(ValidationError):
            TeamConfig(members=[CHARACTERS["climber"]] * 5)

    def test_default_team(self):
        team = default_team()
        assert [m.id for m in team.members] == list(tables.DEFAULT_TEAM_IDS)
        assert team.total_cost == sum(m.cost for m in team.members)
        assert len(default_team(size=1).members) == 2

    def test_strategy_label(self):
        assert StrategyConfig().label == "balanced/quick/maintain/quick_fix"

    def test_rotation_threshold_range(self):
        with pytest.raises(ValidationError):
            StrategyConfig(rotation_threshold=10)
