"""Tests for the event engine."""

import numpy as np
import pytest

from cyclesim.data import ROUTE, get_event_template
from cyclesim.models import (
    EffectBundle,
    EventCategory,
    EventTemplate,
    Formation,
    MechanicalPreset,
    StrategyConfig,
    SupplyPreset,
    TriggerConditions,
)
from cyclesim.simulation.events import (
    EventEngine,
    StrategyDecisionPolicy,
    event_key,
    recent_events,
    recommend_choices,
    summarize_effects,
)


@pytest.fixture
def engine(rng):
    return EventEngine(rng=rng)


def test_event_key():
    template = get_event_template("supply_station")
    assert event_key(template, 50.0) == "supply_station@50"
    assert event_key(get_event_template("road_smooth")) == "road_smooth"


class TestMandatory:
    def test_nothing_due_at_start(self, engine, race_state):
        assert engine.check_mandatory(race_state) == []

    def test_stations_due_in_route_order(self, engine, race_state):
        race_state.distance = 135
        due = engine.check_mandatory(race_state)
        assert [location for _, location in due] == [50.0, 130.0]

    def test_fired_station_not_due_again(self, engine, race_state):
        race_state.distance = 55
        template, location = engine.check_mandatory(race_state)[0]
        resolved = engine.resolve(template, {"layer1": "quick"}, race_state.team, race_state.bike, location)
        engine.apply_in_place(race_state, resolved)
        assert engine.check_mandatory(race_state) == []
        assert race_state.triggered_events == ["supply_station@50"]


class TestAmbient:
    @pytest.fixture
    def race_state(self, race_state):
        # A long quiet stretch doubles every probability, so 1.0 stays certain in clear weather
        race_state.distance_since_last_event = 60
        return race_state

    def test_zero_rate_never_fires(self, race_state):
        engine = EventEngine(rng=np.random.default_rng(0), ambient_event_rate=0.0)
        segment = ROUTE.segment_at(race_state.distance)
        assert all(engine.check_ambient(race_state, segment, 60) is None for _ in range(200))

    def test_distance_range_gate(self, race_state):
        template = EventTemplate(
            id="halfway",
            name="Halfway",
            category=EventCategory.MORALE,
            trigger=TriggerConditions(probability=1.0, distance_ranges=[(185, 200)]),
            effects=EffectBundle(morale_delta=5),
        )
        engine = EventEngine(templates=[template], rng=np.random.default_rng(0), ambient_event_rate=1.0)

        race_state.distance = 100
        assert engine.check_ambient(race_state, ROUTE.segment_at(100), 1) is None
        race_state.distance = 190
        assert engine.check_ambient(race_state, ROUTE.segment_at(190), 1) is template

    def test_terrain_gate(self, race_state):
        cramp = get_event_template("climbing_cramp")
        template = cramp.model_copy(update={"trigger": cramp.trigger.model_copy(update={"probability": 1.0})})
        engine = EventEngine(templates=[template], rng=np.random.default_rng(0), ambient_event_rate=1.0)

        assert engine.check_ambient(race_state, ROUTE.segment_at(10), 1) is None
        race_state.distance = 60
        assert engine.check_ambient(race_state, ROUTE.segment_at(60), 1) is template

    def test_morale_threshold_gate(self, race_state):
        conflict = get_event_template("morale_team_conflict")
        template = conflict.model_copy(update={"trigger": conflict.trigger.model_copy(update={"probability": 1.0})})
        engine = EventEngine(templates=[template], rng=np.random.default_rng(0), ambient_event_rate=1.0)
        segment = ROUTE.segment_at(0)

        assert engine.check_ambient(race_state, segment, 1) is None
        race_state.team.morale = 30
        assert engine.check_ambient(race_state, segment, 1) is template

    def test_mandatory_and_triggered_templates_skipped(self, race_state):
        smooth = get_event_template("road_smooth")
        template = smooth.model_copy(update={"trigger": TriggerConditions(probability=1.0)})
        engine = EventEngine(
            templates=[get_event_template("supply_station"), template],
            rng=np.random.default_rng(0),
            ambient_event_rate=1.0,
        )
        segment = ROUTE.segment_at(0)
        assert engine.check_ambient(race_state, segment, 1) is template
        race_state.triggered_events.append("road_smooth")
        assert engine.check_ambient(race_state, segment, 1) is None

    def test_adjusted_probability(self, engine, race_state):
        template = get_event_template("mechanical_puncture")
        race_state.distance_since_last_event = 0
        base = engine.adjusted_probability(template, race_state)
        race_state.distance_since_last_event = 60
        assert engine.adjusted_probability(template, race_state) == pytest.approx(base * 2)


class TestResolve:
    def test_supply_quick_stop(self, engine, race_state):
        template = get_event_template("supply_station")
        resolved = engine.resolve(template, {"layer1": "quick"}, race_state.team, race_state.bike, 50.0)
        assert resolved.key == "supply_station@50"
        assert resolved.effects.time_delay == 300
        assert resolved.effects.stamina_delta == 15
        assert resolved.effects.supplied is True
        assert resolved.duration == 1800
        assert resolved.choices == {"layer1": "quick"}

    def test_second_layer_overrides_first(self, engine, race_state):
        template = get_event_template("mechanical_puncture")
        resolved = engine.resolve(
            template,
            {"layer1": "thorough_repair", "layer2": "full_check"},
            race_state.team,
            race_state.bike,
        )
        assert resolved.choices == {"layer1": "thorough_repair", "layer2": "full_check"}
        # 900 + 300 seconds, sped up by the domestique
        assert resolved.effects.time_delay == pytest.approx(1200 * 0.8)
        assert resolved.effects.morale_delta == 5
        assert resolved.effects.stamina_delta == 5

    def test_empty_second_layer_keeps_first(self, engine, race_state):
        template = get_event_template("mechanical_chain")
        resolved = engine.resolve(
            template,
            {"layer1": "thorough_repair", "layer2": "damaged_part"},
            race_state.team,
            race_state.bike,
        )
        # Electronic 11-speed gears shorten the repair
        assert resolved.effects.time_delay == pytest.approx(300 * 0.8)
        assert resolved.effects.morale_delta == 0

    def test_unknown_option_falls_back_to_first(self, engine, race_state):
        template = get_event_template("supply_station")
        resolved = engine.resolve(template, {"layer1": "teleport"}, race_state.team, race_state.bike, 50.0)
        assert resolved.choices == {"layer1": "skip"}

    def test_plain_event_uses_template_effects(self, engine, race_state):
        template = get_event_template("weather_headwind")
        resolved = engine.resolve(template, None, race_state.team, race_state.bike)
        assert resolved.effects.speed_modifier == 0.85
        assert resolved.duration == 900
        assert not resolved.had_decision

    def test_climber_halves_cramp(self, engine, race_state):
        resolved = engine.resolve(get_event_template("climbing_cramp"), None, race_state.team, race_state.bike)
        assert resolved.effects.stamina_delta == pytest.approx(-4)
        assert resolved.effects.time_delay == pytest.approx(60)


class TestApply:
    def test_supply_stop(self, engine, race_state):
        race_state.distance = 50.5
        for member in race_state.team.members:
            member.current_stamina = 50
        template = get_event_template("supply_station")
        resolved = engine.resolve(template, {"layer1": "quick"}, race_state.team, race_state.bike, 50.0)

        new_state = engine.apply(race_state, resolved)

        assert race_state.event_history == []
        assert new_state.elapsed_time == 300
        assert new_state.stats.supply_stops == 1
        assert new_state.stats.events_handled == 0
        assert new_state.reached_stations == [50.0]
        # +15 from the stop plus recovery while resting
        assert all(m.current_stamina > 65 for m in new_state.team.members)
        assert new_state.active_effects[0].supplied
        assert new_state.active_effects[0].expires_at == 300 + 1800
        assert new_state.event_history[0].key == "supply_station@50"

    def test_skipped_supply_is_not_a_stop(self, engine, race_state):
        template = get_event_template("supply_station")
        resolved = engine.resolve(template, {"layer1": "skip"}, race_state.team, race_state.bike, 50.0)
        new_state = engine.apply(race_state, resolved)
        assert new_state.stats.supply_stops == 0
        assert new_state.reached_stations == [50.0]
        assert new_state.team.morale == 95

    def test_weather_effect_sets_weather(self, engine, race_state):
        resolved = engine.resolve(get_event_template("weather_rain"), None, race_state.team, race_state.bike)
        new_state = engine.apply(race_state, resolved)
        assert new_state.weather.value == "rain"
        assert new_state.stats.weather_challenges == 1
        assert new_state.active_effects[0].expires_at == 1200

    def test_formation_break(self, engine, race_state):
        template = get_event_template("road_pileup")
        resolved = engine.resolve(template, {"layer1": "scatter"}, race_state.team, race_state.bike)
        new_state = engine.apply(race_state, resolved)
        assert new_state.team.formation == Formation.SOLO
        assert new_state.team.formation_broken
        assert new_state.stats.formation_changes == 1
        assert new_state.stats.events_handled == 1

    def test_team_disband(self, engine, race_state):
        template = get_event_template("morale_team_conflict")
        resolved = engine.resolve(template, {"layer1": "split"}, race_state.team, race_state.bike)
        new_state = engine.apply(race_state, resolved)
        assert new_state.team.integrity == 0
        assert new_state.team.formation_broken

    def test_mechanical_counts(self, engine, race_state):
        template = get_event_template("mechanical_brake")
        resolved = engine.resolve(template, {"layer1": "continue"}, race_state.team, race_state.bike)
        new_state = engine.apply(race_state, resolved)
        assert new_state.stats.mechanical_failures == 1
        assert new_state.active_effects[0].speed_modifier == 0.9
        assert new_state.active_effects[0].expires_at == 900

    def test_morale_event_used_without_delta(self, engine, race_state):
        race_state.team.morale = 50
        resolved = engine.resolve(get_event_template("weather_headwind"), None, race_state.team, race_state.bike)
        new_state = engine.apply(race_state, resolved)
        assert new_state.team.morale < 50

    def test_recent_events_newest_first(self, engine, race_state):
        state = race_state
        for template_id in ("road_smooth", "road_traffic", "weather_tailwind", "morale_cheering"):
            resolved = engine.resolve(get_event_template(template_id), None, state.team, state.bike)
            state = engine.apply(state, resolved)
        assert [r.template_id for r in recent_events(state)] == [
            "morale_cheering",
            "weather_tailwind",
            "road_traffic",
        ]
        assert recent_events(state, 0) == []


class TestDecisions:
    def test_policy_follows_strategy_presets(self, race_state):
        policy = StrategyDecisionPolicy(StrategyConfig(supply=SupplyPreset.FULL, mechanical=MechanicalPreset.CONTINUE))
        assert policy(get_event_template("supply_station"), race_state) == {"layer1": "full"}
        assert policy(get_event_template("mechanical_chain"), race_state) == {"layer1": "continue"}

    def test_policy_defaults_to_state_strategy(self, race_state):
        choices = StrategyDecisionPolicy()(get_event_template("mechanical_puncture"), race_state)
        assert choices == {"layer1": "quick_fix"}

    def test_thorough_repair_answers_second_layer(self, race_state):
        policy = StrategyDecisionPolicy(StrategyConfig(mechanical=MechanicalPreset.THOROUGH_REPAIR))
        choices = policy(get_event_template("mechanical_puncture"), race_state)
        assert choices == {"layer1": "thorough_repair", "layer2": "damaged_part"}

    def test_recommendations_avoid_splitting_up(self, race_state):
        recommendations = recommend_choices(get_event_template("morale_team_conflict"), race_state)
        assert recommendations[0].option_id == "mediate"
        assert recommendations[-1].risk_level == "high"

    def test_low_stamina_prefers_recovery(self, race_state):
        for member in race_state.team.members:
            member.current_stamina = 20
        recommendations = recommend_choices(get_event_template("supply_station"), race_state)
        assert recommendations[0].option_id in {"quick", "full"}


def test_summarize_effects():
    assert summarize_effects(EffectBundle()) == "no noticeable effect"
    assert summarize_effects(EffectBundle(speed_modifier=0.8, time_delay=300)) == "speed -20%, +5 min"
