"""Tests for the formula library."""

import math

import pytest

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
from cyclesim.simulation import formulas


class TestTables:
    def test_tables_cover_every_enum_member(self):
        for table in (formulas.TERRAIN_SPEED, formulas.TERRAIN_CONSUMPTION):
            assert set(table) == set(TerrainType)
        for table in (
            formulas.WEATHER_SPEED,
            formulas.WEATHER_CONSUMPTION,
            formulas.WEATHER_RECOVERY,
            formulas.WEATHER_MOOD,
        ):
            assert set(table) == set(WeatherCondition)
        assert set(formulas.FORMATION_BONUS) == set(Formation)
        assert set(formulas.ABILITY_BONUS) == set(Ability)
        assert set(formulas.MORALE_EVENT_DELTA) == set(MoraleEvent)
        assert set(formulas.PERFORMANCE_DELTA) == set(Performance)
        assert set(formulas.DIFFICULTY_SCORE_MULTIPLIER) == set(Difficulty)
        assert set(formulas.ACHIEVEMENT_POINTS) == set(formulas.Achievement)

    def test_formation_bonus_is_a_lookup(self):
        assert formulas.get_formation_bonus(Formation.SINGLE_LINE, FormationPosition.LEAD) == 0
        assert formulas.get_formation_bonus(Formation.SINGLE_LINE, FormationPosition.LAST) == 0.30
        assert formulas.get_formation_bonus("single_line", "last") == 0.30

    def test_formation_bonus_unknown_position_is_zero(self):
        assert formulas.get_formation_bonus(Formation.SOLO, FormationPosition.LAST) == 0.0


class TestFormationPositions:
    def test_single_line_four_riders(self):
        assert formulas.formation_positions(Formation.SINGLE_LINE, 4) == [
            FormationPosition.LEAD,
            FormationPosition.SECOND,
            FormationPosition.THIRD,
            FormationPosition.LAST,
        ]

    def test_single_line_two_riders(self):
        assert formulas.formation_positions(Formation.SINGLE_LINE, 2) == [
            FormationPosition.LEAD,
            FormationPosition.LAST,
        ]

    @pytest.mark.parametrize("formation", list(Formation))
    @pytest.mark.parametrize("size", [1, 2, 3, 4])
    def test_one_known_slot_per_rider(self, formation, size):
        positions = formulas.formation_positions(formation, size)
        assert len(positions) == size
        for position in positions:
            assert position in formulas.FORMATION_BONUS[formation]

    def test_empty_team(self):
        assert formulas.formation_positions(Formation.DIAMOND, 0) == []


class TestStaminaEffect:
    def test_bounded_and_monotonic(self):
        previous = formulas.stamina_effect(0)
        for s in range(0, 101):
            value = formulas.stamina_effect(s)
            assert 0.50 <= value <= 1.0
            # Less stamina never makes the rider faster
            assert value >= previous
            previous = value

    def test_band_edges(self):
        assert formulas.stamina_effect(100) == 1.0
        assert formulas.stamina_effect(80) == 1.0
        assert formulas.stamina_effect(60) == pytest.approx(0.95)
        assert formulas.stamina_effect(40) == pytest.approx(0.85)
        assert formulas.stamina_effect(20) == pytest.approx(0.70)
        assert formulas.stamina_effect(0) == 0.50

    def test_out_of_range_is_clamped(self):
        assert formulas.stamina_effect(-50) == 0.50
        assert formulas.stamina_effect(250) == 1.0
        assert formulas.stamina_effect(float("nan")) == 0.50


class TestEffectiveSpeed:
    def test_within_bounds_for_extremes(self):
        slow = formulas.effective_speed(
            character_speed=1,
            equipment_bonus=-0.2,
            terrain=TerrainType.EXTREME_UPHILL,
            stamina=0,
            formation=Formation.SOLO,
            position=FormationPosition.ANY,
            weather=WeatherCondition.STORM,
        )
        fast = formulas.effective_speed(
            character_speed=100,
            equipment_bonus=0.3,
            terrain=TerrainType.STEEP_DOWNHILL,
            stamina=100,
            formation=Formation.TRAIN,
            position=FormationPosition.PROTECTED,
            weather=WeatherCondition.TAILWIND,
            abilities=list(Ability),
            event_modifier=0.5,
        )
        assert slow == formulas.SPEED_MIN
        assert fast == formulas.SPEED_MAX

    def test_factors_multiply(self):
        speed = formulas.effective_speed(
            character_speed=20,
            equipment_bonus=0.1,
            terrain=TerrainType.UPHILL,
            stamina=100,
            formation=Formation.SINGLE_LINE,
            position=FormationPosition.SECOND,
            weather=WeatherCondition.CLEAR,
            abilities=[Ability.MOUNTAIN_ACCELERATION],
        )
        assert speed == pytest.approx(20 * 1.1 * 0.7 * 1.2 * 1.15)

    def test_duplicate_abilities_count_once(self):
        assert formulas.ability_bonus([Ability.SPRINT_BURST, Ability.SPRINT_BURST]) == pytest.approx(0.20)


class TestStaminaConsumption:
    def test_zero_distance_costs_nothing(self):
        assert formulas.stamina_consumption(
            0, 30, TerrainType.FLAT, Formation.SOLO, FormationPosition.ANY, WeatherCondition.CLEAR, 8, 75, True
        ) == 0

    def test_clamped_to_100(self):
        value = formulas.stamina_consumption(
            10_000, 50, TerrainType.EXTREME_UPHILL, Formation.SOLO, FormationPosition.ANY,
            WeatherCondition.HOT_SUNNY, 12, 0, True,
        )
        assert value == 100

    def test_leading_costs_more_than_drafting(self):
        args = dict(
            distance=10,
            speed=30,
            terrain=TerrainType.FLAT,
            formation=Formation.SINGLE_LINE,
            weather=WeatherCondition.CLEAR,
            bike_weight=8,
            endurance=75,
        )
        leading = formulas.stamina_consumption(position=FormationPosition.LEAD, is_leading=True, **args)
        drafting = formulas.stamina_consumption(position=FormationPosition.LAST, is_leading=False, **args)
        assert leading > drafting > 0

    def test_negative_input_clamped(self):
        value = formulas.stamina_consumption(
            -5, -30, TerrainType.FLAT, Formation.SOLO, FormationPosition.ANY, WeatherCondition.CLEAR, 8, 75, False
        )
        assert value == 0

    @pytest.mark.parametrize(
        "terrain, weather",
        [
            (TerrainType.STEEP_DOWNHILL, WeatherCondition.CLEAR),
            (TerrainType.FLAT, WeatherCondition.STORM),
            (TerrainType.FLAT, WeatherCondition.SIDEWIND),
            (TerrainType.FLAT, WeatherCondition.CLOUDY),
        ],
    )
    def test_unrated_conditions_cost_like_flat_clear(self, terrain, weather):
        args = dict(
            distance=10, speed=30, formation=Formation.SOLO, position=FormationPosition.ANY,
            bike_weight=8, endurance=75, is_leading=False,
        )
        baseline = formulas.stamina_consumption(terrain=TerrainType.FLAT, weather=WeatherCondition.CLEAR, **args)
        assert formulas.stamina_consumption(terrain=terrain, weather=weather, **args) == pytest.approx(baseline)


class TestRecoveryRate:
    @pytest.mark.parametrize("speed", [0, 10, 20, 35])
    @pytest.mark.parametrize("resting", [True, False])
    @pytest.mark.parametrize("weather", list(WeatherCondition))
    def test_bounded(self, speed, resting, weather):
        rate = formulas.recovery_rate(
            base_recovery=100,
            current_speed=speed,
            is_resting=resting,
            has_supplies=True,
            team_support=100,
            morale=100,
            weather=weather,
            rest_duration=60,
        )
        assert formulas.RECOVERY_MIN <= rate <= formulas.RECOVERY_MAX

    def test_no_recovery_at_race_pace_hits_floor(self):
        rate = formulas.recovery_rate(80, 40, False, False, 50, 50, WeatherCondition.CLEAR)
        assert rate == formulas.RECOVERY_MIN

    def test_resting_beats_riding(self):
        resting = formulas.recovery_rate(60, 0, True, False, 50, 50, WeatherCondition.CLEAR, rest_duration=5)
        riding = formulas.recovery_rate(60, 20, False, False, 50, 50, WeatherCondition.CLEAR)
        assert resting > riding

    def test_supplies_help(self):
        base = formulas.recovery_rate(50, 0, True, False, 50, 50, WeatherCondition.CLEAR)
        supplied = formulas.recovery_rate(50, 0, True, True, 50, 50, WeatherCondition.CLEAR)
        assert supplied == pytest.approx(base * 1.5)


class TestMoraleChange:
    def test_event_scaled_by_harmony(self):
        change = formulas.morale_change(50, MoraleEvent.OVERTAKE, None, 50, None, 0)
        assert change == pytest.approx(10 * 1.0)

    def test_high_morale_damps_gains(self):
        low = formulas.morale_change(50, MoraleEvent.OVERTAKE, None, 50, None, 0)
        high = formulas.morale_change(90, MoraleEvent.OVERTAKE, None, 50, None, 0)
        assert high == pytest.approx(low * 0.5)

    def test_fatigue_amplifies_losses(self):
        fresh = formulas.morale_change(50, MoraleEvent.DROPPED, None, 50, None, 0)
        tired = formulas.morale_change(50, MoraleEvent.DROPPED, None, 50, None, 80)
        assert tired == pytest.approx(fresh * 1.5)

    def test_weather_mood_added_after_scaling(self):
        change = formulas.morale_change(50, None, Performance.ON_TARGET, 100, WeatherCondition.STORM, 0)
        assert change == pytest.approx(2 * 1.5 - 2)


class TestMoraleEffects:
    @pytest.mark.parametrize(
        "morale, speed",
        [(100, 0.10), (80, 0.10), (79.9, 0.05), (60, 0.05), (40, -0.05), (20, -0.15), (19.9, -0.30), (0, -0.30)],
    )
    def test_bands(self, morale, speed):
        assert formulas.morale_effects(morale).speed == speed


class TestFinalScore:
    def test_time_bonus_monotonic(self):
        args = dict(
            target_time=720,
            team_integrity=100,
            supplies_used=10,
            events_handled=5,
            special_achievements=[],
            difficulty="normal",
        )
        assert formulas.final_score(completion_time=600, **args) > formulas.final_score(completion_time=720, **args)

    def test_exact_value(self):
        score = formulas.final_score(600, 720, 100, 10, 5, [], Difficulty.NORMAL)
        assert score == 10000 + 1200 + 2000 + 500 + 2500

    def test_difficulty_and_achievements(self):
        score = formulas.final_score(720, 720, 0, 20, 0, ["no_dropout", "unknown"], Difficulty.HARD)
        assert score == math.floor((10000 + 1000) * 1.3)

    def test_slow_race_gets_no_time_penalty(self):
        assert formulas.final_score(900, 720, 0, 20, 0, [], "normal") == 10000


def test_segment_time_in_minutes():
    minutes = formulas.segment_time(30, 30, event_delays=[5])
    assert minutes == pytest.approx(30 / 30 * 60 + 5)


def test_format_duration():
    assert formulas.format_duration(42125) == "11h 42m 05s"
    assert formulas.format_duration(-3) == "0h 00m 00s"
