"""Tests for the race simulation engine."""

import pytest

from cyclesim.errors import InvalidConfigurationError
from cyclesim.models import (
    ClimbingPreset,
    Formation,
    PacePreset,
    Performance,
    StrategyConfig,
    TerrainType,
)
from cyclesim.models.state import TIME_LIMIT_SECONDS
from cyclesim.simulation import formulas
from cyclesim.simulation.race import (
    FORMATION_SWITCH_SECONDS,
    RaceSimulator,
    assess_performance,
    get_summary,
    tick,
    toggle_pause,
)


def _set_stamina(state, *values):
    for member, value in zip(state.team.members, values):
        member.current_stamina = value


class TestInitialize:
    def test_starting_state(self, race_state):
        assert race_state.distance == 0
        assert race_state.elapsed_time == 0
        assert race_state.total_distance == 380
        assert race_state.terrain == TerrainType.FLAT
        assert race_state.team.morale == 100
        assert race_state.team.leader_index == 0
        assert [m.id for m in race_state.team.members] == [
            "domestique_1",
            "climber_2",
            "sprinter_3",
            "allrounder_4",
        ]
        assert all(m.current_stamina == 100 for m in race_state.team.members)
        assert not race_state.is_complete

    def test_accepts_plain_dicts(self, quiet_simulator, team_config, bike):
        state = quiet_simulator.initialize_race_state(
            team_config.model_dump(),
            bike.model_dump(),
            {"pace": "aggressive"},
            difficulty="hard",
            weather="rain",
        )
        assert state.strategy.pace == PacePreset.AGGRESSIVE
        assert state.difficulty.value == "hard"
        assert state.weather.value == "rain"

    def test_missing_team(self, quiet_simulator, bike):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            quiet_simulator.initialize_race_state(None, bike)
        assert exc_info.value.code == "INVALID_CONFIGURATION"

    def test_missing_bike(self, quiet_simulator, team_config):
        with pytest.raises(InvalidConfigurationError):
            quiet_simulator.initialize_race_state(team_config, None)

    def test_team_too_small(self, quiet_simulator, team_config, bike):
        data = team_config.model_dump()
        data["members"] = data["members"][:1]
        with pytest.raises(InvalidConfigurationError) as exc_info:
            quiet_simulator.initialize_race_state(data, bike)
        assert any(detail.startswith("members") for detail in exc_info.value.details)

    def test_unknown_difficulty(self, quiet_simulator, team_config, bike):
        with pytest.raises(InvalidConfigurationError):
            quiet_simulator.initialize_race_state(team_config, bike, difficulty="impossible")


class TestTickGates:
    def test_paused_returns_same_state(self, quiet_simulator, race_state):
        paused = toggle_pause(race_state)
        assert paused.is_paused
        assert not race_state.is_paused
        assert quiet_simulator.tick(paused, 60) is paused

    def test_complete_returns_same_state(self, quiet_simulator, race_state):
        race_state.is_complete = True
        assert quiet_simulator.tick(race_state, 60) is race_state

    def test_non_positive_delta(self, quiet_simulator, race_state):
        assert quiet_simulator.tick(race_state, 0) is race_state
        assert quiet_simulator.tick(race_state, -5) is race_state

    def test_input_state_untouched(self, quiet_simulator, race_state):
        before = race_state.model_dump()
        new_state = quiet_simulator.tick(race_state, 60)
        assert race_state.model_dump() == before
        assert new_state is not race_state
        assert new_state.distance > 0
        assert new_state.elapsed_time == 60


class TestMovement:
    def test_speed_on_the_flat(self, quiet_simulator, race_state):
        new_state = quiet_simulator.tick(race_state, 60)
        assert 30 < new_state.speed <= formulas.SPEED_MAX
        assert new_state.distance == pytest.approx(new_state.speed * 60 / 3600)
        assert new_state.stats.max_speed == new_state.speed

    def test_pace_scales_speed(self, quiet_simulator, team_config, bike):
        fast = quiet_simulator.initialize_race_state(team_config, bike, StrategyConfig(pace=PacePreset.AGGRESSIVE))
        slow = quiet_simulator.initialize_race_state(team_config, bike, StrategyConfig(pace=PacePreset.CONSERVATIVE))
        fast_speed = quiet_simulator.tick(fast, 60).speed
        slow_speed = quiet_simulator.tick(slow, 60).speed
        assert fast_speed / slow_speed == pytest.approx(1.2 / 0.8)

    def test_stamina_drains_at_pace(self, quiet_simulator, race_state):
        new_state = quiet_simulator.tick(race_state, 600)
        assert new_state.team.average_stamina < 100

    def test_module_level_tick(self, race_state, rng):
        assert tick(race_state, 60, rng=rng).elapsed_time >= 60


class TestLeaderRotation:
    def test_tired_leader_hands_over(self, quiet_simulator, race_state):
        _set_stamina(race_state, 20, 90, 80, 70)
        new_state = quiet_simulator.tick(race_state, 60)
        assert new_state.team.leader_index == 1
        assert new_state.stats.leader_rotations == 1

    def test_fresh_leader_stays(self, quiet_simulator, race_state):
        new_state = quiet_simulator.tick(race_state, 60)
        assert new_state.team.leader_index == 0
        assert new_state.stats.leader_rotations == 0

    def test_ties_go_to_lowest_index(self, quiet_simulator, race_state):
        _set_stamina(race_state, 20, 60, 90, 90)
        quiet_simulator._rotate_leader(race_state)
        assert race_state.team.leader_index == 2

    def test_no_rotation_without_a_fresher_rider(self, quiet_simulator, race_state):
        _set_stamina(race_state, 20, 10, 15, 20)
        quiet_simulator._rotate_leader(race_state)
        assert race_state.team.leader_index == 0
        assert race_state.stats.leader_rotations == 0

    def test_dropped_riders_never_lead(self, quiet_simulator, race_state):
        _set_stamina(race_state, 20, 95, 50, 40)
        race_state.team.members[1].current_stamina = 0
        race_state.team.members[1].dropped = True
        quiet_simulator._rotate_leader(race_state)
        assert race_state.team.leader_index == 2

    def test_dropped_leader_replaced(self, quiet_simulator, race_state):
        race_state.team.members[0].current_stamina = 0
        race_state.team.members[0].dropped = True
        new_state = quiet_simulator.tick(race_state, 60)
        assert new_state.team.leader_index == 1
        assert not new_state.team.leader.dropped


class TestDrops:
    def test_rider_out_of_stamina_is_dropped(self, quiet_simulator, race_state):
        race_state.team.members[2].current_stamina = 0
        quiet_simulator._check_dropped(race_state)
        assert race_state.team.members[2].dropped
        assert race_state.stats.riders_dropped == 1
        assert race_state.team.morale < 100
        assert len(race_state.team.active_members) == 3

    def test_drop_counted_once(self, quiet_simulator, race_state):
        race_state.team.members[2].current_stamina = 0
        quiet_simulator._check_dropped(race_state)
        quiet_simulator._check_dropped(race_state)
        assert race_state.stats.riders_dropped == 1


class TestFormation:
    @pytest.fixture
    def climbing_state(self, quiet_simulator, team_config, bike):
        state = quiet_simulator.initialize_race_state(team_config, bike, StrategyConfig(climbing=ClimbingPreset.DOUBLE))
        state.distance = 60
        state.triggered_events.append("supply_station@50")
        return state

    def test_switch_on_climb_and_back(self, quiet_simulator, climbing_state):
        on_climb = quiet_simulator.tick(climbing_state, 60)
        assert on_climb.terrain == TerrainType.UPHILL
        assert on_climb.team.formation == Formation.DOUBLE_PACELINE
        assert on_climb.stats.formation_changes == 1
        assert on_climb.elapsed_time == 60 + FORMATION_SWITCH_SECONDS

        on_climb.distance = 90
        after = quiet_simulator.tick(on_climb, 60)
        assert after.terrain == TerrainType.FLAT
        assert after.team.formation == Formation.SINGLE_LINE
        assert after.stats.formation_changes == 2
        assert after.stats.climbs_completed == 1

    def test_maintain_keeps_formation(self, quiet_simulator, race_state):
        race_state.distance = 60
        race_state.triggered_events.append("supply_station@50")
        new_state = quiet_simulator.tick(race_state, 60)
        assert new_state.team.formation == Formation.SINGLE_LINE
        assert new_state.stats.formation_changes == 0

    def test_broken_formation_never_switches(self, quiet_simulator, climbing_state):
        climbing_state.team.formation = Formation.SOLO
        climbing_state.team.formation_broken = True
        new_state = quiet_simulator.tick(climbing_state, 60)
        assert new_state.team.formation == Formation.SOLO
        assert new_state.stats.formation_changes == 0


class TestSupplyStations:
    def test_station_fires_once(self, quiet_simulator, race_state):
        race_state.distance = 49.9
        state = quiet_simulator.tick(race_state, 60)
        assert state.reached_stations == [50.0]
        assert state.stats.supply_stops == 1
        # Quick stop adds five minutes
        assert state.elapsed_time == 60 + 300

        state = toggle_pause(toggle_pause(state))
        state = quiet_simulator.tick(state, 60)
        keys = [record.key for record in state.event_history]
        assert keys.count("supply_station@50") == 1
        assert state.stats.supply_stops == 1

    def test_paused_race_keeps_station_pending(self, quiet_simulator, race_state):
        race_state.distance = 49.9
        paused = quiet_simulator.tick(toggle_pause(race_state), 60)
        assert paused.reached_stations == []
        resumed = quiet_simulator.tick(toggle_pause(paused), 60)
        assert resumed.reached_stations == [50.0]


class TestTermination:
    def test_nominal_race_finishes(self, quiet_simulator, race_state):
        final = quiet_simulator.run(race_state, 54720 / 900, max_ticks=900)
        assert final.is_complete
        assert not final.failed
        assert final.distance == 380
        assert final.elapsed_time < TIME_LIMIT_SECONDS
        assert final.reached_stations == [50.0, 130.0, 220.0, 300.0, 360.0]
        assert final.stats.climbs_completed == 2

        summary = get_summary(final)
        assert summary.completed
        assert summary.team_finished == 4
        assert 0 <= summary.average_fatigue <= 1

    def test_finish_clamps_distance(self, quiet_simulator, race_state):
        race_state.distance = 379.9
        race_state.triggered_events.extend(f"supply_station@{km}" for km in (50, 130, 220, 300, 360))
        final = quiet_simulator.tick(race_state, 600)
        assert final.is_complete
        assert final.distance == 380

    def test_time_limit(self, quiet_simulator, race_state):
        race_state.elapsed_time = TIME_LIMIT_SECONDS - 30
        final = quiet_simulator.tick(race_state, 60)
        assert final.is_complete
        assert final.failed

    def test_morale_collapse(self, quiet_simulator, race_state):
        race_state.team.morale = 2
        final = quiet_simulator.tick(race_state, 60)
        assert final.failed
        assert not get_summary(final).completed
        assert get_summary(final).team_finished == 0

    def test_run_stops_when_paused(self, quiet_simulator, race_state):
        paused = toggle_pause(race_state)
        assert quiet_simulator.run(paused, 60) is paused


class TestSummary:
    def test_summary_is_pure(self, quiet_simulator, race_state):
        state = quiet_simulator.run(race_state, 60, max_ticks=50)
        before = state.model_dump()
        assert get_summary(state) == get_summary(state)
        assert state.model_dump() == before

    def test_average_speed(self, race_state):
        race_state.distance = 100
        race_state.elapsed_time = 4 * 3600
        assert get_summary(race_state).average_speed == pytest.approx(25)


class TestPerformance:
    def test_at_start(self, race_state):
        assert assess_performance(race_state) == Performance.ON_TARGET

    @pytest.mark.parametrize(
        "distance, expected",
        [(250, Performance.LEADING), (190, Performance.ON_TARGET), (160, Performance.BEHIND), (100, Performance.FAR_BEHIND)],
    )
    def test_halfway_through_target_time(self, race_state, distance, expected):
        race_state.elapsed_time = race_state.target_time / 2
        race_state.distance = distance
        assert assess_performance(race_state) == expected


def test_simulator_uses_custom_policy(race_state, rng):
    calls = []

    def always_full(template, state):
        calls.append(template.id)
        return {"layer1": "full"}

    simulator = RaceSimulator(rng=rng, ambient_event_rate=0.0, decision_policy=always_full)
    race_state.distance = 49.9
    state = simulator.tick(race_state, 60)
    assert calls == ["supply_station"]
    assert state.elapsed_time == 60 + 1200
