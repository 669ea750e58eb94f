"""Shared fixtures."""

import numpy as np
import pytest

from cyclesim.data import default_loadout, default_team
from cyclesim.models import StrategyConfig
from cyclesim.simulation import RaceSimulator


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def team_config():
    return default_team()


@pytest.fixture
def bike():
    return default_loadout()


@pytest.fixture
def strategy():
    return StrategyConfig()


@pytest.fixture
def simulator(rng):
    return RaceSimulator(rng=rng)


@pytest.fixture
def quiet_simulator(rng):
    """Simulator without ambient events; only supply stations fire."""
    return RaceSimulator(rng=rng, ambient_event_rate=0.0)


@pytest.fixture
def race_state(quiet_simulator, team_config, bike, strategy):
    return quiet_simulator.initialize_race_state(team_config, bike, strategy)
