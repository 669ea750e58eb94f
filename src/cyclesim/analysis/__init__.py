"""Monte Carlo analysis and statistics."""

from .montecarlo import MonteCarloRunner, SimulationResults, StrategyStatistics

__all__ = ["MonteCarloRunner", "SimulationResults", "StrategyStatistics"]
