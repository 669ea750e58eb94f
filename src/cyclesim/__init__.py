"""Cycling team race simulation: Taipei to Kaohsiung in one day."""

from loguru import logger

__version__ = "0.1.0"

logger.disable("cyclesim")
