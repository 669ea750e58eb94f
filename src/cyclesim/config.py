"""Runtime settings loaded from the environment or a .env file."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cyclesim.models.strategy import Difficulty


class SimulationSettings(BaseSettings):
    """Simulation settings.

    Every field can be overridden with a ``CYCLESIM_`` prefixed environment
    variable, e.g. ``CYCLESIM_SEED=42`` or ``CYCLESIM_LOG_LEVEL=DEBUG``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CYCLESIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    seed: int | None = Field(default=None, description="Base random seed (None = random)")
    difficulty: Difficulty = Field(default=Difficulty.NORMAL)
    target_time_minutes: float = Field(default=720.0, gt=0, description="Target race time for scoring")
    demo_duration: float = Field(default=30.0, gt=0, description="Fast-forward wall-clock duration (s)")
    demo_fps: int = Field(default=30, gt=0, le=240, description="Fast-forward frame rate")
    ambient_event_rate: float = Field(
        default=0.0005,
        ge=0,
        le=1,
        description="Chance per simulated second that an ambient event roll happens",
    )
    nominal_speed_kmh: float = Field(default=25.0, gt=0, description="Speed used to estimate race duration")
    log_level: str = Field(default="INFO")
    log_file: str | None = Field(default=None)
    state_path: str = Field(default="output/race_state.json")
    leaderboard_path: str = Field(default="output/leaderboard.json")
    output_dir: str = Field(default="output")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> SimulationSettings:
    """Get the cached settings instance."""
    return SimulationSettings()
