"""Race strategy presets chosen before the start."""

from enum import Enum

from pydantic import BaseModel, Field


class PacePreset(str, Enum):
    """Overall riding intensity."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class SupplyPreset(str, Enum):
    """How long to stop at supply stations."""

    SKIP = "skip"
    QUICK = "quick"
    FULL = "full"


class ClimbingPreset(str, Enum):
    """Formation used on climbs."""

    SINGLE = "single"
    DOUBLE = "double"
    MAINTAIN = "maintain"


class MechanicalPreset(str, Enum):
    """Response to mechanical failures."""

    QUICK_FIX = "quick_fix"
    THOROUGH_REPAIR = "thorough_repair"
    CONTINUE = "continue"


class Difficulty(str, Enum):
    """Game difficulty, scaling event frequency and final score."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EXTREME = "extreme"


# (speed multiplier, stamina consumption multiplier)
PACE_MULTIPLIERS: dict[PacePreset, tuple[float, float]] = {
    PacePreset.CONSERVATIVE: (0.8, 0.8),
    PacePreset.BALANCED: (1.0, 1.0),
    PacePreset.AGGRESSIVE: (1.2, 1.3),
}


class StrategyConfig(BaseModel):
    """Strategy for one race. Not changed once the race starts."""

    pace: PacePreset = Field(default=PacePreset.BALANCED, description="Pace preset")
    supply: SupplyPreset = Field(default=SupplyPreset.QUICK, description="Supply stop preset")
    climbing: ClimbingPreset = Field(default=ClimbingPreset.MAINTAIN, description="Climbing formation preset")
    mechanical: MechanicalPreset = Field(
        default=MechanicalPreset.QUICK_FIX,
        description="Mechanical failure response preset",
    )
    rotation_threshold: float = Field(
        default=30.0,
        ge=20,
        le=50,
        description="Leader stamina (%) below which the lead rotates",
    )

    model_config = {"frozen": True}

    @property
    def speed_multiplier(self) -> float:
        return PACE_MULTIPLIERS[self.pace][0]

    @property
    def consumption_multiplier(self) -> float:
        return PACE_MULTIPLIERS[self.pace][1]

    @property
    def label(self) -> str:
        """Short label used in reports (e.g., 'balanced/quick/maintain/quick_fix')."""
        return "/".join(
            (self.pace.value, self.supply.value, self.climbing.value, self.mechanical.value)
        )
