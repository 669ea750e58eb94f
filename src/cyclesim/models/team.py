"""Team configuration and riding formations."""

from enum import Enum

from pydantic import BaseModel, Field

from cyclesim.models.rider import CharacterArchetype

MIN_TEAM_SIZE = 2
MAX_TEAM_SIZE = 4


class Formation(str, Enum):
    """Spatial arrangement of the team on the road."""

    SOLO = "solo"
    SINGLE_LINE = "single_line"
    SIDE_BY_SIDE = "side_by_side"
    DOUBLE_PACELINE = "double_paceline"
    ECHELON = "echelon"
    TRAIN = "train"
    DIAMOND = "diamond"


class FormationPosition(str, Enum):
    """Slots inside a formation."""

    ANY = "any"
    LEAD = "lead"
    SECOND = "second"
    THIRD = "third"
    LAST = "last"
    LEFT = "left"
    RIGHT = "right"
    LEAD_A = "leadA"
    LEAD_B = "leadB"
    FOLLOW_A = "followA"
    FOLLOW_B = "followB"
    FRONT = "front"
    PROTECTED = "protected"
    GUARD = "guard"
    SIDE = "side"
    BACK = "back"


class TeamConfig(BaseModel):
    """Team chosen by the player before the race."""

    members: list[CharacterArchetype] = Field(
        ...,
        min_length=MIN_TEAM_SIZE,
        max_length=MAX_TEAM_SIZE,
        description="Hired riders, in starting order (index 0 leads)",
    )
    formation: Formation = Field(default=Formation.SINGLE_LINE, description="Starting formation")
    morale: float = Field(default=100.0, ge=0, le=100, description="Starting team morale")

    @property
    def total_cost(self) -> int:
        """Total hiring cost."""
        return sum(member.cost for member in self.members)
