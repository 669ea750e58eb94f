"""Rider archetypes and in-race team members."""

from enum import Enum

from pydantic import BaseModel, Field


class CharacterType(str, Enum):
    """Rider specialisations."""

    CLIMBER = "climber"
    SPRINTER = "sprinter"
    DOMESTIQUE = "domestique"
    ALL_ROUNDER = "allrounder"


class Ability(str, Enum):
    """Special abilities that add to effective speed while active."""

    MOUNTAIN_ACCELERATION = "mountain_acceleration"
    SPRINT_BURST = "sprint_burst"
    ENDURANCE_BOOST = "endurance_boost"
    TEAM_LEADER = "team_leader"
    AERO_SPECIALIST = "aero_specialist"


class BaseStats(BaseModel):
    """Rider stat bundle (0-100 scale)."""

    speed: float = Field(default=75, ge=0, le=100, description="Cruising speed rating")
    stamina: float = Field(default=75, ge=0, le=100, description="Endurance (reduces stamina consumption)")
    climbing: float = Field(default=75, ge=0, le=100, description="Climbing ability")
    sprinting: float = Field(default=75, ge=0, le=100, description="Sprinting ability")
    teamwork: float = Field(default=75, ge=0, le=100, description="Team support given to others")
    recovery: float = Field(default=75, ge=0, le=100, description="Base recovery rate")


class CharacterArchetype(BaseModel):
    """Immutable catalog entry for a rider type."""

    id: str = Field(..., description="Archetype identifier (e.g., 'climber')")
    name: str = Field(..., description="Display name")
    type: CharacterType = Field(..., description="Specialisation tag")
    stats: BaseStats = Field(default_factory=BaseStats, description="Base stat bundle")
    cost: int = Field(default=1000, ge=0, description="Hiring cost")
    specialty: str = Field(default="", description="Short specialty blurb")
    description: str = Field(default="", description="Longer description")

    model_config = {"frozen": True}


class TeamMember(BaseModel):
    """A rider taking part in a race.

    The member stays in the team list for the whole race. Once stamina hits
    zero the member is dropped: no longer part of the pack, excluded from
    formation slots and from the finished count.
    """

    id: str = Field(..., description="Unique member id within the team")
    archetype: CharacterArchetype
    current_stamina: float = Field(default=100.0, ge=0, le=100, description="Stamina percentage")
    dropped: bool = Field(default=False, description="Rider has abandoned the race")

    @property
    def name(self) -> str:
        return self.archetype.name

    @property
    def type(self) -> CharacterType:
        return self.archetype.type

    @property
    def stats(self) -> BaseStats:
        return self.archetype.stats
