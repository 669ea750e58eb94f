"""Bike equipment and loadout with derived performance figures."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from cyclesim.models.rider import Ability


class EquipmentSlot(str, Enum):
    """Loadout slots."""

    FRAME = "frame"
    WHEELS = "wheels"
    GEARS = "gears"
    ACCESSORY = "accessory"


class EquipmentItem(BaseModel):
    """Immutable catalog entry for a bike part."""

    id: str = Field(..., description="Part identifier (e.g., 'frame_carbon_race')")
    name: str = Field(..., description="Display name")
    slot: EquipmentSlot = Field(..., description="Slot the part fits")
    weight: float = Field(default=0.0, ge=0, le=15, description="Weight in kg")
    aero: float = Field(default=0.0, ge=0, le=100, description="Aerodynamic rating")
    durability: float = Field(default=100.0, ge=0, le=100, description="Resistance to mechanical failure")
    precision: float = Field(default=0.0, ge=0, le=100, description="Shifting precision (groupsets)")
    stability: float = Field(default=0.0, ge=0, le=100, description="Crosswind stability (wheels)")
    cost: int = Field(default=0, ge=0, description="Purchase cost")
    aero_bonus: float = Field(default=0.0, ge=0, le=20, description="Flat aero rating bonus (accessories)")
    stamina_saving: float = Field(
        default=0.0,
        ge=0.0,
        le=0.2,
        description="Fractional reduction of stamina consumption (accessories)",
    )
    grants_ability: Ability | None = Field(default=None, description="Special ability unlocked by the part")
    description: str = Field(default="", description="Short description")

    model_config = {"frozen": True}


class BikeLoadout(BaseModel):
    """One item per required slot plus optional accessories.

    Every derived figure is computed from the selected items on access, so it
    can never drift from its source parts.
    """

    frame: EquipmentItem
    wheels: EquipmentItem
    gears: EquipmentItem
    accessories: list[EquipmentItem] = Field(default_factory=list)

    @property
    def items(self) -> list[EquipmentItem]:
        return [self.frame, self.wheels, self.gears, *self.accessories]

    @computed_field
    @property
    def total_weight(self) -> float:
        """Total bike weight in kg."""
        return round(sum(item.weight for item in self.items), 3)

    @computed_field
    @property
    def aero_rating(self) -> float:
        """Combined aerodynamic rating (0-100)."""
        base = (self.frame.aero + self.wheels.aero) / 2
        bonus = sum(item.aero_bonus for item in self.accessories)
        return min(100.0, base + bonus)

    @computed_field
    @property
    def durability(self) -> float:
        """Mechanical durability (0-100) from frame and groupset."""
        return (self.frame.durability + self.gears.durability) / 2

    @computed_field
    @property
    def total_cost(self) -> int:
        """Total purchase cost."""
        return sum(item.cost for item in self.items)

    @computed_field
    @property
    def equipment_bonus(self) -> float:
        """Speed bonus fed to the effective speed formula (-0.2 to +0.3).

        Aero above 75 helps; every kg above 9 kg costs 1%.
        """
        aero_part = (self.aero_rating - 75) / 250
        weight_part = max(0.0, self.total_weight - 9) * 0.01
        return max(-0.2, min(0.3, aero_part - weight_part))

    @computed_field
    @property
    def stamina_saving(self) -> float:
        """Fractional stamina consumption reduction from accessories."""
        return min(0.2, sum(item.stamina_saving for item in self.accessories))

    @property
    def abilities(self) -> list[Ability]:
        """Abilities unlocked by fitted parts."""
        return [item.grants_ability for item in self.items if item.grants_ability is not None]

    def with_item(self, item: EquipmentItem) -> "BikeLoadout":
        """Return a new loadout with the item's slot replaced.

        Accessories are appended unless already fitted.
        """
        if item.slot == EquipmentSlot.ACCESSORY:
            if any(acc.id == item.id for acc in self.accessories):
                return self.model_copy(deep=True)
            return self.model_copy(update={"accessories": [*self.accessories, item]}, deep=True)
        return self.model_copy(update={item.slot.value: item}, deep=True)

    def has_part(self, part_id: str) -> bool:
        return any(item.id == part_id for item in self.items)
