"""Route model with terrain segments and supply stations."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TerrainType(str, Enum):
    """Terrain kinds a route segment can have."""

    FLAT = "flat"
    SLIGHT_UPHILL = "slight_uphill"
    UPHILL = "uphill"
    STEEP_UPHILL = "steep_uphill"
    EXTREME_UPHILL = "extreme_uphill"
    SLIGHT_DOWNHILL = "slight_downhill"
    DOWNHILL = "downhill"
    STEEP_DOWNHILL = "steep_downhill"
    TECHNICAL = "technical"
    ROLLING = "rolling"
    CLIMBING = "climbing"
    DESCENDING_TO_FLAT = "descending_to_flat"
    FLAT_UNDULATING = "flat_undulating"
    FLAT_TO_HILLS = "flat_to_hills"

    def is_climb(self) -> bool:
        """Check if this terrain counts as a climb."""
        return self in CLIMBING_TERRAIN


CLIMBING_TERRAIN = frozenset({
    TerrainType.SLIGHT_UPHILL,
    TerrainType.UPHILL,
    TerrainType.STEEP_UPHILL,
    TerrainType.EXTREME_UPHILL,
    TerrainType.CLIMBING,
})


class SupplyKind(str, Enum):
    """Supplies a station can offer."""

    WATER = "water"
    FOOD = "food"
    REPAIR = "repair"
    ENERGY = "energy"
    REST = "rest"


class RouteSegment(BaseModel):
    """Represents one stretch of the route."""

    id: str = Field(..., description="Segment identifier (e.g., 'seg_1')")
    name: str = Field(..., description="Display name")
    start_km: float = Field(..., ge=0, description="Cumulative distance where the segment begins")
    distance: float = Field(..., gt=0, description="Segment length in km")
    terrain: TerrainType = Field(default=TerrainType.FLAT, description="Terrain kind")
    elevation: float = Field(default=0.0, ge=0, description="Elevation in metres")
    difficulty: int = Field(default=1, ge=1, le=5, description="Difficulty rating (1-5)")
    landmark: str = Field(default="", description="Landmark at the segment")
    description: str = Field(default="", description="Short description")

    @property
    def end_km(self) -> float:
        """Cumulative distance where the segment ends."""
        return self.start_km + self.distance


class SupplyStation(BaseModel):
    """Represents a supply station at a fixed km marker."""

    km: float = Field(..., ge=0, description="Position along the route in km")
    name: str = Field(..., description="Station name")
    supplies: list[SupplyKind] = Field(default_factory=list, description="Available supplies")


class Route(BaseModel):
    """Represents the full route from start to finish."""

    id: str = Field(..., description="Route identifier")
    name: str = Field(..., description="Route name")
    segments: list[RouteSegment] = Field(..., min_length=1, description="Segments in route order")
    stations: list[SupplyStation] = Field(default_factory=list, description="Supply stations")

    @model_validator(mode="after")
    def _check_contiguous(self) -> "Route":
        expected_start = 0.0
        for segment in self.segments:
            if abs(segment.start_km - expected_start) > 1e-9:
                raise ValueError(
                    f"Segment {segment.id} starts at {segment.start_km} km, expected {expected_start} km"
                )
            expected_start = segment.end_km

        for station in self.stations:
            if station.km > expected_start:
                raise ValueError(f"Station {station.name} lies beyond the finish at {expected_start} km")
        return self

    @property
    def total_distance(self) -> float:
        """Total route length in km."""
        return sum(segment.distance for segment in self.segments)

    def segment_at(self, distance: float) -> RouteSegment:
        """Get the segment covering a cumulative distance.

        The first segment whose cumulative upper bound exceeds the distance
        wins; distances at or past the finish resolve to the last segment.
        """
        accumulated = 0.0
        for segment in self.segments:
            accumulated += segment.distance
            if distance < accumulated:
                return segment
        return self.segments[-1]

    @property
    def total_elevation(self) -> float:
        """Sum of segment elevations."""
        return sum(segment.elevation for segment in self.segments)
