from enum import Enum

from pydantic import Field

from swapplanner.schemas.base import CamelModel


class SeverityEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_RANK = {SeverityEnum.LOW: 1, SeverityEnum.MEDIUM: 2, SeverityEnum.HIGH: 3}


class ColorPair(CamelModel):
    """Interval-exclusion verdict for two colors (fast partition path)."""
    color1: str
    color2: str
    can_share: bool
    reason: str


class Overlap(CamelModel):
    """Two colors required together on at least one layer."""
    color_a: str
    color_b: str
    overlap_count: int = Field(..., ge=0)
    overlap_layers: list[int]
    longest_run: int = Field(0, ge=0, description="Longest run of consecutive shared layers")
    can_share: bool
    severity: SeverityEnum


class ProximityPair(CamelModel):
    color1: str
    color2: str
    average_distance: float
    proximity_score: float


class ColorProximity(CamelModel):
    proximity_matrix: dict[str, dict[str, float]]
    nearby_pairs: list[ProximityPair]
    isolated_colors: list[str]


class UsageHotspot(CamelModel):
    start_layer: int
    end_layer: int
    active_colors: list[str]
    intensity: float
    characteristics: list[str]


class ColdZone(CamelModel):
    start_layer: int
    end_layer: int
    dominant_color: str
    intensity: float


class UsageHotspots(CamelModel):
    hotspots: list[UsageHotspot] = Field(default_factory=list)
    cold_zones: list[ColdZone] = Field(default_factory=list)


class OverlapAnalysis(CamelModel):
    co_occurrence: dict[str, dict[str, int]]
    color_pairs: list[ColorPair]
    overlaps: list[Overlap]
    proximity: ColorProximity
    hotspots: UsageHotspots
