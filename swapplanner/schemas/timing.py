from enum import Enum
from typing import Optional

from pydantic import Field

from swapplanner.schemas.base import CamelModel


class ConstraintKindEnum(str, Enum):
    COLOR_USAGE = "color_usage"
    MATERIAL_CHANGE = "material_change"
    BUFFER_ZONE = "buffer_zone"
    PRINT_QUALITY = "print_quality"
    USER_PREFERENCE = "user_preference"


class ConstraintSeverityEnum(str, Enum):
    HARD = "hard"  # cannot be violated
    SOFT = "soft"


class RiskEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimingConstraint(CamelModel):
    type: ConstraintKindEnum
    description: str
    severity: ConstraintSeverityEnum
    impact: int = Field(..., ge=0, le=100, description="Impact on timing flexibility")


class TimingAlternative(CamelModel):
    layer: int
    score: float = Field(..., ge=0, le=100)
    tradeoffs: list[str] = Field(default_factory=list)
    risk: RiskEnum = RiskEnum.LOW


class TimingOptions(CamelModel):
    earliest: int
    latest: int
    optimal: int
    adjacent_only: bool
    buffer_layers: int


class SwapWindow(CamelModel):
    start_layer: int
    end_layer: int
    flexibility_score: float = Field(..., ge=0, le=100)
    constraints: list[str] = Field(default_factory=list)


class TimingConfidence(CamelModel):
    timing: int = Field(..., ge=0, le=100)
    necessity: int = Field(..., ge=0, le=100)
    user_control: int = Field(..., ge=0, le=100)


class TimingWindow(CamelModel):
    """Flexible timing window attached to a ManualSwap."""
    earliest: int
    latest: int
    optimal: int
    flexibility_score: float = Field(..., ge=0, le=100)
    adjacent_only: bool = False
    buffer_layers: int = 0
    constraints: list[TimingConstraint] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    alternatives: list[TimingAlternative] = Field(default_factory=list)


class TimingAnalysis(CamelModel):
    swap_id: str
    recommended_layer: int
    timing_options: TimingOptions
    swap_window: SwapWindow
    confidence: TimingConfidence
    alternatives: list[TimingAlternative]
    constraints: list[TimingConstraint]

    def to_window(self) -> TimingWindow:
        return TimingWindow(
            earliest=self.timing_options.earliest,
            latest=self.timing_options.latest,
            optimal=self.timing_options.optimal,
            flexibility_score=self.swap_window.flexibility_score,
            adjacent_only=self.timing_options.adjacent_only,
            buffer_layers=self.timing_options.buffer_layers,
            constraints=list(self.constraints),
            notes=list(self.swap_window.constraints),
            alternatives=list(self.alternatives),
        )


class CandidateLayer(CamelModel):
    """A scored candidate layer from suggest_timing_alternatives."""
    layer: int
    score: float = Field(..., ge=0, le=100)
    benefits: list[str] = Field(default_factory=list)
    drawbacks: list[str] = Field(default_factory=list)


class SwapWindowEstimate(CamelModel):
    """Result of calculate_swap_window for an arbitrary color pair."""
    earliest: int
    latest: int
    flexibility: float
    reasoning: list[str]
    from_color: Optional[str] = None
    to_color: Optional[str] = None
