from typing import Optional

from pydantic import Field

from swapplanner.schemas.base import CamelModel
from swapplanner.schemas.config import AssignmentStrategy
from swapplanner.schemas.overlap import ColorPair
from swapplanner.schemas.timing import TimingConfidence, TimingWindow


class SlotAssignment(CamelModel):
    """
    One physical slot and the colors it serves over the print.
    A permanent slot holds one color for the whole print; a shared slot is
    re-loaded by the operator between colors.
    """
    slot: int = Field(..., ge=1, description="Slot number in the pooled capacity (1..K)")
    unit: int = Field(1, ge=1)
    slot_id: str = Field("", description="Display label '<unit>-<slot in unit>'")
    colors: list[str]
    is_permanent: bool
    utilization: float = Field(0.0, ge=0, le=100)
    conflicts: int = Field(0, ge=0)
    efficiency: float = Field(0.0, ge=0, le=100)
    reasoning: list[str] = Field(default_factory=list)


class AssignmentMetrics(CamelModel):
    overall_efficiency: float
    waste_reduction: float
    conflict_score: float
    utilization_balance: float


class SlotPlan(CamelModel):
    """Common result contract of every slot assignment strategy."""
    strategy: AssignmentStrategy
    assignments: list[SlotAssignment]
    metrics: AssignmentMetrics
    recommendations: list[str] = Field(default_factory=list)


class ManualSwap(CamelModel):
    """An operator filament change: unload fromColor, load toColor into slot."""
    slot: int
    unit: int = 1
    from_color: str
    to_color: str
    at_layer: int
    z_height: float
    reason: str
    pause_start_layer: Optional[int] = None
    pause_end_layer: Optional[int] = None
    timing_window: Optional[TimingWindow] = None
    confidence: Optional[TimingConfidence] = None

    @property
    def swap_id(self) -> str:
        return f"{self.from_color}-{self.to_color}-{self.at_layer}"


class OptimizationResult(CamelModel):
    total_colors: int
    required_slots: int
    total_slots: int
    strategy: AssignmentStrategy
    slot_assignments: list[SlotAssignment]
    manual_swaps: list[ManualSwap]
    estimated_time_saved: int = Field(..., ge=0, description="Seconds")
    can_share_slots: list[ColorPair]
    metrics: Optional[AssignmentMetrics] = None
    recommendations: list[str] = Field(default_factory=list)
