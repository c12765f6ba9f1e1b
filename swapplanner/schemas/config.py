from enum import Enum

from pydantic import ConfigDict, Field

from swapplanner.schemas.base import CamelModel


class AssignmentStrategy(str, Enum):
    INTERVAL = "interval"
    AFFINITY = "affinity"


class PlannerConfig(CamelModel):
    """
    Tunables of a planning run. Every heuristic threshold lives here so that a
    run is a pure function of (profile, config).
    """

    model_config = ConfigDict(frozen=True)

    # Slot packing
    capacity: int = Field(4, ge=1, description="Pooled number of material-system slots (K)")
    strategy: AssignmentStrategy = Field(AssignmentStrategy.INTERVAL)
    slots_per_unit: int = Field(4, ge=1, description="Slots per physical unit, used for slot labels only")
    max_colors_per_slot: int = Field(4, ge=1)
    affinity_threshold: float = Field(20.0, ge=0)
    consider_proximity: bool = True
    prioritize_frequency: bool = True

    # Swap timing
    buffer_layers: int = Field(2, ge=0)
    prefer_early_swaps: bool = False
    avoid_complex_layers: bool = True
    minimize_interruptions: bool = False
    max_timing_alternatives: int = Field(5, ge=0)

    # Substitution search
    max_visual_distance: float = Field(25.0, ge=0, le=100)
    prioritize_swap_reduction: bool = True

    # Reporting
    seconds_per_swap: int = Field(30, ge=0)
    max_suggestions_per_range: int = Field(5, ge=0)
