from enum import Enum
from typing import Optional

from pydantic import Field

from swapplanner.schemas.base import CamelModel


class ViolationTypeEnum(str, Enum):
    IMPOSSIBLE = "impossible"
    SUBOPTIMAL = "suboptimal"


class ViolationSeverityEnum(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class SuggestionTypeEnum(str, Enum):
    MERGE = "merge"
    REMOVE = "remove"
    REPLACE = "replace"


class VisualImpactEnum(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


VISUAL_IMPACT_ORDER = {
    VisualImpactEnum.MINIMAL: 0,
    VisualImpactEnum.LOW: 1,
    VisualImpactEnum.MEDIUM: 2,
    VisualImpactEnum.HIGH: 3,
}


class LayerConstraintViolation(CamelModel):
    layer: int
    required_colors: int
    available_slots: int
    colors_in_layer: list[str]
    violation_type: ViolationTypeEnum = ViolationTypeEnum.IMPOSSIBLE
    severity: ViolationSeverityEnum = ViolationSeverityEnum.CRITICAL


class SuggestionImpact(CamelModel):
    visual_impact: VisualImpactEnum
    usage_percentage: float
    layers_affected: list[int]


class ColorSimilarity(CamelModel):
    rgb_distance: float
    hsl_similarity: float
    visually_similar: bool


class ColorConsolidationSuggestion(CamelModel):
    type: SuggestionTypeEnum
    primary_color: str
    secondary_color: Optional[str] = None
    reason: str
    impact: SuggestionImpact
    similarity: Optional[ColorSimilarity] = None
    instruction: str


class ConstraintViolationRange(CamelModel):
    start_layer: int
    end_layer: int
    max_colors_required: int
    available_slots: int
    affected_layers: list[LayerConstraintViolation]
    suggestions: list[ColorConsolidationSuggestion] = Field(default_factory=list)


class ConstraintSummary(CamelModel):
    impossible_layer_count: int
    max_colors_required: int
    available_slots: int
    suggestions_count: int


class ConstraintValidationResult(CamelModel):
    is_valid: bool
    has_violations: bool
    violation_ranges: list[ConstraintViolationRange]
    total_impossible_layers: int
    worst_violation: Optional[ConstraintViolationRange] = None
    summary: ConstraintSummary
