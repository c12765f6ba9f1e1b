from .base import CamelModel
from .config import AssignmentStrategy, PlannerConfig
from .profile import Color, ToolChange, ColorUsageProfile
from .overlap import ColorPair, Overlap, OverlapAnalysis, SeverityEnum
from .timing import TimingAnalysis, TimingWindow, TimingConfidence, TimingConstraint, TimingAlternative
from .optimization import SlotAssignment, SlotPlan, AssignmentMetrics, ManualSwap, OptimizationResult
from .constraints import (
    ConstraintValidationResult,
    ConstraintViolationRange,
    LayerConstraintViolation,
    ColorConsolidationSuggestion,
    SuggestionTypeEnum,
    VisualImpactEnum,
)
from .substitution import ColorSubstitution, SubstitutionAnalysis, SwapImpact
from .report import PlanRequest, PlanningReport

__all__ = [
    "CamelModel",
    "AssignmentStrategy",
    "PlannerConfig",
    "Color",
    "ToolChange",
    "ColorUsageProfile",
    "ColorPair",
    "Overlap",
    "OverlapAnalysis",
    "SeverityEnum",
    "TimingAnalysis",
    "TimingWindow",
    "TimingConfidence",
    "TimingConstraint",
    "TimingAlternative",
    "SlotAssignment",
    "SlotPlan",
    "AssignmentMetrics",
    "ManualSwap",
    "OptimizationResult",
    "ConstraintValidationResult",
    "ConstraintViolationRange",
    "LayerConstraintViolation",
    "ColorConsolidationSuggestion",
    "SuggestionTypeEnum",
    "VisualImpactEnum",
    "ColorSubstitution",
    "SubstitutionAnalysis",
    "SwapImpact",
    "PlanRequest",
    "PlanningReport",
]
