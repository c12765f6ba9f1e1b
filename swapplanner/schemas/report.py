from typing import Optional

from swapplanner.schemas.base import CamelModel
from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.constraints import ConstraintValidationResult
from swapplanner.schemas.optimization import OptimizationResult
from swapplanner.schemas.overlap import OverlapAnalysis
from swapplanner.schemas.profile import ColorUsageProfile
from swapplanner.schemas.substitution import SubstitutionAnalysis
from swapplanner.schemas.timing import TimingAnalysis


class PlanRequest(CamelModel):
    """Request body of every planner endpoint. Missing config means server defaults."""
    profile: ColorUsageProfile
    config: Optional[PlannerConfig] = None


class PlanningReport(CamelModel):
    """Everything one planning run produces, bundled for export."""
    file_name: Optional[str] = None
    config: PlannerConfig
    optimization: OptimizationResult
    timing: dict[str, TimingAnalysis]
    constraints: ConstraintValidationResult
    substitutions: SubstitutionAnalysis
    overlaps: OverlapAnalysis
