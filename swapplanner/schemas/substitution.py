from enum import Enum

from pydantic import Field

from swapplanner.schemas.base import CamelModel


class QualityImpactEnum(str, Enum):
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class PriorityEnum(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QualityRiskEnum(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SimilarityScore(CamelModel):
    visual_distance: float = Field(..., ge=0, description="0-100, lower is more similar")
    perceptual_difference: float = Field(..., ge=0, description="Delta E (CIE76)")
    rgb_distance: float = Field(..., ge=0, description="Normalized RGB distance, 0-100")


class SwapImpact(CamelModel):
    swaps_reduced: int
    percentage_reduction: float
    affected_layers: list[int]
    new_conflicts: int


class SubstitutionImpact(CamelModel):
    swaps_reduced: int
    percentage_reduction: float
    affected_layers: list[int]
    quality_impact: QualityImpactEnum


class Feasibility(CamelModel):
    score: float = Field(..., ge=0, le=100)
    considerations: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SubstitutionRecommendation(CamelModel):
    confidence: float = Field(..., ge=0, le=100)
    reasoning: list[str] = Field(default_factory=list)
    priority: PriorityEnum


class ColorSubstitution(CamelModel):
    original_color: str
    substitute_color: str
    similarity: SimilarityScore
    impact: SubstitutionImpact
    feasibility: Feasibility
    recommendation: SubstitutionRecommendation


class OverallImpact(CamelModel):
    total_swaps_reduced: int
    percentage_improvement: float
    feasibility_score: float
    quality_risk: QualityRiskEnum


class SubstitutionRecommendations(CamelModel):
    best_substitutions: list[ColorSubstitution]
    alternative_strategies: list[str]
    implementation_guide: list[str]


class SubstitutionAnalysis(CamelModel):
    substitutions: list[ColorSubstitution]
    overall_impact: OverallImpact
    recommendations: SubstitutionRecommendations
