import logging

from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.profile import Color, ColorUsageProfile
from swapplanner.schemas.substitution import (
    ColorSubstitution,
    Feasibility,
    OverallImpact,
    PriorityEnum,
    QualityImpactEnum,
    QualityRiskEnum,
    SimilarityScore,
    SubstitutionAnalysis,
    SubstitutionImpact,
    SubstitutionRecommendation,
    SubstitutionRecommendations,
    SwapImpact,
)
from swapplanner.utils.color_math import MAX_RGB_DISTANCE, calculate_delta_e, rgb_distance, try_hex_to_rgb

logger = logging.getLogger("SubstitutionAnalyzer")

MIN_FEASIBILITY = 60

IMPLEMENTATION_GUIDE = [
    "Start with highest confidence substitutions",
    "Test visual appearance with small samples first",
    "Apply substitutions one at a time to verify impact",
    "Monitor print quality and adjust if necessary",
]


def evaluate_color_similarity(color1: Color, color2: Color) -> SimilarityScore:
    """
    Symmetric similarity of two colors.
    Colors without a usable hex value are treated as maximally different.
    """
    rgb1 = try_hex_to_rgb(color1.hex_value)
    rgb2 = try_hex_to_rgb(color2.hex_value)
    if rgb1 is None or rgb2 is None:
        return SimilarityScore(visual_distance=100, perceptual_difference=100, rgb_distance=100)

    normalized_rgb = rgb_distance(rgb1, rgb2) / MAX_RGB_DISTANCE * 100
    delta_e = calculate_delta_e(color1.hex_value, color2.hex_value)
    visual = normalized_rgb * 0.6 + min(delta_e, 100) * 0.4

    return SimilarityScore(
        visual_distance=round(visual),
        perceptual_difference=round(delta_e),
        rgb_distance=round(normalized_rgb),
    )


def _simulated_swap_count(profile: ColorUsageProfile, original: str, substitute: str) -> int:
    """Tool changes left once original is printed with substitute; self-changes vanish."""
    remaining = 0
    for change in profile.known_tool_changes:
        src = substitute if change.from_tool == original else change.from_tool
        dst = substitute if change.to_tool == original else change.to_tool
        if src != dst:
            remaining += 1
    return remaining


def calculate_swap_impact(original: str, substitute: str, profile: ColorUsageProfile) -> SwapImpact:
    logger.debug(f"Calculating impact of swapping {original} with {substitute}")
    original_color = profile.get_color(original)
    if original_color is None or profile.get_color(substitute) is None:
        return SwapImpact(swaps_reduced=0, percentage_reduction=0.0, affected_layers=[], new_conflicts=0)

    total = len(profile.known_tool_changes)
    swaps_reduced = max(0, total - _simulated_swap_count(profile, original, substitute))
    affected_layers = sorted(original_color.layers_used)
    new_conflicts = sum(1 for layer in affected_layers if substitute in profile.colors_in_layer(layer))

    return SwapImpact(
        swaps_reduced=swaps_reduced,
        percentage_reduction=round(swaps_reduced / total * 100, 2) if total else 0.0,
        affected_layers=affected_layers,
        new_conflicts=new_conflicts,
    )


def quality_impact(visual_distance: float) -> QualityImpactEnum:
    if visual_distance <= 5:
        return QualityImpactEnum.MINIMAL
    if visual_distance <= 15:
        return QualityImpactEnum.LOW
    if visual_distance <= 25:
        return QualityImpactEnum.MODERATE
    return QualityImpactEnum.HIGH


def calculate_feasibility(
    original: Color,
    substitute: Color,
    impact: SwapImpact,
    similarity: SimilarityScore,
) -> Feasibility:
    score = 100.0
    considerations = []
    warnings = []

    score -= similarity.visual_distance * 1.5
    score += impact.swaps_reduced * 10

    if abs(original.usage_percentage - substitute.usage_percentage) > 20:
        score -= 15
        considerations.append("Significant usage frequency difference")

    if impact.new_conflicts > 0:
        score -= impact.new_conflicts * 20
        warnings.append(f"Introduces {impact.new_conflicts} new conflicts")

    if similarity.visual_distance <= 10:
        score += 20
        considerations.append("Highly similar colors")

    return Feasibility(score=max(0.0, min(100.0, score)), considerations=considerations, warnings=warnings)


def _recommend(impact: SwapImpact, feasibility: Feasibility) -> SubstitutionRecommendation:
    confidence = feasibility.score
    reasoning = []
    if impact.swaps_reduced > 0:
        reasoning.append(
            f"Reduces {impact.swaps_reduced} manual swaps ({impact.percentage_reduction:.1f}% improvement)"
        )
    if impact.swaps_reduced >= 3:
        confidence += 10
        reasoning.append("Significant swap reduction potential")

    if confidence >= 80 and impact.swaps_reduced >= 2:
        priority = PriorityEnum.HIGH
    elif confidence >= 65 and impact.swaps_reduced >= 1:
        priority = PriorityEnum.MEDIUM
    else:
        priority = PriorityEnum.LOW

    return SubstitutionRecommendation(confidence=min(100.0, confidence), reasoning=reasoning, priority=priority)


def _overall_impact(substitutions: list[ColorSubstitution], profile: ColorUsageProfile) -> OverallImpact:
    total_reduced = sum(s.impact.swaps_reduced for s in substitutions)
    total_swaps = len(profile.known_tool_changes)
    count = len(substitutions)

    risky = sum(
        1 for s in substitutions
        if s.impact.quality_impact in (QualityImpactEnum.HIGH, QualityImpactEnum.MODERATE)
    )
    if risky > count * 0.5:
        risk = QualityRiskEnum.HIGH
    elif risky > count * 0.25:
        risk = QualityRiskEnum.MEDIUM
    else:
        risk = QualityRiskEnum.LOW

    return OverallImpact(
        total_swaps_reduced=total_reduced,
        percentage_improvement=round(total_reduced / total_swaps * 100, 2) if total_swaps else 0.0,
        feasibility_score=round(sum(s.feasibility.score for s in substitutions) / count, 2) if count else 0.0,
        quality_risk=risk,
    )


def _recommendations(substitutions: list[ColorSubstitution], overall: OverallImpact) -> SubstitutionRecommendations:
    best = [s for s in substitutions if s.recommendation.priority == PriorityEnum.HIGH][:3]
    strategies = []
    if not best:
        strategies.append("Consider manual slot optimization instead of color substitution")
        strategies.append("Evaluate print design for color consolidation opportunities")
    if overall.quality_risk == QualityRiskEnum.HIGH:
        strategies.append("Review color substitutions for visual impact on final print")

    return SubstitutionRecommendations(
        best_substitutions=best,
        alternative_strategies=strategies,
        implementation_guide=list(IMPLEMENTATION_GUIDE),
    )


def analyze_substitution_opportunities(profile: ColorUsageProfile, config: PlannerConfig) -> SubstitutionAnalysis:
    """
    Searches ordered color pairs for near-duplicates whose merge removes tool changes.

    Returns:
        SubstitutionAnalysis: Viable substitutions ranked by swaps saved
        (or by confidence when prioritize_swap_reduction is off).
    """
    logger.info("Starting color substitution analysis")
    candidates = [c for c in profile.colors if try_hex_to_rgb(c.hex_value) is not None]
    skipped = len(profile.colors) - len(candidates)
    if skipped:
        logger.debug(f"Skipping {skipped} colors without a usable hex value")

    substitutions = []
    for original in candidates:
        for substitute in candidates:
            if original.id == substitute.id:
                continue
            similarity = evaluate_color_similarity(original, substitute)
            if similarity.visual_distance > config.max_visual_distance:
                continue

            impact = calculate_swap_impact(original.id, substitute.id, profile)
            feasibility = calculate_feasibility(original, substitute, impact, similarity)
            if feasibility.score < MIN_FEASIBILITY or impact.swaps_reduced <= 0:
                continue

            substitutions.append(ColorSubstitution(
                original_color=original.id,
                substitute_color=substitute.id,
                similarity=similarity,
                impact=SubstitutionImpact(
                    swaps_reduced=impact.swaps_reduced,
                    percentage_reduction=impact.percentage_reduction,
                    affected_layers=impact.affected_layers,
                    quality_impact=quality_impact(similarity.visual_distance),
                ),
                feasibility=feasibility,
                recommendation=_recommend(impact, feasibility),
            ))

    if config.prioritize_swap_reduction:
        substitutions.sort(key=lambda s: -s.impact.swaps_reduced)
    else:
        substitutions.sort(key=lambda s: -s.recommendation.confidence)

    overall = _overall_impact(substitutions, profile)
    logger.info(f"Analysis complete: {len(substitutions)} viable substitutions found")
    return SubstitutionAnalysis(
        substitutions=substitutions,
        overall_impact=overall,
        recommendations=_recommendations(substitutions, overall),
    )
