import logging
from itertools import combinations
from typing import Optional

from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.constraints import (
    VISUAL_IMPACT_ORDER,
    ColorConsolidationSuggestion,
    ColorSimilarity,
    ConstraintSummary,
    ConstraintValidationResult,
    ConstraintViolationRange,
    LayerConstraintViolation,
    SuggestionImpact,
    SuggestionTypeEnum,
    ViolationSeverityEnum,
    ViolationTypeEnum,
    VisualImpactEnum,
)
from swapplanner.schemas.profile import Color, ColorUsageProfile
from swapplanner.utils.color_math import hue_difference, rgb_distance, rgb_to_hsl, try_hex_to_rgb

logger = logging.getLogger(__name__)

LOW_USAGE_PCT = 5.0
DETAIL_RANGE_PCT = 30.0
DETAIL_OVERALL_PCT = 10.0
MERGE_RGB_DISTANCE = 150.0
SIMILAR_RGB_DISTANCE = 100.0


def _active_known_colors(profile: ColorUsageProfile, layer: int, reported: set[str]) -> list[str]:
    active = []
    for color_id in profile.colors_in_layer(layer):
        if profile.get_color(color_id) is None:
            if color_id not in reported:
                logger.warning(f"Layer map references unknown color {color_id}. Ignoring it.")
                reported.add(color_id)
            continue
        active.append(color_id)
    return active


def find_layer_violations(profile: ColorUsageProfile, capacity: int) -> list[LayerConstraintViolation]:
    """Every layer whose simultaneous colors exceed the slot capacity, in layer order."""
    layers = set(range(0, profile.total_layers + 1)) | set(profile.layer_color_map)
    reported: set[str] = set()
    violations = []
    for layer in sorted(layers):
        active = _active_known_colors(profile, layer, reported)
        if len(active) > capacity:
            violations.append(LayerConstraintViolation(
                layer=layer,
                required_colors=len(active),
                available_slots=capacity,
                colors_in_layer=active,
                violation_type=ViolationTypeEnum.IMPOSSIBLE,
                severity=ViolationSeverityEnum.CRITICAL,
            ))
    return violations


def group_violations(violations: list[LayerConstraintViolation], capacity: int) -> list[ConstraintViolationRange]:
    ranges: list[ConstraintViolationRange] = []
    for violation in sorted(violations, key=lambda v: v.layer):
        current = ranges[-1] if ranges else None
        if current is None or violation.layer > current.end_layer + 1:
            ranges.append(ConstraintViolationRange(
                start_layer=violation.layer,
                end_layer=violation.layer,
                max_colors_required=violation.required_colors,
                available_slots=capacity,
                affected_layers=[violation],
            ))
        else:
            current.end_layer = violation.layer
            current.max_colors_required = max(current.max_colors_required, violation.required_colors)
            current.affected_layers.append(violation)
    return ranges


def color_similarity(hex1: str, hex2: str) -> ColorSimilarity:
    rgb1 = try_hex_to_rgb(hex1)
    rgb2 = try_hex_to_rgb(hex2)
    if rgb1 is None or rgb2 is None:
        return ColorSimilarity(rgb_distance=999.0, hsl_similarity=0.0, visually_similar=False)

    distance = rgb_distance(rgb1, rgb2)
    h1, s1, l1 = rgb_to_hsl(*rgb1)
    h2, s2, l2 = rgb_to_hsl(*rgb2)
    hue_diff = hue_difference(h1, h2)
    sat_diff = abs(s1 - s2)
    light_diff = abs(l1 - l2)

    return ColorSimilarity(
        rgb_distance=round(distance, 2),
        hsl_similarity=round(100 - (hue_diff / 180 * 50 + sat_diff * 25 + light_diff * 25), 2),
        visually_similar=distance < SIMILAR_RGB_DISTANCE or _hsl_close(hue_diff, sat_diff, light_diff),
    )


def _hsl_close(hue_diff: float, sat_diff: float, light_diff: float) -> bool:
    return hue_diff < 30 and sat_diff < 0.3 and light_diff < 0.3


def _mergeable(a: Color, b: Color) -> bool:
    rgb1 = try_hex_to_rgb(a.hex_value)
    rgb2 = try_hex_to_rgb(b.hex_value)
    if rgb1 is None or rgb2 is None:
        return False
    if rgb_distance(rgb1, rgb2) >= MERGE_RGB_DISTANCE:
        return False
    h1, s1, l1 = rgb_to_hsl(*rgb1)
    h2, s2, l2 = rgb_to_hsl(*rgb2)
    return _hsl_close(hue_difference(h1, h2), abs(s1 - s2), abs(l1 - l2))


def _usage_in_range(profile: ColorUsageProfile, start: int, end: int) -> dict[str, list[int]]:
    usage: dict[str, list[int]] = {}
    for layer in range(start, end + 1):
        for color_id in profile.colors_in_layer(layer):
            if profile.get_color(color_id) is not None:
                usage.setdefault(color_id, []).append(layer)
    return usage


def generate_suggestions(
    violation_range: ConstraintViolationRange,
    profile: ColorUsageProfile,
    limit: int = 5,
) -> list[ColorConsolidationSuggestion]:
    """Ways to bring a violating range back under capacity, least visible first."""
    start, end = violation_range.start_layer, violation_range.end_layer
    span = end - start + 1
    usage = _usage_in_range(profile, start, end)
    pct = {color_id: len(layers) / span * 100 for color_id, layers in usage.items()}
    suggestions: list[ColorConsolidationSuggestion] = []

    # 1. colors barely used in the range
    order = profile.declaration_order
    for color_id in sorted(usage, key=lambda cid: (pct[cid], order[cid])):
        if pct[color_id] >= LOW_USAGE_PCT:
            continue
        color = profile.require_color(color_id)
        suggestions.append(ColorConsolidationSuggestion(
            type=SuggestionTypeEnum.REMOVE,
            primary_color=color_id,
            reason=f"Minimal usage ({pct[color_id]:.1f}%) in problematic layers",
            impact=SuggestionImpact(
                visual_impact=VisualImpactEnum.MINIMAL if pct[color_id] < 2 else VisualImpactEnum.LOW,
                usage_percentage=round(pct[color_id], 2),
                layers_affected=usage[color_id],
            ),
            instruction=f'Remove or replace "{color.display_name}" from layers {start}-{end} in your slicer',
        ))

    # 2. near-duplicate colors
    range_colors = sorted((profile.require_color(cid) for cid in usage), key=lambda c: order[c.id])
    pairs = [(a, b) for a, b in combinations(range_colors, 2) if _mergeable(a, b)]
    pairs.sort(key=lambda p: color_similarity(p[0].hex_value, p[1].hex_value).rgb_distance)
    for color1, color2 in pairs:
        similarity = color_similarity(color1.hex_value, color2.hex_value)
        if pct[color1.id] < pct[color2.id]:
            less_used, more_used = color1, color2
        else:
            less_used, more_used = color2, color1
        suggestions.append(ColorConsolidationSuggestion(
            type=SuggestionTypeEnum.MERGE,
            primary_color=more_used.id,
            secondary_color=less_used.id,
            reason=f"Colors are visually similar ({similarity.rgb_distance:.0f} RGB distance)",
            impact=SuggestionImpact(
                visual_impact=VisualImpactEnum.MINIMAL if similarity.visually_similar else VisualImpactEnum.LOW,
                usage_percentage=round(min(pct[color1.id], pct[color2.id]), 2),
                layers_affected=[v.layer for v in violation_range.affected_layers],
            ),
            similarity=similarity,
            instruction=f'Replace "{less_used.display_name}" with "{more_used.display_name}" in your slicer',
        ))

    # 3. accent colors
    for color in range_colors:
        if pct[color.id] < DETAIL_RANGE_PCT and color.usage_percentage < DETAIL_OVERALL_PCT:
            suggestions.append(ColorConsolidationSuggestion(
                type=SuggestionTypeEnum.REMOVE,
                primary_color=color.id,
                reason="Used only for small details/accents",
                impact=SuggestionImpact(
                    visual_impact=VisualImpactEnum.LOW,
                    usage_percentage=round(pct[color.id], 2),
                    layers_affected=usage[color.id],
                ),
                instruction=(
                    f'Consider removing accent color "{color.display_name}" or merging with a primary color'
                ),
            ))

    # low-usage and accent removal can both name the same color
    unique: dict[tuple[SuggestionTypeEnum, str, Optional[str]], ColorConsolidationSuggestion] = {}
    for suggestion in suggestions:
        unique.setdefault((suggestion.type, suggestion.primary_color, suggestion.secondary_color), suggestion)

    ranked = sorted(unique.values(), key=lambda s: VISUAL_IMPACT_ORDER[s.impact.visual_impact])
    return ranked[:limit]


def validate_layer_constraints(profile: ColorUsageProfile, config: PlannerConfig) -> ConstraintValidationResult:
    """
    Flags every layer that needs more simultaneous colors than there are slots.
    Such a print cannot be produced with any slot assignment; the suggestions
    describe how to change the model instead.
    """
    capacity = config.capacity
    logger.info(f"Validating layer constraints: {profile.total_layers} layers against {capacity} slots")

    violations = find_layer_violations(profile, capacity)
    ranges = group_violations(violations, capacity)
    for violation_range in ranges:
        violation_range.suggestions = generate_suggestions(
            violation_range, profile, config.max_suggestions_per_range
        )

    worst = None
    for violation_range in ranges:
        if worst is None or violation_range.max_colors_required > worst.max_colors_required:
            worst = violation_range

    if violations:
        logger.warning(f"Found {len(violations)} impossible layers in {len(ranges)} ranges")

    return ConstraintValidationResult(
        is_valid=not violations,
        has_violations=bool(violations),
        violation_ranges=ranges,
        total_impossible_layers=len(violations),
        worst_violation=worst,
        summary=ConstraintSummary(
            impossible_layer_count=len(violations),
            max_colors_required=max((v.required_colors for v in violations), default=0),
            available_slots=capacity,
            suggestions_count=sum(len(r.suggestions) for r in ranges),
        ),
    )
