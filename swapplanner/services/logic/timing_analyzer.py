import logging
from typing import Optional

from swapplanner.core.exceptions import UnknownColorError
from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.optimization import ManualSwap
from swapplanner.schemas.profile import ColorUsageProfile
from swapplanner.schemas.timing import (
    CandidateLayer,
    ConstraintKindEnum,
    ConstraintSeverityEnum,
    RiskEnum,
    SwapWindow,
    SwapWindowEstimate,
    TimingAlternative,
    TimingAnalysis,
    TimingConfidence,
    TimingConstraint,
    TimingOptions,
)
from swapplanner.utils.color_math import rgb_distance, try_hex_to_rgb

logger = logging.getLogger("TimingAnalyzer")

# RGB distance above which a swap counts as a visible color change
SIGNIFICANT_CHANGE_DISTANCE = 50.0


def flexibility_score(earliest: int, latest: int) -> float:
    return float(min(100, max(0, (latest - earliest) * 10)))


def calculate_swap_window(
    from_color: str,
    to_color: str,
    profile: ColorUsageProfile,
    buffer_layers: int = 2,
) -> SwapWindowEstimate:
    """
    Raw swap window between two colors: after the last use of from_color plus
    the buffer, before the first use of to_color minus the buffer.
    """
    try:
        src = profile.require_color(from_color)
        dst = profile.require_color(to_color)
    except UnknownColorError as e:
        logger.warning(f"Cannot compute swap window {from_color} -> {to_color}: {e}")
        return SwapWindowEstimate(
            earliest=0, latest=0, flexibility=0.0, reasoning=["Color not found"],
            from_color=from_color, to_color=to_color,
        )

    earliest = max(0, src.last_layer + buffer_layers)
    latest = max(earliest, dst.first_layer - buffer_layers)
    window_size = latest - earliest + 1

    reasoning = [
        f"Earliest after {from_color} usage ends (layer {src.last_layer})",
        f"Latest before {to_color} usage begins (layer {dst.first_layer})",
    ]
    if window_size <= 1:
        reasoning.append("Very tight timing window - consider adjacent swap")
    elif window_size <= 3:
        reasoning.append("Limited timing flexibility")
    else:
        reasoning.append("Good timing flexibility available")

    return SwapWindowEstimate(
        earliest=earliest,
        latest=latest,
        flexibility=flexibility_score(earliest, latest),
        reasoning=reasoning,
        from_color=from_color,
        to_color=to_color,
    )


def _layer_complexity(layer: int, profile: ColorUsageProfile) -> int:
    return len(profile.colors_in_layer(layer))


def _nearby_complexity(layer: int, profile: ColorUsageProfile, span: int = 3) -> float:
    counts = [
        _layer_complexity(l, profile)
        for l in range(layer - span, layer + span + 1)
        if 0 <= l < profile.total_layers
    ]
    return sum(counts) / len(counts) if counts else 0.0


def suggest_timing_alternatives(
    nominal: int,
    window: tuple[int, int],
    profile: ColorUsageProfile,
    preferences: Optional[PlannerConfig] = None,
) -> list[CandidateLayer]:
    """
    Scores every layer of the window except the nominal one.

    Args:
        nominal: The scheduled swap layer.
        window: (earliest, latest), inclusive.
        profile: Used to judge how busy each candidate layer is.
        preferences: preferEarlySwaps / avoidComplexLayers / minimizeInterruptions
            and the number of alternatives to keep.

    Returns:
        list[CandidateLayer]: Best first; equal scores keep layer order.
    """
    prefs = preferences or PlannerConfig()
    earliest, latest = window
    candidates = []

    for layer in range(earliest, latest + 1):
        if layer == nominal:
            continue

        score = 50.0
        benefits: list[str] = []
        drawbacks: list[str] = []

        if prefs.prefer_early_swaps and layer < nominal:
            score += 15
            benefits.append("Earlier timing reduces material waste")
        elif not prefs.prefer_early_swaps and layer > nominal:
            score += 10
            benefits.append("Later timing allows for better preparation")

        if prefs.avoid_complex_layers:
            active = _layer_complexity(layer, profile)
            if active <= 1:
                score += 20
                benefits.append("Simple layer with minimal tool changes")
            elif active > 3:
                score -= 15
                drawbacks.append("Complex layer with multiple colors")

        if prefs.minimize_interruptions:
            nearby = _nearby_complexity(layer, profile)
            if nearby < 2:
                score += 10
                benefits.append("Low complexity area for easier swapping")
            elif nearby > 4:
                score -= 10
                drawbacks.append("High complexity area may complicate swap")

        distance = abs(layer - nominal)
        if distance <= 1:
            score += 5
            benefits.append("Close to original timing recommendation")
        elif distance > 5:
            score -= distance
            drawbacks.append("Significantly different from original recommendation")

        candidates.append(CandidateLayer(
            layer=layer,
            score=max(0.0, min(100.0, score)),
            benefits=benefits,
            drawbacks=drawbacks,
        ))

    candidates.sort(key=lambda c: (-c.score, c.layer))
    return candidates[: prefs.max_timing_alternatives]


def _risk(layer: int, nominal: int) -> RiskEnum:
    if layer < nominal - 3:
        return RiskEnum.MEDIUM
    if layer > nominal + 3:
        return RiskEnum.HIGH
    return RiskEnum.LOW


def _is_significant_change(swap: ManualSwap, profile: ColorUsageProfile) -> bool:
    src = profile.get_color(swap.from_color)
    dst = profile.get_color(swap.to_color)
    rgb_from = try_hex_to_rgb(src.hex_value) if src else None
    rgb_to = try_hex_to_rgb(dst.hex_value) if dst else None
    if rgb_from is None or rgb_to is None:
        # without color data every change is treated as visible
        return True
    return rgb_distance(rgb_from, rgb_to) > SIGNIFICANT_CHANGE_DISTANCE


def _timing_constraints(swap: ManualSwap, profile: ColorUsageProfile, config: PlannerConfig) -> list[TimingConstraint]:
    constraints = [
        TimingConstraint(
            type=ConstraintKindEnum.COLOR_USAGE,
            description=f"Must swap after {swap.from_color} usage ends",
            severity=ConstraintSeverityEnum.HARD,
            impact=90,
        ),
        TimingConstraint(
            type=ConstraintKindEnum.COLOR_USAGE,
            description=f"Must swap before {swap.to_color} usage begins",
            severity=ConstraintSeverityEnum.HARD,
            impact=90,
        ),
    ]
    if config.buffer_layers > 0:
        constraints.append(TimingConstraint(
            type=ConstraintKindEnum.BUFFER_ZONE,
            description=f"{config.buffer_layers} layer buffer for material settling",
            severity=ConstraintSeverityEnum.SOFT,
            impact=50,
        ))
    if _is_significant_change(swap, profile):
        constraints.append(TimingConstraint(
            type=ConstraintKindEnum.MATERIAL_CHANGE,
            description="Significant color change requires careful timing",
            severity=ConstraintSeverityEnum.SOFT,
            impact=30,
        ))
    return constraints


def analyze_individual_swap_timing(
    swap: ManualSwap,
    profile: ColorUsageProfile,
    config: PlannerConfig,
) -> TimingAnalysis:
    sid = swap.swap_id
    logger.debug(f"Analyzing timing for swap: {sid}")

    raw = calculate_swap_window(swap.from_color, swap.to_color, profile, config.buffer_layers)
    notes = []
    earliest, latest = raw.earliest, raw.latest
    if not earliest <= swap.at_layer <= latest:
        # the buffer is soft; the scheduled layer itself must stay inside the window
        earliest = min(earliest, swap.at_layer)
        latest = max(latest, swap.at_layer)
        notes.append(f"Buffer of {config.buffer_layers} layers relaxed to include layer {swap.at_layer}")

    constraints = _timing_constraints(swap, profile, config)
    flexibility = flexibility_score(earliest, latest)

    candidates = suggest_timing_alternatives(swap.at_layer, (earliest, latest), profile, config)
    alternatives = [
        TimingAlternative(
            layer=c.layer,
            score=c.score,
            tradeoffs=c.benefits + c.drawbacks,
            risk=_risk(c.layer, swap.at_layer),
        )
        for c in candidates
    ]

    confidence = TimingConfidence(
        timing=round(min(100, 60 + flexibility * 0.4)),
        necessity=round(sum(c.impact for c in constraints) / len(constraints)),
        user_control=min(100, 50 + len(alternatives) * 10),
    )

    src = profile.get_color(swap.from_color)
    dst = profile.get_color(swap.to_color)
    adjacent_only = bool(src and dst and dst.first_layer - src.last_layer <= 3)

    return TimingAnalysis(
        swap_id=sid,
        recommended_layer=swap.at_layer,
        timing_options=TimingOptions(
            earliest=earliest,
            latest=latest,
            optimal=swap.at_layer,
            adjacent_only=adjacent_only,
            buffer_layers=config.buffer_layers,
        ),
        swap_window=SwapWindow(
            start_layer=earliest,
            end_layer=latest,
            flexibility_score=flexibility,
            constraints=[c.description for c in constraints] + notes,
        ),
        confidence=confidence,
        alternatives=alternatives,
        constraints=constraints,
    )


def _optimize_global_timing(analyses: list[TimingAnalysis]) -> None:
    """Swaps scheduled within one layer of another swap lose flexibility."""
    for i, analysis in enumerate(analyses):
        crowded = any(
            j != i and abs(other.recommended_layer - analysis.recommended_layer) <= 1
            for j, other in enumerate(analyses)
        )
        if crowded:
            window = analysis.swap_window
            window.flexibility_score = max(0.0, window.flexibility_score - 20)
            window.constraints.append("Timing conflicts with other swaps")


def analyze_swap_timing(
    profile: ColorUsageProfile,
    swaps: list[ManualSwap],
    config: PlannerConfig,
) -> dict[str, TimingAnalysis]:
    """Timing analysis for every swap, keyed '<from>-<to>-<atLayer>'."""
    logger.info(f"Analyzing timing flexibility for {len(swaps)} manual swaps")
    analyses = [analyze_individual_swap_timing(swap, profile, config) for swap in swaps]
    _optimize_global_timing(analyses)
    logger.info(f"Timing analysis complete for {len(analyses)} swaps")
    return {analysis.swap_id: analysis for analysis in analyses}


def attach_timing_windows(swaps: list[ManualSwap], analyses: dict[str, TimingAnalysis]) -> list[ManualSwap]:
    """Returns copies of the swaps carrying their timing window and confidence."""
    result = []
    for swap in swaps:
        analysis = analyses.get(swap.swap_id)
        if analysis is None:
            result.append(swap)
            continue
        window = analysis.to_window()
        result.append(swap.model_copy(update={
            "timing_window": window,
            "confidence": analysis.confidence,
            "pause_start_layer": window.earliest,
            "pause_end_layer": window.latest,
        }))
    return result
