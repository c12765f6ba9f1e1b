import logging
from typing import Callable

import numpy as np

from swapplanner.schemas.config import AssignmentStrategy, PlannerConfig
from swapplanner.schemas.optimization import AssignmentMetrics, SlotAssignment, SlotPlan
from swapplanner.schemas.profile import Color, ColorUsageProfile
from swapplanner.services.logic.overlap_analyzer import ColorOverlapAnalyzer, CoOccurrenceMatrix

logger = logging.getLogger("SlotAssigner")

# A group is {"colors": [Color, ...], "score": float}
Group = dict
StrategyFn = Callable[[ColorUsageProfile, list[Color], PlannerConfig], list[Group]]


# --- Exact interval partition ---

def _interval_partition(profile: ColorUsageProfile, colors: list[Color], config: PlannerConfig) -> list[Group]:
    """
    Greedy clique cover of the interval compatibility graph.
    Each round grows one clique per unassigned seed and keeps the largest;
    the earliest seed wins ties.
    """
    remaining = list(colors)
    groups: list[Group] = []

    while remaining and len(groups) < config.capacity:
        best: list[Color] = []
        for seed in remaining:
            clique = [seed]
            for candidate in remaining:
                if len(clique) >= config.max_colors_per_slot:
                    break
                if candidate.id == seed.id:
                    continue
                if not any(ColorOverlapAnalyzer.intervals_overlap(candidate, m) for m in clique):
                    clique.append(candidate)
            if len(clique) > len(best):
                best = clique

        groups.append({"colors": best, "score": float(len(best))})
        taken = {c.id for c in best}
        remaining = [c for c in remaining if c.id not in taken]

    return groups


# --- Affinity clustering ---

def _proximity_bonus(a: Color, b: Color) -> float:
    """(4 - d) * 5 for every layer pair at distance d <= 3, capped at 50."""
    score = 0
    for layer in a.layers_used:
        for d in range(0, 4):
            hits = (layer + d in b.layers_used) + (d > 0 and layer - d in b.layers_used)
            score += hits * (4 - d) * 5
        if score >= 50:
            return 50.0
    return float(min(score, 50))


def _frequency_bonus(a: Color, b: Color) -> float:
    freq_diff = abs(a.layer_count - b.layer_count)
    util_diff = abs(a.usage_percentage - b.usage_percentage)
    return max(0.0, 30 - freq_diff - util_diff * 0.5)


def color_affinity(a: Color, b: Color, matrix: CoOccurrenceMatrix, config: PlannerConfig) -> float:
    score = 0.0
    if config.consider_proximity:
        score += _proximity_bonus(a, b)
    if config.prioritize_frequency:
        score += _frequency_bonus(a, b)
    score += min(matrix.get(a.id, {}).get(b.id, 0) * 10, 40)
    return score


def _affinity_clustering(profile: ColorUsageProfile, colors: list[Color], config: PlannerConfig) -> list[Group]:
    matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)
    affinity = {
        a.id: {b.id: color_affinity(a, b, matrix, config) for b in colors if b.id != a.id}
        for a in colors
    }

    assigned: set[str] = set()
    groups: list[Group] = []

    while len(assigned) < len(colors) and len(groups) < config.capacity:
        best_group: list[Color] = []
        best_score = 0.0

        for seed in colors:
            if seed.id in assigned:
                continue
            group = [seed]
            group_score = 0.0

            while len(group) < config.max_colors_per_slot:
                best_candidate = None
                best_candidate_score = 0.0
                for candidate in colors:
                    if candidate.id in assigned or any(candidate.id == g.id for g in group):
                        continue
                    candidate_score = sum(affinity[g.id][candidate.id] for g in group)
                    if candidate_score > best_candidate_score and candidate_score > config.affinity_threshold:
                        best_candidate = candidate
                        best_candidate_score = candidate_score
                if best_candidate is None:
                    break
                group.append(best_candidate)
                group_score += best_candidate_score

            if group_score > best_score or (group_score == 0 and not best_group):
                best_score = group_score
                best_group = group

        if not best_group:
            break
        groups.append({"colors": best_group, "score": best_score})
        assigned.update(c.id for c in best_group)

    return groups


_STRATEGIES: dict[AssignmentStrategy, StrategyFn] = {
    AssignmentStrategy.INTERVAL: _interval_partition,
    AssignmentStrategy.AFFINITY: _affinity_clustering,
}


# --- Placement of leftovers ---

def _swap_distance(color: Color, member: Color) -> int:
    return min(abs(color.first_layer - member.last_layer), abs(member.first_layer - color.last_layer))


def _worst_case_distance(color: Color, group: Group) -> int:
    return max(_swap_distance(color, m) for m in group["colors"])


def _insert_leftovers(groups: list[Group], leftovers: list[Color], config: PlannerConfig) -> None:
    """
    Every used color must end up in exactly one slot.
    Free slots are opened first; after that, shared slots with room are preferred
    over permanent ones.
    """
    for color in leftovers:
        if len(groups) < config.capacity:
            groups.append({"colors": [color], "score": 0.0})
            continue

        with_room = [g for g in groups if len(g["colors"]) < config.max_colors_per_slot]
        shared = [g for g in with_room if len(g["colors"]) > 1]
        candidates = shared or with_room
        if candidates:
            target = min(candidates, key=lambda g: _worst_case_distance(color, g))
        else:
            target = min(groups, key=lambda g: len(g["colors"]))
            logger.warning(
                f"All {len(groups)} slots hold {config.max_colors_per_slot} colors; "
                f"overloading slot with {color.id}"
            )
        target["colors"].append(color)
        target.setdefault("inserted", []).append(color.id)
        logger.debug(f"Inserted leftover color {color.id} into a slot of {len(target['colors'])} colors")


# --- Metrics ---

def _layer_sets(profile: ColorUsageProfile) -> list[set[str]]:
    layers = set(profile.layer_color_map)
    for color in profile.colors:
        layers.update(color.layers_used)
    return [set(profile.colors_in_layer(layer)) for layer in sorted(layers)]


def _slot_conflicts(color_ids: set[str], layer_sets: list[set[str]]) -> int:
    return sum(max(0, len(color_ids & active) - 1) for active in layer_sets)


def slot_efficiency(conflicts: int, utilization: float) -> float:
    return max(0.0, min(100.0, 80 - conflicts * 5 + (utilization - 50) * 0.4))


def _slot_reasoning(group: Group, conflicts: int, strategy: AssignmentStrategy) -> list[str]:
    colors = group["colors"]
    reasoning = []
    if len(colors) == 1:
        reasoning.append("Single color assignment")
    elif strategy == AssignmentStrategy.AFFINITY:
        if group["score"] > 100:
            reasoning.append("High affinity color group")
        elif group["score"] > 50:
            reasoning.append("Moderate compatibility group")
        else:
            reasoning.append("Basic grouping")
    else:
        reasoning.append(f"Shared slot: {', '.join(c.id for c in colors)} have non-overlapping usage")

    for color_id in group.get("inserted", []):
        reasoning.append(f"{color_id} added to reduce worst-case swap distance")
    if conflicts > 0:
        reasoning.append(f"{conflicts} layer conflict(s): colors in this slot are needed on the same layer")
    return reasoning


def calculate_metrics(assignments: list[SlotAssignment]) -> AssignmentMetrics:
    if not assignments:
        return AssignmentMetrics(
            overall_efficiency=0.0,
            waste_reduction=0.0,
            conflict_score=100.0,
            utilization_balance=100.0,
        )

    efficiencies = np.array([a.efficiency for a in assignments])
    utilizations = np.array([a.utilization for a in assignments])
    total_conflicts = sum(a.conflicts for a in assignments)

    overall = float(efficiencies.mean())
    return AssignmentMetrics(
        overall_efficiency=round(overall, 2),
        waste_reduction=round(min(30.0, overall * 0.3), 2),
        conflict_score=float(max(0, 100 - total_conflicts * 10)),
        utilization_balance=round(max(0.0, 100 - float(utilizations.std())), 2),
    )


def generate_recommendations(assignments: list[SlotAssignment], metrics: AssignmentMetrics) -> list[str]:
    if not assignments:
        return []

    recommendations = []
    if metrics.overall_efficiency < 70:
        recommendations.append("Consider reassigning colors to improve slot efficiency")
    if metrics.conflict_score < 60:
        recommendations.append("Reduce color conflicts by separating frequently co-occurring colors")
    if metrics.utilization_balance < 50:
        recommendations.append("Balance color usage across slots for better utilization")

    low_efficiency = [str(a.slot) for a in assignments if a.efficiency < 60]
    if low_efficiency:
        recommendations.append(f"Review slot assignments for slots: {', '.join(low_efficiency)}")
    return recommendations


# --- Entry point ---

def assign_slots(profile: ColorUsageProfile, config: PlannerConfig) -> SlotPlan:
    """
    Packs the used colors of a profile into at most config.capacity slots.

    Args:
        profile: The color usage of the print.
        config: Planner configuration (capacity, strategy, per-slot limits).

    Returns:
        SlotPlan: Assignments ordered by slot number, with plan-level metrics.
    """
    used = profile.used_colors()
    logger.info(
        f"Assigning {len(used)} colors to {config.capacity} slots (strategy: {config.strategy.value})"
    )

    if len(used) <= config.capacity:
        groups = [{"colors": [color], "score": 0.0} for color in used]
    else:
        groups = _STRATEGIES[config.strategy](profile, used, config)
        placed = {c.id for g in groups for c in g["colors"]}
        _insert_leftovers(groups, [c for c in used if c.id not in placed], config)

    order = profile.declaration_order
    layer_sets = _layer_sets(profile)
    assignments = []
    for index, group in enumerate(groups):
        colors = sorted(group["colors"], key=lambda c: (c.first_layer, order[c.id]))
        ids = [c.id for c in colors]
        utilization = min(100.0, sum(c.usage_percentage for c in colors))
        conflicts = _slot_conflicts(set(ids), layer_sets)
        unit = index // config.slots_per_unit + 1

        assignments.append(SlotAssignment(
            slot=index + 1,
            unit=unit,
            slot_id=f"{unit}-{index % config.slots_per_unit + 1}",
            colors=ids,
            is_permanent=len(ids) == 1,
            utilization=round(utilization, 2),
            conflicts=conflicts,
            efficiency=round(slot_efficiency(conflicts, utilization), 2),
            reasoning=_slot_reasoning(group, conflicts, config.strategy),
        ))

    metrics = calculate_metrics(assignments)
    recommendations = generate_recommendations(assignments, metrics)

    logger.info(
        f"Slot assignment complete: {len(assignments)} slots, "
        f"{sum(1 for a in assignments if not a.is_permanent)} shared, "
        f"{metrics.overall_efficiency:.1f}% efficiency"
    )
    return SlotPlan(
        strategy=config.strategy,
        assignments=assignments,
        metrics=metrics,
        recommendations=recommendations,
    )
