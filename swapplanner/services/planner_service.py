import logging
from typing import Any, Optional

from swapplanner.core.exceptions import InvalidInputError
from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.constraints import ConstraintValidationResult
from swapplanner.schemas.optimization import OptimizationResult
from swapplanner.schemas.overlap import OverlapAnalysis
from swapplanner.schemas.profile import ColorUsageProfile
from swapplanner.schemas.report import PlanningReport
from swapplanner.schemas.substitution import SubstitutionAnalysis
from swapplanner.schemas.timing import TimingAnalysis
from swapplanner.services.logic.constraint_validator import validate_layer_constraints
from swapplanner.services.logic.overlap_analyzer import ColorOverlapAnalyzer
from swapplanner.services.logic.slot_assigner import assign_slots
from swapplanner.services.logic.substitution_analyzer import analyze_substitution_opportunities
from swapplanner.services.logic.swap_scheduler import generate_swaps
from swapplanner.services.logic.timing_analyzer import analyze_swap_timing, attach_timing_windows

logger = logging.getLogger(__name__)


class PlannerService:
    """
    Runs the planning pipeline for one profile:
    overlap analysis -> slot assignment -> swap schedule -> timing windows.
    Constraint validation and the substitution search are advisory side passes.
    Holds no state between calls besides its configuration.
    """

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()

    @staticmethod
    def _require_profile(profile: Any) -> ColorUsageProfile:
        if isinstance(profile, ColorUsageProfile):
            return profile
        if isinstance(profile, dict):
            # Accept raw interchange JSON; field errors surface as pydantic ValidationError
            return ColorUsageProfile.model_validate(profile)
        raise InvalidInputError(f"expected a color usage profile, got {type(profile).__name__}")

    def optimize(self, profile: Any) -> OptimizationResult:
        optimization, _ = self._optimize_with_timing(self._require_profile(profile))
        return optimization

    def _optimize_with_timing(
        self, profile: ColorUsageProfile
    ) -> tuple[OptimizationResult, dict[str, TimingAnalysis]]:
        logger.info(
            f"Optimizing {profile.file_name or 'profile'}: {len(profile.colors)} colors, "
            f"{profile.total_layers} layers, capacity {self.config.capacity}"
        )

        used = profile.used_colors()
        plan = assign_slots(profile, self.config)
        swaps = generate_swaps(plan.assignments, profile)
        timing = analyze_swap_timing(profile, swaps, self.config)
        swaps = attach_timing_windows(swaps, timing)

        saved = max(0, len(profile.known_tool_changes) - len(swaps)) * self.config.seconds_per_swap
        result = OptimizationResult(
            total_colors=len(used),
            required_slots=min(len(plan.assignments), self.config.capacity),
            total_slots=self.config.capacity,
            strategy=plan.strategy,
            slot_assignments=plan.assignments,
            manual_swaps=swaps,
            estimated_time_saved=saved,
            can_share_slots=ColorOverlapAnalyzer.analyze_color_pairs(used),
            metrics=plan.metrics,
            recommendations=plan.recommendations,
        )
        return result, timing

    def analyze_timing(self, profile: Any) -> dict[str, TimingAnalysis]:
        profile = self._require_profile(profile)
        plan = assign_slots(profile, self.config)
        swaps = generate_swaps(plan.assignments, profile)
        return analyze_swap_timing(profile, swaps, self.config)

    def validate_constraints(self, profile: Any) -> ConstraintValidationResult:
        return validate_layer_constraints(self._require_profile(profile), self.config)

    def find_substitutions(self, profile: Any) -> SubstitutionAnalysis:
        return analyze_substitution_opportunities(self._require_profile(profile), self.config)

    def analyze_overlaps(self, profile: Any) -> OverlapAnalysis:
        return ColorOverlapAnalyzer.analyze(self._require_profile(profile))

    def plan(self, profile: Any) -> PlanningReport:
        """Full report: every pass of the planner over one profile."""
        profile = self._require_profile(profile)
        optimization, timing = self._optimize_with_timing(profile)
        return PlanningReport(
            file_name=profile.file_name,
            config=self.config,
            optimization=optimization,
            timing=timing,
            constraints=self.validate_constraints(profile),
            substitutions=self.find_substitutions(profile),
            overlaps=self.analyze_overlaps(profile),
        )

    def generate_instructions(self, profile: Any, optimization: Optional[OptimizationResult] = None) -> str:
        """Human-readable operator report: slot loading, pause layers and warnings."""
        profile = self._require_profile(profile)
        if optimization is None:
            optimization = self.optimize(profile)
        constraints = self.validate_constraints(profile)

        def name(color_id: str) -> str:
            color = profile.get_color(color_id)
            return color.display_name if color else color_id

        lines = [
            "AMS COLOR OPTIMIZATION REPORT",
            "============================",
            "",
            f"File: {profile.file_name or 'unknown'}",
            f"Total Colors: {optimization.total_colors}",
            f"Required AMS Slots: {optimization.required_slots} of {optimization.total_slots}",
            f"Manual Swaps Needed: {len(optimization.manual_swaps)}",
            f"Time Saved: ~{round(optimization.estimated_time_saved / 60)} minutes",
            "",
            "SLOT ASSIGNMENTS:",
        ]
        for slot in optimization.slot_assignments:
            status = "(Permanent)" if slot.is_permanent else "(Shared)"
            lines.append(f"  Slot {slot.slot_id}: {', '.join(name(c) for c in slot.colors)} {status}")

        if optimization.manual_swaps:
            lines += ["", "MANUAL SWAP INSTRUCTIONS:"]
            for index, swap in enumerate(optimization.manual_swaps, start=1):
                lines += [
                    f"  {index}. At layer {swap.at_layer} (Z={swap.z_height:.2f}mm):",
                    f"     Remove {name(swap.from_color)} from Slot {swap.slot}",
                    f"     Insert {name(swap.to_color)} into Slot {swap.slot}",
                ]
                if swap.timing_window is not None:
                    window = swap.timing_window
                    lines.append(
                        f"     Window: layers {window.earliest}-{window.latest} "
                        f"(flexibility {window.flexibility_score:.0f}%)"
                    )

        if constraints.has_violations:
            lines += ["", "CONSTRAINT WARNINGS:"]
            for violation_range in constraints.violation_ranges:
                lines.append(
                    f"  Layers {violation_range.start_layer}-{violation_range.end_layer}: "
                    f"{violation_range.max_colors_required} colors needed, "
                    f"{violation_range.available_slots} slots available"
                )
                for suggestion in violation_range.suggestions:
                    lines.append(f"     - {suggestion.instruction}")

        lines += [
            "",
            "TIPS:",
            "- Pause the print at the specified layers to perform swaps",
            "- Ensure filaments are properly loaded before resuming",
            "- Consider color usage percentages when deciding permanent slots",
        ]
        return "\n".join(lines)
