import pytest

from swapplanner.schemas.config import PlannerConfig
from swapplanner.schemas.optimization import SlotAssignment
from swapplanner.schemas.timing import ConstraintKindEnum, ConstraintSeverityEnum, RiskEnum
from swapplanner.services.logic.swap_scheduler import generate_swaps
from swapplanner.services.logic.timing_analyzer import (
    analyze_individual_swap_timing,
    analyze_swap_timing,
    attach_timing_windows,
    calculate_swap_window,
    flexibility_score,
    suggest_timing_alternatives,
)


def _shared(colors, slot=1):
    return SlotAssignment(slot=slot, colors=colors, is_permanent=False)


@pytest.fixture
def wide_gap_profile(profile_factory):
    """A (0-9) and B (30-39) with twenty empty layers in between."""
    return profile_factory(
        {"A": range(0, 10), "B": range(30, 40)},
        hexes={"A": "#FF0000", "B": "#0000FF"},
    )


@pytest.fixture
def wide_gap_swap(wide_gap_profile):
    return generate_swaps([_shared(["A", "B"])], wide_gap_profile)[0]


def test_flexibility_score_is_clamped():
    assert flexibility_score(10, 10) == 0
    assert flexibility_score(10, 15) == 50
    assert flexibility_score(0, 40) == 100
    assert flexibility_score(10, 5) == 0


def test_raw_swap_window(wide_gap_profile):
    window = calculate_swap_window("A", "B", wide_gap_profile, buffer_layers=2)

    assert (window.earliest, window.latest) == (11, 28)
    assert window.flexibility == 100
    assert window.reasoning[-1] == "Good timing flexibility available"


def test_tight_swap_window(three_color_profile):
    window = calculate_swap_window("T0", "T1", three_color_profile)

    assert (window.earliest, window.latest) == (11, 11)
    assert "Very tight" in window.reasoning[-1]


def test_swap_window_of_unknown_color(wide_gap_profile):
    window = calculate_swap_window("X", "A", wide_gap_profile)

    assert (window.earliest, window.latest, window.flexibility) == (0, 0, 0)
    assert window.reasoning == ["Color not found"]


def test_window_is_widened_to_contain_the_swap(wide_gap_swap, wide_gap_profile):
    analysis = analyze_individual_swap_timing(wide_gap_swap, wide_gap_profile, PlannerConfig())

    assert wide_gap_swap.at_layer == 10
    assert (analysis.timing_options.earliest, analysis.timing_options.latest) == (10, 28)
    assert analysis.swap_window.start_layer <= analysis.recommended_layer <= analysis.swap_window.end_layer
    assert analysis.swap_window.flexibility_score == 100
    assert "Buffer of 2 layers relaxed to include layer 10" in analysis.swap_window.constraints
    assert not analysis.timing_options.adjacent_only


def test_tight_window_contains_swap(three_color_profile):
    swap = generate_swaps([_shared(["T0", "T1"])], three_color_profile)[0]
    analysis = analyze_individual_swap_timing(swap, three_color_profile, PlannerConfig())

    assert analysis.timing_options.earliest <= 10 <= analysis.timing_options.latest
    assert analysis.timing_options.adjacent_only


def test_constraints(wide_gap_swap, wide_gap_profile):
    analysis = analyze_individual_swap_timing(wide_gap_swap, wide_gap_profile, PlannerConfig())
    kinds = [c.type for c in analysis.constraints]

    hard = [c for c in analysis.constraints if c.severity == ConstraintSeverityEnum.HARD]
    assert len(hard) == 2
    assert all(c.impact == 90 for c in hard)
    assert ConstraintKindEnum.BUFFER_ZONE in kinds
    assert ConstraintKindEnum.MATERIAL_CHANGE in kinds


def test_constraints_without_buffer_or_visible_change(profile_factory):
    profile = profile_factory(
        {"A": range(0, 10), "B": range(30, 40)},
        hexes={"A": "#FF0000", "B": "#FE0101"},
    )
    swap = generate_swaps([_shared(["A", "B"])], profile)[0]
    analysis = analyze_individual_swap_timing(swap, profile, PlannerConfig(buffer_layers=0))
    kinds = [c.type for c in analysis.constraints]

    assert ConstraintKindEnum.BUFFER_ZONE not in kinds
    assert ConstraintKindEnum.MATERIAL_CHANGE not in kinds


def test_confidence(wide_gap_swap, wide_gap_profile):
    confidence = analyze_individual_swap_timing(wide_gap_swap, wide_gap_profile, PlannerConfig()).confidence

    # (90 + 90 + 50 + 30) / 4
    assert confidence.necessity == 65
    assert confidence.timing == 100
    assert confidence.user_control == 100


def test_alternatives_prefer_nearby_simple_layers(wide_gap_swap, wide_gap_profile):
    analysis = analyze_individual_swap_timing(wide_gap_swap, wide_gap_profile, PlannerConfig())
    alternatives = analysis.alternatives

    assert [a.layer for a in alternatives] == [11, 12, 13, 14, 15]
    assert alternatives[0].score == 85
    assert all(a.score == 80 for a in alternatives[1:])
    assert [a.risk for a in alternatives] == [
        RiskEnum.LOW, RiskEnum.LOW, RiskEnum.LOW, RiskEnum.HIGH, RiskEnum.HIGH,
    ]
    assert "Simple layer with minimal tool changes" in alternatives[0].tradeoffs


def test_alternatives_prefer_early(wide_gap_profile):
    candidates = suggest_timing_alternatives(
        20, (15, 25), wide_gap_profile, PlannerConfig(prefer_early_swaps=True)
    )

    assert [c.layer for c in candidates] == [19, 15, 16, 17, 18]
    assert candidates[0].score == 90
    assert 20 not in [c.layer for c in candidates]


def test_alternatives_limit(wide_gap_profile):
    candidates = suggest_timing_alternatives(
        20, (15, 25), wide_gap_profile, PlannerConfig(max_timing_alternatives=2)
    )
    assert len(candidates) == 2


def test_crowded_swaps_lose_flexibility(profile_factory):
    profile = profile_factory({
        "A": range(0, 10),
        "B": range(20, 30),
        "C": range(0, 11),
        "D": range(22, 30),
    })
    swaps = generate_swaps([_shared(["A", "B"], 1), _shared(["C", "D"], 2)], profile)
    analyses = analyze_swap_timing(profile, swaps, PlannerConfig())

    assert set(analyses) == {"A-B-10", "C-D-11"}
    assert analyses["A-B-10"].swap_window.flexibility_score == 60
    assert analyses["C-D-11"].swap_window.flexibility_score == 70
    for analysis in analyses.values():
        assert "Timing conflicts with other swaps" in analysis.swap_window.constraints


def test_attach_timing_windows(wide_gap_swap, wide_gap_profile):
    analyses = analyze_swap_timing(wide_gap_profile, [wide_gap_swap], PlannerConfig())
    (swap,) = attach_timing_windows([wide_gap_swap], analyses)

    assert swap.pause_start_layer == 10
    assert swap.pause_end_layer == 28
    assert swap.timing_window.optimal == 10
    assert swap.confidence.necessity == 65
    # the input swap is left untouched
    assert wide_gap_swap.timing_window is None
