from swapplanner.schemas.overlap import SeverityEnum
from swapplanner.services.logic.overlap_analyzer import ColorOverlapAnalyzer


def test_disjoint_intervals_can_share(profile_factory):
    profile = profile_factory({"A": range(0, 10), "B": range(10, 20)})
    a, b = profile.colors

    matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)
    assert matrix["A"]["B"] == 0
    assert matrix["B"]["A"] == 0
    assert ColorOverlapAnalyzer.can_share(a, b, matrix)
    assert ColorOverlapAnalyzer.find_overlaps(profile) == []

    pairs = ColorOverlapAnalyzer.analyze_color_pairs(profile.colors)
    assert len(pairs) == 1
    assert pairs[0].can_share
    assert "Non-overlapping" in pairs[0].reason


def test_overlapping_colors_report_shared_layers(three_color_profile):
    overlaps = ColorOverlapAnalyzer.find_overlaps(three_color_profile)
    by_pair = {(o.color_a, o.color_b): o for o in overlaps}

    t0_t2 = by_pair[("T0", "T2")]
    assert t0_t2.overlap_count == 5
    assert t0_t2.overlap_layers == [5, 6, 7, 8, 9]
    assert not t0_t2.can_share
    # 5 of 20 layers = 25%
    assert t0_t2.severity == SeverityEnum.HIGH
    assert ("T0", "T1") not in by_pair


def test_co_occurrence_matrix_is_symmetric(three_color_profile):
    matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(three_color_profile)
    for a, row in matrix.items():
        for b, count in row.items():
            assert matrix[b][a] == count
    assert matrix["T1"]["T2"] == 5


def test_interleaved_colors_share_by_exact_path(profile_factory):
    # Intervals overlap, but no layer holds both colors
    profile = profile_factory({"A": [0, 2, 4], "B": [1, 3, 5]})
    a, b = profile.colors
    matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)

    assert ColorOverlapAnalyzer.intervals_overlap(a, b)
    assert ColorOverlapAnalyzer.can_share(a, b, matrix)
    assert ColorOverlapAnalyzer.can_share(a, b)
    assert not ColorOverlapAnalyzer.analyze_color_pairs(profile.colors)[0].can_share


def test_severity_thresholds():
    classify = ColorOverlapAnalyzer.classify_severity
    assert classify(1, 1, 100) == SeverityEnum.LOW
    assert classify(10, 1, 100) == SeverityEnum.MEDIUM
    assert classify(1, 15, 100) == SeverityEnum.MEDIUM
    assert classify(20, 1, 100) == SeverityEnum.HIGH
    assert classify(5, 30, 100) == SeverityEnum.HIGH
    assert classify(3, 3, 0) == SeverityEnum.LOW


def test_overlaps_sorted_by_severity(profile_factory):
    profile = profile_factory(
        {"A": range(0, 100), "B": [50], "C": range(0, 40)},
    )
    overlaps = ColorOverlapAnalyzer.find_overlaps(profile)
    severities = [o.severity for o in overlaps]
    assert severities[0] == SeverityEnum.HIGH
    assert severities[-1] == SeverityEnum.LOW
    assert (overlaps[0].color_a, overlaps[0].color_b) == ("A", "C")


def test_empty_and_single_color_profiles(profile_factory):
    empty = profile_factory({}, total_layers=0)
    assert ColorOverlapAnalyzer.build_co_occurrence_matrix(empty) == {}
    assert ColorOverlapAnalyzer.find_overlaps(empty) == []

    single = profile_factory({"A": range(0, 5)})
    assert ColorOverlapAnalyzer.analyze_color_pairs(single.colors) == []
    assert ColorOverlapAnalyzer.build_co_occurrence_matrix(single) == {"A": {}}


def test_layer_map_is_authoritative(profile_factory):
    # The map says layer 3 holds both colors although layersUsed disagree
    profile = profile_factory(
        {"A": range(0, 4), "B": range(4, 8)},
        layer_map={3: ["A", "B", "A"]},
    )
    matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)
    assert matrix["A"]["B"] == 1


def test_proximity_of_adjacent_colors(profile_factory):
    profile = profile_factory({"A": range(0, 10), "B": range(10, 20), "C": [200]}, total_layers=201)
    proximity = ColorOverlapAnalyzer.analyze_color_proximity(profile)

    # distances 10, 9, ..., 1 -> average 5.5
    assert proximity.proximity_matrix["A"]["B"] == 72.5
    assert [(p.color1, p.color2) for p in proximity.nearby_pairs] == [("A", "B")]
    assert proximity.isolated_colors == ["C"]


def test_hotspots_and_cold_zones(profile_factory):
    profile = profile_factory(
        {
            "T0": range(0, 40),
            "T1": range(10, 20),
            "T2": range(10, 20),
            "T3": range(10, 20),
        },
    )
    result = ColorOverlapAnalyzer.detect_usage_hotspots(profile)

    hot = [h for h in result.hotspots if h.start_layer == 10]
    assert hot
    assert hot[0].end_layer == 14
    assert "High color diversity" in hot[0].characteristics
    assert "Multi-color layers" in hot[0].characteristics

    cold = [c for c in result.cold_zones if c.start_layer == 0]
    assert cold
    assert cold[0].dominant_color == "T0"


def test_analyze_bundles_everything(three_color_profile):
    analysis = ColorOverlapAnalyzer.analyze(three_color_profile)
    assert set(analysis.co_occurrence) == {"T0", "T1", "T2"}
    assert len(analysis.color_pairs) == 3
    assert len(analysis.overlaps) == 2
    data = analysis.to_json_dict()
    assert "coOccurrence" in data
    assert "colorPairs" in data
