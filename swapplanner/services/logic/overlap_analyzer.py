import bisect
import logging
from itertools import combinations
from typing import Optional

from swapplanner.schemas.overlap import (
    SEVERITY_RANK,
    ColdZone,
    ColorPair,
    ColorProximity,
    Overlap,
    OverlapAnalysis,
    ProximityPair,
    SeverityEnum,
    UsageHotspot,
    UsageHotspots,
)
from swapplanner.schemas.profile import Color, ColorUsageProfile

logger = logging.getLogger("OverlapAnalyzer")

CoOccurrenceMatrix = dict[str, dict[str, int]]


def _longest_run(layers: list[int]) -> int:
    """Length of the longest run of consecutive layer indices in a sorted list."""
    best = run = 0
    previous = None
    for layer in layers:
        run = run + 1 if previous is not None and layer == previous + 1 else 1
        best = max(best, run)
        previous = layer
    return best


class ColorOverlapAnalyzer:
    """
    Determines which colors are ever required on the same layer.
    Two colors that never co-occur can live in the same physical slot.
    """

    @staticmethod
    def intervals_overlap(a: Color, b: Color) -> bool:
        if not a.layers_used or not b.layers_used:
            return False
        return a.first_layer <= b.last_layer and b.first_layer <= a.last_layer

    @staticmethod
    def shared_layers(profile: ColorUsageProfile) -> dict[tuple[str, str], list[int]]:
        """
        Layers on which each pair of known colors is active together.
        Keys are ordered by declaration order; unknown ids in the layer map are ignored.
        """
        order = profile.declaration_order
        all_layers = set(profile.layer_color_map)
        for color in profile.colors:
            all_layers.update(color.layers_used)

        shared: dict[tuple[str, str], list[int]] = {}
        for layer in sorted(all_layers):
            active = [cid for cid in profile.colors_in_layer(layer) if cid in order]
            active.sort(key=order.__getitem__)
            for a, b in combinations(active, 2):
                shared.setdefault((a, b), []).append(layer)
        return shared

    @staticmethod
    def build_co_occurrence_matrix(profile: ColorUsageProfile) -> CoOccurrenceMatrix:
        """Symmetric map pair -> number of layers the two colors share."""
        matrix: CoOccurrenceMatrix = {color.id: {} for color in profile.colors}
        for a, b in combinations(profile.colors, 2):
            matrix[a.id][b.id] = 0
            matrix[b.id][a.id] = 0

        for (a, b), layers in ColorOverlapAnalyzer.shared_layers(profile).items():
            matrix[a][b] = len(layers)
            matrix[b][a] = len(layers)
        return matrix

    @staticmethod
    def can_share(a: Color, b: Color, matrix: Optional[CoOccurrenceMatrix] = None) -> bool:
        """
        True iff the two colors are never needed at the same time.
        Disjoint usage intervals settle it immediately; otherwise the exact
        per-layer data decides.
        """
        if not ColorOverlapAnalyzer.intervals_overlap(a, b):
            return True
        if matrix is not None:
            return matrix.get(a.id, {}).get(b.id, 0) == 0
        return not (a.layers_used & b.layers_used)

    @staticmethod
    def analyze_color_pairs(colors: list[Color]) -> list[ColorPair]:
        """Fast partition path: interval exclusion only."""
        pairs = []
        for a, b in combinations(colors, 2):
            if ColorOverlapAnalyzer.intervals_overlap(a, b):
                start = max(a.first_layer, b.first_layer)
                end = min(a.last_layer, b.last_layer)
                pairs.append(ColorPair(
                    color1=a.id,
                    color2=b.id,
                    can_share=False,
                    reason=f"Overlapping usage in layers {start}-{end}",
                ))
            else:
                pairs.append(ColorPair(
                    color1=a.id,
                    color2=b.id,
                    can_share=True,
                    reason=(
                        f"Non-overlapping usage: {a.id} (layers {a.first_layer}-{a.last_layer}) "
                        f"and {b.id} (layers {b.first_layer}-{b.last_layer})"
                    ),
                ))
        return pairs

    @staticmethod
    def classify_severity(overlap_count: int, longest_run: int, total_layers: int) -> SeverityEnum:
        if total_layers <= 0:
            return SeverityEnum.LOW
        count_pct = overlap_count / total_layers * 100
        run_pct = longest_run / total_layers * 100
        if count_pct >= 20 or run_pct >= 30:
            return SeverityEnum.HIGH
        if count_pct >= 10 or run_pct >= 15:
            return SeverityEnum.MEDIUM
        return SeverityEnum.LOW

    @staticmethod
    def find_overlaps(
        profile: ColorUsageProfile,
        matrix: Optional[CoOccurrenceMatrix] = None,
    ) -> list[Overlap]:
        """One Overlap per pair that shares at least one layer, most severe first."""
        if matrix is None:
            matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)

        shared = ColorOverlapAnalyzer.shared_layers(profile)
        overlaps = []
        for a, b in combinations(profile.colors, 2):
            layers = shared.get((a.id, b.id), [])
            if not layers:
                continue
            run = _longest_run(layers)
            overlaps.append(Overlap(
                color_a=a.id,
                color_b=b.id,
                overlap_count=len(layers),
                overlap_layers=layers,
                longest_run=run,
                can_share=ColorOverlapAnalyzer.can_share(a, b, matrix),
                severity=ColorOverlapAnalyzer.classify_severity(len(layers), run, profile.total_layers),
            ))

        # sort is stable, so declaration order breaks the remaining ties
        overlaps.sort(key=lambda o: (-SEVERITY_RANK[o.severity], -o.overlap_count))
        return overlaps

    @staticmethod
    def _nearest_distances(a: Color, b: Color) -> list[int]:
        """For every layer of a, the distance to the nearest layer of b."""
        targets = sorted(b.layers_used)
        if not targets:
            return []
        distances = []
        for layer in sorted(a.layers_used):
            i = bisect.bisect_left(targets, layer)
            candidates = []
            if i < len(targets):
                candidates.append(targets[i] - layer)
            if i > 0:
                candidates.append(layer - targets[i - 1])
            distances.append(min(candidates))
        return distances

    @staticmethod
    def analyze_color_proximity(profile: ColorUsageProfile) -> ColorProximity:
        logger.info("Analyzing color usage proximity patterns")
        matrix: dict[str, dict[str, float]] = {color.id: {} for color in profile.colors}
        scores = []

        for a, b in combinations(profile.colors, 2):
            distances = ColorOverlapAnalyzer._nearest_distances(a, b)
            if not distances:
                continue
            average = sum(distances) / len(distances)
            score = round(max(0.0, 100 - average * 5), 2)
            matrix[a.id][b.id] = score
            matrix[b.id][a.id] = score
            scores.append(ProximityPair(
                color1=a.id,
                color2=b.id,
                average_distance=round(average, 2),
                proximity_score=score,
            ))

        nearby = sorted(
            (pair for pair in scores if pair.proximity_score > 60),
            key=lambda pair: -pair.proximity_score,
        )
        isolated = [
            color.id for color in profile.colors
            if not matrix[color.id] or max(matrix[color.id].values()) < 30
        ]

        logger.info(f"Found {len(nearby)} nearby color pairs and {len(isolated)} isolated colors")
        return ColorProximity(proximity_matrix=matrix, nearby_pairs=nearby, isolated_colors=isolated)

    @staticmethod
    def detect_usage_hotspots(profile: ColorUsageProfile) -> UsageHotspots:
        """Slides a fixed window over the print and classifies busy and quiet stretches."""
        logger.info("Detecting color usage hotspots and cold zones")
        result = UsageHotspots()
        total = profile.total_layers
        window = max(5, total // 20)

        for start in range(0, total - window, window):
            end = min(start + window, total)
            window_colors: dict[str, None] = {}
            color_changes = 0
            total_colors = 0
            previous: Optional[frozenset[str]] = None

            for layer in range(start, end):
                active = profile.colors_in_layer(layer)
                total_colors += len(active)
                window_colors.update(dict.fromkeys(active))
                current = frozenset(active)
                if previous is not None and current != previous:
                    color_changes += 1
                previous = current

            span = end - start
            avg_colors = total_colors / span
            change_frequency = color_changes / span
            intensity = round(avg_colors * 20 + change_frequency * 30, 2)

            if intensity > 60 and len(window_colors) > 2:
                characteristics = []
                if len(window_colors) > 3:
                    characteristics.append("High color diversity")
                if change_frequency > 0.5:
                    characteristics.append("Frequent changes")
                if avg_colors > 2:
                    characteristics.append("Multi-color layers")
                result.hotspots.append(UsageHotspot(
                    start_layer=start,
                    end_layer=end - 1,
                    active_colors=list(window_colors),
                    intensity=intensity,
                    characteristics=characteristics,
                ))
            elif intensity < 30 and len(window_colors) <= 2:
                result.cold_zones.append(ColdZone(
                    start_layer=start,
                    end_layer=end - 1,
                    dominant_color=next(iter(window_colors), "unknown"),
                    intensity=intensity,
                ))

        logger.info(f"Detected {len(result.hotspots)} hotspots and {len(result.cold_zones)} cold zones")
        return result

    @staticmethod
    def analyze(profile: ColorUsageProfile) -> OverlapAnalysis:
        logger.info(f"Analyzing overlaps for {len(profile.colors)} colors over {profile.total_layers} layers")
        matrix = ColorOverlapAnalyzer.build_co_occurrence_matrix(profile)
        return OverlapAnalysis(
            co_occurrence=matrix,
            color_pairs=ColorOverlapAnalyzer.analyze_color_pairs(profile.colors),
            overlaps=ColorOverlapAnalyzer.find_overlaps(profile, matrix),
            proximity=ColorOverlapAnalyzer.analyze_color_proximity(profile),
            hotspots=ColorOverlapAnalyzer.detect_usage_hotspots(profile),
        )
