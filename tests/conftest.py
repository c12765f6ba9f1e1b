from typing import Iterable, Optional

import pytest

from swapplanner.schemas.profile import Color, ColorUsageProfile, ToolChange


def build_profile(
    usage: dict[str, Iterable[int]],
    total_layers: Optional[int] = None,
    hexes: Optional[dict[str, str]] = None,
    tool_changes: Optional[list[tuple[str, str, int]]] = None,
    layer_map: Optional[dict[int, list[str]]] = None,
    total_height: Optional[float] = None,
) -> ColorUsageProfile:
    """
    Builds a consistent profile from color -> layers.
    Unless given explicitly, the layer map mirrors the color usage for every layer.
    """
    layers = {color_id: set(used) for color_id, used in usage.items()}
    if total_layers is None:
        total_layers = max((max(s) for s in layers.values() if s), default=-1) + 1
    hexes = hexes or {}

    colors = [
        Color.from_layers(color_id, used, total_layers, hex_value=hexes.get(color_id))
        for color_id, used in layers.items()
    ]
    if layer_map is None:
        layer_map = {
            layer: [color_id for color_id, used in layers.items() if layer in used]
            for layer in range(total_layers)
        }

    return ColorUsageProfile(
        total_layers=total_layers,
        total_height=total_height if total_height is not None else total_layers * 0.2,
        colors=colors,
        tool_changes=[ToolChange(from_tool=a, to_tool=b, at_layer=at) for a, b, at in (tool_changes or [])],
        layer_color_map=layer_map,
        file_name="test_model.gcode",
    )


@pytest.fixture
def profile_factory():
    return build_profile


@pytest.fixture
def three_color_profile():
    """T0 (0-9), T1 (10-19), T2 (5-14): T0 and T1 can share a slot."""
    return build_profile(
        {"T0": range(0, 10), "T1": range(10, 20), "T2": range(5, 15)},
        hexes={"T0": "#FF0000", "T1": "#0000FF", "T2": "#FFFFFF"},
        tool_changes=[("T0", "T2", 5), ("T2", "T0", 6), ("T0", "T1", 10), ("T1", "T2", 11)],
        total_height=4.0,
    )
