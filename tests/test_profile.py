import logging

from swapplanner.schemas.profile import Color, ColorUsageProfile


def test_color_derives_layer_bounds():
    color = Color.model_validate({"id": "T0", "layersUsed": [7, 3, 5]})
    assert (color.first_layer, color.last_layer) == (3, 7)
    assert color.layer_count == 3
    assert color.display_name == "T0"


def test_tool_ids_are_normalized():
    profile = ColorUsageProfile.model_validate({
        "totalLayers": 2,
        "colors": [{"id": "T0", "layersUsed": [0]}, {"id": "T1", "layersUsed": [1]}],
        "toolChanges": [{"fromTool": 0, "toTool": 1, "layer": 1}],
    })
    assert [(c.from_tool, c.to_tool, c.at_layer) for c in profile.known_tool_changes] == [("T0", "T1", 1)]


def test_unknown_tool_changes_are_skipped(profile_factory, caplog):
    profile = profile_factory(
        {"A": range(0, 5), "B": range(5, 10)},
        tool_changes=[("A", "B", 5), ("X", "Y", 6), ("Y", "Z", 7)],
    )
    with caplog.at_level(logging.WARNING, logger="swapplanner.schemas.profile"):
        known = profile.known_tool_changes
        # computed once per profile
        assert profile.known_tool_changes is known

    assert [(c.from_tool, c.to_tool) for c in known] == [("A", "B")]
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2
    assert "Unknown color id: X" in warnings[0].getMessage()
    assert len(profile.tool_changes) == 3


def test_partial_layers():
    color = Color.from_layers("T0", [0, 1, 2], 10, partial_layers={2})

    assert color.partial_layer_count == 1
    assert color.is_used_in_layer(1)
    assert not color.is_used_in_layer(5)
    assert [color.layer_usage(layer) for layer in (1, 2, 5)] == ["primary", "partial", "none"]
    assert color.to_json_dict()["partialLayers"] == [2]


def test_colors_in_layer_falls_back_to_usage(profile_factory):
    profile = profile_factory({"A": range(0, 4), "B": range(2, 6)}, layer_map={3: ["B"]})

    assert profile.colors_in_layer(3) == ["B"]
    assert profile.colors_in_layer(2) == ["A", "B"]
    assert profile.colors_in_layer(9) == []
