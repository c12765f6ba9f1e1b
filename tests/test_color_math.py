import pytest
from swapplanner.utils.color_math import (
    MAX_RGB_DISTANCE,
    calculate_delta_e,
    hex_to_rgb,
    hue_difference,
    rgb_distance,
    rgb_to_hsl,
    try_hex_to_rgb,
)

def test_hex_to_rgb():
    assert hex_to_rgb("#FFFFFF") == (255, 255, 255)
    assert hex_to_rgb("FFFFFF") == (255, 255, 255)
    assert hex_to_rgb("#000000") == (0, 0, 0)
    assert hex_to_rgb("ff0000") == (255, 0, 0)
    # RGBA tray colors: alpha is ignored
    assert hex_to_rgb("FF0000FF") == (255, 0, 0)

    with pytest.raises(ValueError):
        hex_to_rgb("GGGGGG")
    with pytest.raises(ValueError):
        hex_to_rgb("FFF")

def test_try_hex_to_rgb_is_lenient():
    assert try_hex_to_rgb(None) is None
    assert try_hex_to_rgb("") is None
    assert try_hex_to_rgb("not-a-color") is None
    assert try_hex_to_rgb("#00FF00") == (0, 255, 0)

def test_delta_e_identity():
    # Identity test: Same color should have distance 0.0
    assert calculate_delta_e("#FFFFFF", "#FFFFFF") == 0.0
    assert calculate_delta_e("#000000", "#000000") == 0.0
    assert calculate_delta_e("#FF0000", "#FF0000") == 0.0

def test_delta_e_normalization():
    # Test that normalization (case, #) works
    res1 = calculate_delta_e("#FFFFFF", "#000000")
    res2 = calculate_delta_e("ffffff", "000000")
    assert res1 == res2

def test_delta_e_known_values():
    # White vs Black: L goes from 100 to 0
    dist = calculate_delta_e("#FFFFFF", "#000000")
    assert 99.0 < dist < 101.0

    # Pure Red vs Pure Green are very different
    assert calculate_delta_e("#FF0000", "#00FF00") > 50.0

    # Light gray vs slightly lighter gray is unnoticeable
    assert calculate_delta_e("#D3D3D3", "#D4D4D4") < 1.0

def test_delta_e_is_symmetric():
    assert calculate_delta_e("#FF0000", "#FE0101") == pytest.approx(calculate_delta_e("#FE0101", "#FF0000"))

def test_rgb_distance_bounds():
    assert rgb_distance((0, 0, 0), (0, 0, 0)) == 0.0
    assert rgb_distance((0, 0, 0), (255, 255, 255)) == pytest.approx(MAX_RGB_DISTANCE)

def test_rgb_to_hsl():
    h, s, l = rgb_to_hsl(255, 0, 0)
    assert (h, s, l) == pytest.approx((0.0, 1.0, 0.5))

    h, s, l = rgb_to_hsl(0, 0, 255)
    assert h == pytest.approx(240.0)

    # achromatic
    assert rgb_to_hsl(128, 128, 128)[:2] == (0.0, 0.0)

def test_hue_difference_wraps_around():
    assert hue_difference(350, 10) == pytest.approx(20)
    assert hue_difference(10, 350) == pytest.approx(20)
    assert hue_difference(0, 180) == pytest.approx(180)
