import colorsys
import math

import numpy as np

# Largest possible Euclidean distance between two 8-bit RGB colors.
MAX_RGB_DISTANCE = math.sqrt(3 * 255 * 255)

_SRGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
])
_D65_WHITE = np.array([0.95047, 1.00000, 1.08883])


def hex_to_rgb(hex_str: str) -> tuple[int, int, int]:
    """
    Converts a hex string to an RGB tuple.
    Handles strings with or without '#' and is case-insensitive.
    """
    hex_str = hex_str.strip().lstrip("#").upper()
    if len(hex_str) == 8:
        # Strip alpha channel if present (Bambu RGBA tray colors)
        hex_str = hex_str[:6]
    if len(hex_str) != 6:
        raise ValueError(f"Invalid hex color: {hex_str}")
    return tuple(int(hex_str[i : i + 2], 16) for i in (0, 2, 4))


def try_hex_to_rgb(hex_str: str | None) -> tuple[int, int, int] | None:
    """Lenient variant of hex_to_rgb: returns None for missing or malformed values."""
    if not hex_str:
        return None
    try:
        return hex_to_rgb(hex_str)
    except ValueError:
        return None


def rgb_to_lab(r: int, g: int, b: int) -> tuple[float, float, float]:
    """
    Converts RGB to LAB color space.
    Assumes sRGB color space and D65 illuminant (2 degree observer).
    """
    rgb = np.array([r, g, b], dtype=float) / 255.0

    # 1. Linearize sRGB
    mask = rgb > 0.04045
    rgb[mask] = ((rgb[mask] + 0.055) / 1.055) ** 2.4
    rgb[~mask] = rgb[~mask] / 12.92

    # 2. sRGB to XYZ, scaled by the D65 white point
    xyz = (_SRGB_TO_XYZ @ rgb) / _D65_WHITE

    # 3. XYZ to Lab
    mask = xyz > 0.008856
    xyz[mask] = xyz[mask] ** (1 / 3)
    xyz[~mask] = (7.787 * xyz[~mask]) + (16 / 116)

    lab_l = 116 * xyz[1] - 16
    lab_a = 500 * (xyz[0] - xyz[1])
    lab_b = 200 * (xyz[1] - xyz[2])
    return float(lab_l), float(lab_a), float(lab_b)


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[float, float, float]:
    """Returns (hue in degrees, saturation 0-1, lightness 0-1)."""
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return hue * 360, saturation, lightness


def rgb_distance(rgb1: tuple[int, int, int], rgb2: tuple[int, int, int]) -> float:
    """Euclidean distance in RGB space (0 - ~441.7)."""
    return float(np.linalg.norm(np.subtract(rgb1, rgb2, dtype=float)))


def calculate_delta_e(hex1: str, hex2: str) -> float:
    """
    Calculates the CIE76 color difference between two hex colors.

    This is the plain Euclidean distance in Lab space. A result < 2.3 is
    roughly a "just noticeable difference".

    Args:
        hex1: Hex color string (e.g., "#FFFFFF" or "FFFFFF")
        hex2: Hex color string (e.g., "#000000" or "000000")

    Returns:
        float: The Delta E distance (CIE76).
    """
    lab1 = np.array(rgb_to_lab(*hex_to_rgb(hex1)))
    lab2 = np.array(rgb_to_lab(*hex_to_rgb(hex2)))
    return float(np.linalg.norm(lab1 - lab2))


def hue_difference(h1: float, h2: float) -> float:
    """Shortest angular distance between two hues, in degrees."""
    diff = abs(h1 - h2)
    return min(diff, 360 - diff)
