"""Color space conversion, luminance and perceptual distance."""
import colorsys
import math
from typing import List, Sequence, Union

import numpy as np

from palettelab.types import RGBColor, LABColor, HSLColor

# sRGB (linear) to CIE XYZ, D65 illuminant
RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041]
])
XYZ_TO_RGB = np.linalg.inv(RGB_TO_XYZ)

# D65 reference white, XYZ scaled to Y = 100
WHITE_D65 = np.array([95.047, 100.0, 108.883])

LAB_EPSILON = 0.008856
LAB_SLOPE = 7.787

ColorLike = Union[RGBColor, HSLColor]


def _sanitize_rgb(rgb: np.ndarray) -> np.ndarray:
    rgb = np.nan_to_num(np.asarray(rgb, dtype=np.float64), nan=0.0)
    return np.clip(rgb, 0.0, 1.0)


def srgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Gamma-decode sRGB values in [0, 1] to linear light.

    Args:
        srgb: sRGB values in range [0, 1]

    Returns:
        Linear RGB values
    """
    return np.where(
        srgb <= 0.04045,
        srgb / 12.92,
        ((srgb + 0.055) / 1.055) ** 2.4
    )


def linear_to_srgb(linear: np.ndarray) -> np.ndarray:
    """
    Gamma-encode linear RGB to sRGB.

    Negative input stays negative (linear segment) so out-of-gamut values
    remain detectable by the caller.
    """
    return np.where(
        linear <= 0.0031308,
        linear * 12.92,
        1.055 * np.power(np.clip(linear, 0.0, None), 1.0 / 2.4) - 0.055
    )


def rgb_to_lab_array(rgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB to CIELAB color space.

    Args:
        rgb: Array of shape (..., 3) with values in [0, 1]. NaN and
             out-of-range values are clamped.

    Returns:
        LAB values with the same leading shape
    """
    rgb_linear = srgb_to_linear(_sanitize_rgb(rgb))

    xyz = np.dot(rgb_linear, RGB_TO_XYZ.T) * 100.0
    xyz_normalized = xyz / WHITE_D65

    f_xyz = np.where(
        xyz_normalized > LAB_EPSILON,
        np.cbrt(xyz_normalized),
        LAB_SLOPE * xyz_normalized + 16.0 / 116.0
    )

    L = 116.0 * f_xyz[..., 1] - 16.0
    a = 500.0 * (f_xyz[..., 0] - f_xyz[..., 1])
    b = 200.0 * (f_xyz[..., 1] - f_xyz[..., 2])

    return np.stack([L, a, b], axis=-1)


def lab_to_rgb_array(lab: np.ndarray, clamp: bool = True) -> np.ndarray:
    """
    Convert CIELAB back to sRGB; exact inverse of rgb_to_lab_array.

    Args:
        lab: Array of shape (..., 3)
        clamp: Clamp the result into [0, 1]. Pass False to see where a
               color falls outside the RGB cube.

    Returns:
        sRGB values with the same leading shape
    """
    lab = np.nan_to_num(np.asarray(lab, dtype=np.float64), nan=0.0)

    fy = (lab[..., 0] + 16.0) / 116.0
    fx = lab[..., 1] / 500.0 + fy
    fz = fy - lab[..., 2] / 200.0
    f_xyz = np.stack([fx, fy, fz], axis=-1)

    cubed = f_xyz ** 3
    xyz_normalized = np.where(
        cubed > LAB_EPSILON,
        cubed,
        (f_xyz - 16.0 / 116.0) / LAB_SLOPE
    )

    xyz = xyz_normalized * WHITE_D65 / 100.0
    rgb = linear_to_srgb(np.dot(xyz, XYZ_TO_RGB.T))

    if clamp:
        rgb = np.clip(rgb, 0.0, 1.0)
    return rgb


def relative_luminance_array(rgb: np.ndarray) -> np.ndarray:
    """WCAG relative luminance of sRGB values of shape (..., 3)."""
    rgb = _sanitize_rgb(rgb)
    linear = np.where(rgb <= 0.03928, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)
    return 0.2126 * linear[..., 0] + 0.7152 * linear[..., 1] + 0.0722 * linear[..., 2]


def rgb_to_lab(color: RGBColor) -> LABColor:
    L, a, b = rgb_to_lab_array(color.as_array())
    return LABColor(float(L), float(a), float(b))


def lab_to_rgb(lab: LABColor) -> RGBColor:
    """LAB to RGB for display; out-of-gamut colors are clamped."""
    r, g, b = lab_to_rgb_array(lab.as_array(), clamp=True)
    return RGBColor(float(r), float(g), float(b))


def relative_luminance(color: RGBColor) -> float:
    return float(relative_luminance_array(color.as_array()))


def rgb_to_hsl(color: RGBColor) -> HSLColor:
    h, l, s = colorsys.rgb_to_hls(color.r, color.g, color.b)
    return HSLColor(h * 360.0, s, l)


def hsl_to_rgb(hsl: HSLColor, alpha: float = 1.0) -> RGBColor:
    r, g, b = colorsys.hls_to_rgb(hsl.h / 360.0, hsl.l, hsl.s)
    return RGBColor(r, g, b, alpha)


def as_hsl(color: ColorLike) -> HSLColor:
    """Return the HSL form of an RGB or HSL color."""
    if isinstance(color, HSLColor):
        return color
    return rgb_to_hsl(color)


def as_rgb(color: ColorLike) -> RGBColor:
    """Return the RGB form of an RGB or HSL color."""
    if isinstance(color, HSLColor):
        return hsl_to_rgb(color)
    return color


def perceptual_distance(lab1: LABColor, lab2: LABColor) -> float:
    """
    Simplified CIEDE2000 color difference.

    Keeps the CIEDE2000 weighting structure (chroma and hue scaling
    relative to the first color's chroma plus a rotation term) without the
    full hue-angle corrections. Similar colors score near 0.

    Args:
        lab1: Reference LAB color
        lab2: Compared LAB color

    Returns:
        Non-negative distance
    """
    delta_l = lab2.l - lab1.l
    delta_a = lab2.a - lab1.a
    delta_b = lab2.b - lab1.b

    c1 = math.sqrt(lab1.a ** 2 + lab1.b ** 2)
    c2 = math.sqrt(lab2.a ** 2 + lab2.b ** 2)
    delta_c = c2 - c1

    # Orthogonal (hue) component; rounding can push the radicand below zero
    delta_h = math.sqrt(max(0.0, delta_a ** 2 + delta_b ** 2 - delta_c ** 2))

    s_l = 1.0
    s_c = 1.0 + 0.045 * c1
    s_h = 1.0 + 0.015 * c1

    c1_7 = c1 ** 7
    r_t = -2.0 * math.sqrt(c1_7 / (c1_7 + 25.0 ** 7)) * \
        math.sin(math.radians(60.0) * math.exp(-((c1 - c2) / 2.0) ** 2))

    term_c = delta_c / s_c
    term_h = delta_h / s_h

    total = (delta_l / s_l) ** 2 + term_c ** 2 + term_h ** 2 + r_t * term_c * term_h
    return math.sqrt(max(0.0, total))


def delta_e_76(lab1: LABColor, lab2: LABColor) -> float:
    """Euclidean distance in LAB."""
    return float(np.linalg.norm(lab1.as_array() - lab2.as_array()))


def with_hue(color: RGBColor, hue: float) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(hue, hsl.s, hsl.l), color.alpha)


def with_saturation(color: RGBColor, saturation: float) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(hsl.h, saturation, hsl.l), color.alpha)


def with_lightness(color: RGBColor, lightness: float) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(hsl.h, hsl.s, lightness), color.alpha)


def adjust_hue(color: RGBColor, degrees: float) -> RGBColor:
    """Rotate hue by the given number of degrees."""
    return with_hue(color, rgb_to_hsl(color).h + degrees)


def adjust_saturation(color: RGBColor, factor: float) -> RGBColor:
    """Scale saturation by factor, clamped to [0, 1]."""
    return with_saturation(color, rgb_to_hsl(color).s * factor)


def adjust_lightness(color: RGBColor, factor: float) -> RGBColor:
    """Scale lightness by factor, clamped to [0, 1]."""
    return with_lightness(color, rgb_to_hsl(color).l * factor)


def is_warm(color: RGBColor) -> bool:
    hue = rgb_to_hsl(color).h
    return hue <= 60.0 or hue >= 300.0


def is_cool(color: RGBColor) -> bool:
    hue = rgb_to_hsl(color).h
    return 60.0 < hue < 300.0


def is_neutral(color: RGBColor) -> bool:
    return rgb_to_hsl(color).s < 0.1


def sorted_by_hue(colors: Sequence[RGBColor]) -> List[RGBColor]:
    return sorted(colors, key=lambda c: rgb_to_hsl(c).h)


def sorted_by_lightness(colors: Sequence[RGBColor]) -> List[RGBColor]:
    return sorted(colors, key=lambda c: rgb_to_hsl(c).l)


def sorted_by_saturation(colors: Sequence[RGBColor]) -> List[RGBColor]:
    return sorted(colors, key=lambda c: rgb_to_hsl(c).s)
