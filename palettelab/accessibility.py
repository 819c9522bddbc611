"""WCAG contrast analysis, color vision simulation and accessibility advice."""
import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, Iterable, List, Sequence

import numpy as np

from palettelab.color_math import (
    ColorLike, as_rgb, delta_e_76, hsl_to_rgb, relative_luminance, rgb_to_hsl, rgb_to_lab
)
from palettelab.types import (
    COLOR_BLINDNESS_TYPES, ConfusionSeverity, HSLColor, RecommendationType, RGBColor, Severity, VisionType
)

logger = logging.getLogger(__name__)

# WCAG 2.x minimum contrast ratios
AA_NORMAL = 4.5
AA_LARGE = 3.0
AAA_NORMAL = 7.0
AAA_LARGE = 4.5

# Row i gives output channel i as a mix of input R, G, B
VISION_MATRICES: Dict[VisionType, np.ndarray] = {
    VisionType.NORMAL: np.eye(3),
    VisionType.PROTANOPIA: np.array([
        [0.567, 0.433, 0.0],
        [0.558, 0.442, 0.0],
        [0.0, 0.0, 1.0],
    ]),
    VisionType.DEUTERANOPIA: np.array([
        [0.625, 0.375, 0.0],
        [0.7, 0.3, 0.0],
        [0.0, 0.0, 1.0],
    ]),
    VisionType.TRITANOPIA: np.array([
        [0.95, 0.0, 0.05],
        [0.0, 1.0, 0.0],
        [0.433, 0.0, 0.567],
    ]),
    VisionType.ACHROMATOPSIA: np.array([
        [0.299, 0.587, 0.114],
        [0.299, 0.587, 0.114],
        [0.299, 0.587, 0.114],
    ]),
    VisionType.PROTANOMALY: np.array([
        [0.817, 0.183, 0.0],
        [0.333, 0.667, 0.0],
        [0.0, 0.0, 1.0],
    ]),
    VisionType.DEUTERANOMALY: np.array([
        [0.8, 0.2, 0.0],
        [0.258, 0.742, 0.0],
        [0.0, 0.0, 1.0],
    ]),
    VisionType.TRITANOMALY: np.array([
        [0.967, 0.0, 0.033],
        [0.0, 1.0, 0.0],
        [0.733, 0.0, 0.267],
    ]),
}


@dataclass(frozen=True)
class WCAGCompliance:
    """Pass flags for normal-size and large text at one WCAG level."""
    normal: bool
    large: bool

    @property
    def overall(self) -> bool:
        return self.normal or self.large


@dataclass(frozen=True)
class AccessibilityContext:
    """Text rendering context; sizes are in points."""
    font_size: float = 14.0
    is_bold: bool = False

    @property
    def is_large_text(self) -> bool:
        return (self.is_bold and self.font_size >= 14) or (not self.is_bold and self.font_size >= 18)


@dataclass
class ContrastAnalysis:
    ratio: float
    wcag_aa: WCAGCompliance
    wcag_aaa: WCAGCompliance
    is_large_text: bool = False
    recommendations: List[str] = field(default_factory=list)

    @property
    def grade(self) -> str:
        if self.wcag_aaa.overall:
            return "AAA"
        if self.wcag_aa.overall:
            return "AA"
        return "Fail"

    @property
    def passes_aa(self) -> bool:
        """AA result for the text size this analysis was made for."""
        return self.wcag_aa.large if self.is_large_text else self.wcag_aa.normal

    @property
    def passes_aaa(self) -> bool:
        return self.wcag_aaa.large if self.is_large_text else self.wcag_aaa.normal

    def to_dict(self) -> dict:
        return {
            'ratio': self.ratio,
            'grade': self.grade,
            'wcag_aa': {'normal': self.wcag_aa.normal, 'large': self.wcag_aa.large},
            'wcag_aaa': {'normal': self.wcag_aaa.normal, 'large': self.wcag_aaa.large},
            'is_large_text': self.is_large_text,
            'passes_aa': self.passes_aa,
            'passes_aaa': self.passes_aaa,
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class AccessibilityRecommendation:
    type: RecommendationType
    severity: Severity
    message: str
    suggestion: str

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'severity': self.severity.value,
            'message': self.message,
            'suggestion': self.suggestion,
        }


@dataclass(frozen=True)
class VisionAnalysis:
    """How one color changes under a simulated vision type."""
    vision_type: VisionType
    simulated_color: RGBColor
    color_difference: float
    confusion_severity: ConfusionSeverity


def contrast_ratio(color1: ColorLike, color2: ColorLike) -> float:
    """
    WCAG contrast ratio between two colors.

    Symmetric, 1.0 for identical colors and 21.0 for black on white.
    """
    l1 = relative_luminance(as_rgb(color1))
    l2 = relative_luminance(as_rgb(color2))
    lighter, darker = max(l1, l2), min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def wcag_aa(ratio: float) -> WCAGCompliance:
    return WCAGCompliance(normal=ratio >= AA_NORMAL, large=ratio >= AA_LARGE)


def wcag_aaa(ratio: float) -> WCAGCompliance:
    return WCAGCompliance(normal=ratio >= AAA_NORMAL, large=ratio >= AAA_LARGE)


def analyze_contrast(
    text: ColorLike,
    background: ColorLike,
    font_size: float = 14.0,
    is_bold: bool = False
) -> ContrastAnalysis:
    """
    Analyze text/background contrast against WCAG AA and AAA.

    Both size flags are always computed from the fixed thresholds; the font
    size and weight only decide which flag passes_aa/passes_aaa report.

    Args:
        text: Foreground color
        background: Background color
        font_size: Font size in points
        is_bold: Whether the text is bold

    Returns:
        ContrastAnalysis with ratio, compliance flags and recommendations
    """
    ratio = contrast_ratio(text, background)
    level_aa = wcag_aa(ratio)
    level_aaa = wcag_aaa(ratio)

    recommendations = []
    if not level_aa.overall:
        recommendations.append("Does not meet WCAG AA standards")
    if not level_aaa.overall:
        recommendations.append("Does not meet WCAG AAA standards")
    if ratio < AA_NORMAL:
        recommendations.append("Consider using a darker text color or lighter background")

    context = AccessibilityContext(font_size=font_size, is_bold=is_bold)
    return ContrastAnalysis(
        ratio=ratio,
        wcag_aa=level_aa,
        wcag_aaa=level_aaa,
        is_large_text=context.is_large_text,
        recommendations=recommendations
    )


def simulate_color_blindness(color: ColorLike, vision_type: VisionType) -> RGBColor:
    """
    Approximate how a color appears under a color vision deficiency.

    The channel mix runs on stored (gamma-encoded) values. Alpha is kept.
    """
    rgb = as_rgb(color)
    r, g, b = VISION_MATRICES[vision_type] @ rgb.as_array()
    return RGBColor(float(r), float(g), float(b), rgb.alpha)


def simulate_image(pixels: np.ndarray, vision_type: VisionType) -> np.ndarray:
    """
    Apply a vision simulation to a whole image.

    Args:
        pixels: Array (H, W, 3|4), uint8 (0-255) or float (0-1)
        vision_type: Vision type to simulate

    Returns:
        Simulated image with the input's shape, dtype and alpha channel
    """
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 image, got shape {pixels.shape}")

    is_integer = np.issubdtype(pixels.dtype, np.integer)
    rgb = pixels[..., :3].astype(np.float64)
    if is_integer:
        rgb /= 255.0

    simulated = np.clip(rgb @ VISION_MATRICES[vision_type].T, 0.0, 1.0)

    result = pixels.copy()
    if is_integer:
        result[..., :3] = np.round(simulated * 255.0).astype(pixels.dtype)
    else:
        result[..., :3] = simulated.astype(pixels.dtype)
    return result


def _confusion_severity(difference: float) -> ConfusionSeverity:
    if difference < 5:
        return ConfusionSeverity.NONE
    if difference < 15:
        return ConfusionSeverity.MILD
    if difference < 30:
        return ConfusionSeverity.MODERATE
    return ConfusionSeverity.SEVERE


def analyze_color_confusion(
    color: ColorLike,
    vision_types: Iterable[VisionType] = tuple(VisionType)
) -> List[VisionAnalysis]:
    """
    Measure how far a color shifts under each vision type.

    The shift is the Euclidean distance (Delta E 1976) between the original
    and simulated color in LAB.
    """
    rgb = as_rgb(color)
    original_lab = rgb_to_lab(rgb)

    analyses = []
    for vision_type in vision_types:
        simulated = simulate_color_blindness(rgb, vision_type)
        difference = delta_e_76(original_lab, rgb_to_lab(simulated))
        analyses.append(VisionAnalysis(
            vision_type=vision_type,
            simulated_color=simulated,
            color_difference=difference,
            confusion_severity=_confusion_severity(difference)
        ))

    return analyses


def generate_accessibility_recommendations(
    colors: Sequence[ColorLike],
    context: AccessibilityContext = AccessibilityContext()
) -> List[AccessibilityRecommendation]:
    """
    Collect accessibility problems of a color set.

    Emits, in order: one HIGH contrast recommendation per unordered pair
    failing both AA flags, one MEDIUM recommendation per color and
    deficiency whose simulated luminance moves by more than 0.1, and a
    single LOW variety recommendation for fewer than 3 colors.
    """
    colors = [as_rgb(c) for c in colors]
    recommendations = []

    minimum = "3.0" if context.is_large_text else "4.5"
    for (i, first), (j, second) in combinations(enumerate(colors), 2):
        analysis = analyze_contrast(first, second, context.font_size, context.is_bold)
        if not analysis.wcag_aa.overall:
            recommendations.append(AccessibilityRecommendation(
                type=RecommendationType.CONTRAST,
                severity=Severity.HIGH,
                message=f"Low contrast between colors {i + 1} and {j + 1} ({analysis.ratio:.1f}:1)",
                suggestion=f"Increase contrast to meet WCAG AA standards (minimum {minimum}:1)"
            ))

    for index, color in enumerate(colors):
        original = relative_luminance(color)
        for vision_type in COLOR_BLINDNESS_TYPES:
            simulated = relative_luminance(simulate_color_blindness(color, vision_type))
            if abs(original - simulated) > 0.1:
                recommendations.append(AccessibilityRecommendation(
                    type=RecommendationType.COLOR_BLINDNESS,
                    severity=Severity.MEDIUM,
                    message=f"Color {index + 1} may be confusing for {vision_type.value} users",
                    suggestion="Consider adding patterns or text labels to distinguish this color"
                ))

    if len(colors) < 3:
        recommendations.append(AccessibilityRecommendation(
            type=RecommendationType.VARIETY,
            severity=Severity.LOW,
            message="Limited color palette may reduce accessibility",
            suggestion="Consider adding more colors for better visual distinction"
        ))

    logger.debug(f"{len(recommendations)} accessibility recommendations for {len(colors)} colors")
    return recommendations


def suggest_accessible_colors(base: ColorLike, count: int = 5) -> List[RGBColor]:
    """
    Offer darker and lighter variants of a color for text use.

    Returns the base, two darker variants (lightness -0.3 and -0.6, never
    below 0.1) and two lighter ones (+0.3 and +0.6, capped at 1.0),
    truncated to count.
    """
    rgb = as_rgb(base)
    hsl = rgb_to_hsl(rgb)

    suggestions = [rgb]
    for step in (1, 2):
        suggestions.append(hsl_to_rgb(HSLColor(hsl.h, hsl.s, max(0.1, hsl.l - step * 0.3))))
    for step in (1, 2):
        suggestions.append(hsl_to_rgb(HSLColor(hsl.h, hsl.s, min(1.0, hsl.l + step * 0.3))))

    return suggestions[:max(0, count)]
