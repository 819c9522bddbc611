"""Gradient construction, stepping, optimization and analysis."""
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np
from sklearn.utils import check_random_state

from palettelab.accessibility import (
    AccessibilityContext, AccessibilityRecommendation, contrast_ratio, generate_accessibility_recommendations
)
from palettelab.color_math import (
    ColorLike, adjust_saturation, as_rgb, hsl_to_rgb, relative_luminance, rgb_to_hsl, with_lightness
)
from palettelab.harmony import analyze_harmony_quality, generate_harmony
from palettelab.kmeans import RandomStateLike
from palettelab.types import (
    GradientPurpose, GradientStyle, GradientType, HarmonyType, HSLColor, InvalidGradientError, RGBColor
)

logger = logging.getLogger(__name__)

# Stop positions for small gradients; larger ones are spaced evenly
LOCATION_TABLES = {
    2: (0.0, 1.0),
    3: (0.0, 0.5, 1.0),
    4: (0.0, 0.33, 0.67, 1.0),
    5: (0.0, 0.25, 0.5, 0.75, 1.0),
}

MIN_ADJACENT_CONTRAST = {
    GradientPurpose.UI_BACKGROUND: 1.5,
    GradientPurpose.TEXT_OVERLAY: 4.5,
}
MAX_CONTRAST_ATTEMPTS = 10


@dataclass(frozen=True)
class GradientSpec:
    """
    Color stops of a gradient.

    Raises:
        InvalidGradientError: If colors and locations differ in length,
            there are fewer than 2 stops, a location is outside [0, 1],
            locations decrease, or they do not start at 0 and end at 1
    """
    colors: Tuple[RGBColor, ...]
    locations: Tuple[float, ...]
    type: GradientType = GradientType.LINEAR
    angle: float = 0.0

    def __post_init__(self):
        colors = tuple(as_rgb(c) for c in self.colors)
        locations = tuple(float(v) for v in self.locations)
        object.__setattr__(self, 'colors', colors)
        object.__setattr__(self, 'locations', locations)

        if len(colors) != len(locations):
            raise InvalidGradientError(
                f"Gradient has {len(colors)} colors but {len(locations)} locations"
            )
        if len(colors) < 2:
            raise InvalidGradientError(f"Gradient needs at least 2 stops, got {len(colors)}")
        if any(not 0.0 <= loc <= 1.0 for loc in locations):
            raise InvalidGradientError(f"Gradient locations must lie in [0, 1]: {locations}")
        if any(b < a for a, b in zip(locations, locations[1:])):
            raise InvalidGradientError(f"Gradient locations must be non-decreasing: {locations}")
        if locations[0] != 0.0 or locations[-1] != 1.0:
            raise InvalidGradientError(f"Gradient locations must start at 0 and end at 1: {locations}")

    def to_dict(self) -> dict:
        return {
            'colors': [c.to_hex() for c in self.colors],
            'locations': list(self.locations),
            'type': self.type.value,
            'angle': self.angle,
        }


@dataclass
class GradientAnalysis:
    color_count: int = 0
    has_transparency: bool = False
    contrast_ratios: List[float] = field(default_factory=list)
    max_contrast_ratio: float = 1.0
    min_contrast_ratio: float = 1.0
    harmony_score: float = 0.0
    harmony_strengths: List[str] = field(default_factory=list)
    harmony_suggestions: List[str] = field(default_factory=list)
    accessibility_issues: List[AccessibilityRecommendation] = field(default_factory=list)

    @property
    def quality_score(self) -> float:
        """Weighted 0-1 blend of harmony, peak contrast and issue count."""
        harmony = min(100.0, self.harmony_score) / 100.0
        contrast = min(100.0, self.max_contrast_ratio * 10.0) / 100.0
        accessibility = max(0.0, 1.0 - len(self.accessibility_issues) * 0.2)
        return harmony * 0.4 + contrast * 0.3 + accessibility * 0.3

    @property
    def overall_quality(self) -> str:
        score = self.quality_score
        if score >= 0.8:
            return "Excellent"
        if score >= 0.6:
            return "Good"
        if score >= 0.4:
            return "Fair"
        if score >= 0.2:
            return "Poor"
        return "Needs Improvement"

    def to_dict(self) -> dict:
        return {
            'color_count': self.color_count,
            'has_transparency': self.has_transparency,
            'contrast_ratios': list(self.contrast_ratios),
            'max_contrast_ratio': self.max_contrast_ratio,
            'min_contrast_ratio': self.min_contrast_ratio,
            'harmony_score': self.harmony_score,
            'harmony_strengths': list(self.harmony_strengths),
            'harmony_suggestions': list(self.harmony_suggestions),
            'accessibility_issues': [issue.to_dict() for issue in self.accessibility_issues],
            'overall_quality': self.overall_quality,
        }


def calculate_locations(count: int) -> Tuple[float, ...]:
    """Default stop locations for count stops (count >= 2)."""
    if count in LOCATION_TABLES:
        return LOCATION_TABLES[count]
    return tuple(i / (count - 1) for i in range(count))


def _balanced_locations(count: int) -> Tuple[float, ...]:
    return tuple(i / (count - 1) for i in range(count))


def build_gradient(
    colors: Sequence[ColorLike],
    gradient_type: GradientType = GradientType.LINEAR,
    angle: float = 0.0
) -> GradientSpec:
    """
    Build a gradient from colors with default stop locations.

    A single color is duplicated into a flat two-stop gradient.

    Raises:
        InvalidGradientError: If colors is empty
    """
    colors = [as_rgb(c) for c in colors]
    if not colors:
        raise InvalidGradientError("Cannot build a gradient from no colors")

    if len(colors) == 1:
        colors = [colors[0], colors[0]]

    return GradientSpec(tuple(colors), calculate_locations(len(colors)), gradient_type, angle)


def stepped_variant(gradient: GradientSpec) -> GradientSpec:
    """
    Turn a gradient into hard color bands.

    Every color appears twice; band i ends just before (i+1)/n and band
    i+1 starts just after it. The half-width shrinks for many bands so
    locations never decrease.
    """
    colors = gradient.colors
    n = len(colors)
    half_width = min(0.01, 0.25 / n)

    stepped_colors = []
    locations = [0.0]
    for index, color in enumerate(colors):
        stepped_colors.extend([color, color])
        if index < n - 1:
            boundary = (index + 1) / n
            locations.extend([boundary - half_width, boundary + half_width])
    locations.append(1.0)

    return GradientSpec(tuple(stepped_colors), tuple(locations), gradient.type, gradient.angle)


def harmony_gradient(
    seed: ColorLike,
    harmony_type: HarmonyType,
    style: GradientStyle = GradientStyle.SMOOTH
) -> GradientSpec:
    """Build a gradient from the harmony of a seed color."""
    colors = generate_harmony(seed, harmony_type)

    if style is GradientStyle.STEPPED:
        return stepped_variant(build_gradient(colors, GradientType.LINEAR))
    if style is GradientStyle.RADIAL:
        return build_gradient(colors, GradientType.RADIAL)
    if style is GradientStyle.CONIC:
        return build_gradient(colors, GradientType.CONIC)
    return build_gradient(colors, GradientType.LINEAR)


def _scale_lightness(color: RGBColor, factor: float) -> RGBColor:
    lightness = rgb_to_hsl(color).l
    if lightness <= 0.0 and factor > 1.0:
        # Scaling cannot lift pure black
        return with_lightness(color, 0.1)
    return with_lightness(color, lightness * factor)


def _ensure_adjacent_contrast(colors: List[RGBColor], min_ratio: float) -> List[RGBColor]:
    adjusted = list(colors)

    for i in range(len(adjusted) - 1):
        attempts = 0
        while contrast_ratio(adjusted[i], adjusted[i + 1]) < min_ratio and attempts < MAX_CONTRAST_ATTEMPTS:
            previous, current = adjusted[i], adjusted[i + 1]
            if relative_luminance(previous) > relative_luminance(current):
                adjusted[i + 1] = _scale_lightness(current, 0.7)
            else:
                adjusted[i + 1] = _scale_lightness(current, 1.3)
            attempts += 1

        if attempts:
            logger.debug(
                f"Stop {i + 1}: {attempts} adjustments, ratio now "
                f"{contrast_ratio(adjusted[i], adjusted[i + 1]):.2f}"
            )

    return adjusted


def optimize_gradient(gradient: GradientSpec, purpose: GradientPurpose) -> GradientSpec:
    """
    Adjust a gradient for its intended use.

    UI backgrounds and text overlays push each stop away from its
    predecessor until the pair reaches a minimum contrast (1.5 and 4.5),
    with at most 10 adjustments per pair, and space stops evenly. Accents
    get a saturation boost and keep their locations. Artistic gradients
    are returned unchanged.
    """
    if purpose is GradientPurpose.ARTISTIC:
        return gradient

    if purpose is GradientPurpose.ACCENT:
        colors = tuple(adjust_saturation(c, 1.2) for c in gradient.colors)
        return GradientSpec(colors, gradient.locations, gradient.type, gradient.angle)

    colors = _ensure_adjacent_contrast(list(gradient.colors), MIN_ADJACENT_CONTRAST[purpose])
    return GradientSpec(tuple(colors), _balanced_locations(len(colors)), gradient.type, gradient.angle)


def analyze_gradient(gradient: GradientSpec) -> GradientAnalysis:
    """Combine contrast, harmony and accessibility findings for a gradient."""
    colors = list(gradient.colors)

    ratios = sorted(
        (contrast_ratio(colors[i], colors[j]) for i in range(len(colors)) for j in range(i + 1, len(colors))),
        reverse=True
    )
    harmony = analyze_harmony_quality(colors)
    issues = generate_accessibility_recommendations(colors, AccessibilityContext(font_size=14, is_bold=False))

    return GradientAnalysis(
        color_count=len(colors),
        has_transparency=any(c.alpha < 1.0 for c in colors),
        contrast_ratios=ratios,
        max_contrast_ratio=ratios[0] if ratios else 1.0,
        min_contrast_ratio=ratios[-1] if ratios else 1.0,
        harmony_score=harmony.score,
        harmony_strengths=harmony.strengths,
        harmony_suggestions=harmony.suggestions,
        accessibility_issues=issues
    )


def generate_variations(
    gradient: GradientSpec,
    count: int = 3,
    random_state: RandomStateLike = None
) -> List[GradientSpec]:
    """
    Randomly perturb a gradient.

    Each color's hue moves up to 10 degrees and its saturation and
    lightness up to 0.1. Interior stops move up to 0.05; locations are
    then made non-decreasing with the endpoints kept at 0 and 1.

    Args:
        gradient: Gradient to vary
        count: Number of variations
        random_state: Seed or RandomState for reproducible variations

    Returns:
        List of count gradients with the original's type and angle
    """
    rng = np.random.RandomState() if random_state is None else check_random_state(random_state)
    base_locations = np.array(gradient.locations)

    variations = []
    for _ in range(count):
        colors = []
        for color in gradient.colors:
            hsl = rgb_to_hsl(color)
            colors.append(hsl_to_rgb(HSLColor(
                hsl.h + rng.uniform(-10.0, 10.0),
                hsl.s + rng.uniform(-0.1, 0.1),
                hsl.l + rng.uniform(-0.1, 0.1)
            ), color.alpha))

        locations = base_locations + rng.uniform(-0.05, 0.05, size=len(base_locations))
        locations = np.maximum.accumulate(np.clip(locations, 0.0, 1.0))
        locations[0] = 0.0
        locations[-1] = 1.0

        variations.append(GradientSpec(tuple(colors), tuple(locations), gradient.type, gradient.angle))

    return variations
