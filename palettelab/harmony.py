"""Color harmony generation and harmony quality scoring."""
import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Sequence, Tuple

import numpy as np

from palettelab.color_math import ColorLike, as_hsl, hsl_to_rgb
from palettelab.types import HarmonyType, HSLColor, RGBColor

logger = logging.getLogger(__name__)

# Hue offsets in degrees applied to the seed hue
HUE_OFFSETS: Dict[HarmonyType, Tuple[float, ...]] = {
    HarmonyType.COMPLEMENTARY: (0.0, 180.0),
    HarmonyType.ANALOGOUS: (-60.0, -30.0, 0.0, 30.0, 60.0),
    HarmonyType.TRIADIC: (0.0, 120.0, 240.0),
    HarmonyType.TETRADIC: (0.0, 90.0, 180.0, 270.0),
    HarmonyType.SPLIT_COMPLEMENTARY: (0.0, 180.0 - 30.0, 180.0 + 30.0),
    HarmonyType.SQUARE: (0.0, 90.0, 180.0, 270.0),
}

MONOCHROMATIC_LIGHTNESS = (0.2, 0.4, 0.6, 0.8, 1.0)


@dataclass
class HarmonyAnalysis:
    """Harmony score (0-100) with the reasons behind it."""
    score: float
    strengths: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def grade(self) -> str:
        if self.score >= 90:
            return "Excellent"
        if self.score >= 80:
            return "Very Good"
        if self.score >= 70:
            return "Good"
        if self.score >= 60:
            return "Fair"
        return "Needs Improvement"

    def to_dict(self) -> dict:
        return {
            'score': self.score,
            'grade': self.grade,
            'strengths': list(self.strengths),
            'suggestions': list(self.suggestions),
        }


def generate_harmony(seed: ColorLike, harmony_type: HarmonyType) -> List[RGBColor]:
    """
    Derive related colors from a seed color.

    Hue schemes keep the seed's saturation and lightness; monochromatic
    keeps hue and saturation and steps lightness from 0.2 to 1.0.

    Args:
        seed: Seed color (RGB or HSL)
        harmony_type: Scheme to apply

    Returns:
        Colors in scheme order; the seed's own hue comes first except for
        analogous (ordered by offset) and monochromatic (ordered by lightness)
    """
    hsl = as_hsl(seed)

    if harmony_type is HarmonyType.MONOCHROMATIC:
        return [hsl_to_rgb(HSLColor(hsl.h, hsl.s, lightness)) for lightness in MONOCHROMATIC_LIGHTNESS]

    return [
        hsl_to_rgb(HSLColor(hsl.h + offset, hsl.s, hsl.l))
        for offset in HUE_OFFSETS[harmony_type]
    ]


def generate_advanced_harmony(
    seed: ColorLike,
    harmony_type: HarmonyType,
    variations: int = 3
) -> List[List[RGBColor]]:
    """
    Generate a harmony plus saturation/lightness variations of it.

    Variation i of n scales saturation by 0.8 + 0.4 * i/n and lightness by
    0.9 + 0.2 * i/n.
    """
    base = generate_harmony(seed, harmony_type)
    if variations <= 1:
        return [base]

    harmonies = [base]
    for variation in range(1, variations):
        factor = variation / variations
        varied = []
        for color in base:
            hsl = as_hsl(color)
            varied.append(hsl_to_rgb(HSLColor(
                hsl.h,
                hsl.s * (0.8 + factor * 0.4),
                hsl.l * (0.9 + factor * 0.2)
            )))
        harmonies.append(varied)

    return harmonies


def _hue_distances(hues: Sequence[float]) -> List[float]:
    distances = []
    for h1, h2 in combinations(hues, 2):
        diff = abs(h2 - h1)
        distances.append(min(diff, 360.0 - diff))
    return distances


def _score_hues(hues: List[float]) -> Tuple[float, List[str], List[str]]:
    score = 0.0
    strengths = []
    suggestions = []

    distances = _hue_distances(hues)

    if any(170 <= d <= 190 for d in distances):
        score += 30.0
        strengths.append("Good complementary relationships found")

    if any(110 <= d <= 130 for d in distances):
        score += 25.0
        strengths.append("Triadic harmony detected")

    if any(20 <= d <= 40 for d in distances):
        score += 20.0
        strengths.append("Analogous colors work well together")

    if hues[-1] - hues[0] < 30:
        score -= 15.0
        suggestions.append("Colors are too similar - consider adding more variety")

    return score, strengths, suggestions


def _score_saturation(saturations: np.ndarray) -> Tuple[float, List[str], List[str]]:
    variance = float(np.var(saturations))

    if 0.01 < variance < 0.1:
        return 20.0, ["Good saturation balance"], []
    if variance < 0.01:
        return -10.0, [], ["Saturation is too uniform - consider varying saturation levels"]
    return 0.0, [], []


def _score_lightness(lightness: np.ndarray) -> Tuple[float, List[str], List[str]]:
    score = 0.0
    strengths = []
    suggestions = []

    variance = float(np.var(lightness))
    if 0.01 < variance < 0.1:
        score += 20.0
        strengths.append("Good brightness balance")
    elif variance < 0.01:
        score -= 10.0
        suggestions.append("Brightness is too uniform - consider varying brightness levels")

    spread = float(lightness.max() - lightness.min())
    if spread > 0.5:
        score += 15.0
        strengths.append("Good contrast range")
    elif spread < 0.2:
        suggestions.append("Low contrast - consider adding darker and lighter shades")

    return score, strengths, suggestions


def analyze_harmony_quality(colors: Sequence[ColorLike]) -> HarmonyAnalysis:
    """
    Score how well a set of colors works together.

    Hue relationships, saturation balance and lightness balance are each
    scored; the result is their plain average clamped to [0, 100].

    Args:
        colors: Colors to analyze (RGB or HSL)

    Returns:
        HarmonyAnalysis; score 0 for fewer than 2 colors
    """
    if len(colors) < 2:
        return HarmonyAnalysis(score=0.0, suggestions=["Need at least 2 colors for harmony analysis"])

    hsl_colors = [as_hsl(c) for c in colors]
    hues = sorted(c.h for c in hsl_colors)
    saturations = np.array([c.s for c in hsl_colors])
    lightness = np.array([c.l for c in hsl_colors])

    total = 0.0
    strengths: List[str] = []
    suggestions: List[str] = []

    for part_score, part_strengths, part_suggestions in (
        _score_hues(hues),
        _score_saturation(saturations),
        _score_lightness(lightness),
    ):
        total += part_score
        strengths.extend(part_strengths)
        suggestions.extend(part_suggestions)

    score = min(100.0, max(0.0, total / 3.0))
    return HarmonyAnalysis(score=score, strengths=strengths, suggestions=suggestions)


def determine_best_harmony(colors: Sequence[ColorLike]) -> HarmonyType:
    """
    Pick a harmony scheme from the hue spread of extracted colors.

    Only complementary, triadic or analogous are ever chosen here; other
    schemes are reached by explicit selection.
    """
    if len(colors) < 2:
        return HarmonyType.COMPLEMENTARY

    hues = sorted(as_hsl(c).h for c in colors)
    hue_range = hues[-1] - hues[0]

    if hue_range > 180:
        return HarmonyType.COMPLEMENTARY
    if hue_range > 90:
        return HarmonyType.TRIADIC
    return HarmonyType.ANALOGOUS
