"""Palette assembly from extracted colors, plus palette analysis and tuning."""
import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import List, Optional, Sequence, Tuple

import numpy as np

from palettelab.accessibility import (
    AccessibilityContext, AccessibilityRecommendation, analyze_color_confusion, contrast_ratio,
    generate_accessibility_recommendations
)
from palettelab.color_math import ColorLike, as_rgb, hsl_to_rgb, is_cool, is_neutral, is_warm, rgb_to_hsl
from palettelab.extraction import PaletteExtractor
from palettelab.harmony import (
    analyze_harmony_quality, determine_best_harmony, generate_advanced_harmony, generate_harmony
)
from palettelab.raster_ingest import ImageInput
from palettelab.types import (
    ConfusionSeverity, ExtractionResult, HarmonyType, HSLColor, PaletteConfig, PalettePurpose,
    PaletteSource, PaletteStyle, RGBColor, VisionType
)

logger = logging.getLogger(__name__)

# Harmony used by each single-scheme palette style
STYLE_HARMONY = {
    PaletteStyle.MONOCHROMATIC: HarmonyType.MONOCHROMATIC,
    PaletteStyle.COMPLEMENTARY: HarmonyType.COMPLEMENTARY,
    PaletteStyle.TRIADIC: HarmonyType.TRIADIC,
    PaletteStyle.ANALOGOUS: HarmonyType.ANALOGOUS,
}

UI_MIN_CONTRAST = 3.0
ACCESSIBLE_MIN_CONTRAST = 4.5
UI_LIGHTNESS_RANGE = 0.6
BRANDING_MIN_RATIO = 2.0


@dataclass(frozen=True)
class ColorPalette:
    colors: Tuple[RGBColor, ...]
    name: str
    style: PaletteStyle
    source: PaletteSource
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'style': self.style.value,
            'source': self.source.value,
            'confidence': self.confidence,
            'colors': [c.to_hex() for c in self.colors],
        }


@dataclass
class PaletteAnalysis:
    color_count: int = 0
    harmony_score: float = 0.0
    harmony_strengths: List[str] = field(default_factory=list)
    harmony_suggestions: List[str] = field(default_factory=list)
    contrast_ratios: List[float] = field(default_factory=list)
    max_contrast_ratio: float = 1.0
    min_contrast_ratio: float = 1.0
    accessibility_issues: List[AccessibilityRecommendation] = field(default_factory=list)
    has_warm_colors: bool = False
    has_cool_colors: bool = False
    has_neutral_colors: bool = False
    average_lightness: float = 0.0
    average_saturation: float = 0.0

    @property
    def quality_score(self) -> float:
        harmony = min(100.0, self.harmony_score) / 100.0
        contrast = min(1.0, self.max_contrast_ratio / 7.0)
        accessibility = max(0.0, 1.0 - len(self.accessibility_issues) * 0.15)
        return harmony * 0.3 + contrast * 0.3 + accessibility * 0.4

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
            'harmony_score': self.harmony_score,
            'harmony_strengths': list(self.harmony_strengths),
            'harmony_suggestions': list(self.harmony_suggestions),
            'contrast_ratios': list(self.contrast_ratios),
            'max_contrast_ratio': self.max_contrast_ratio,
            'min_contrast_ratio': self.min_contrast_ratio,
            'accessibility_issues': [issue.to_dict() for issue in self.accessibility_issues],
            'has_warm_colors': self.has_warm_colors,
            'has_cool_colors': self.has_cool_colors,
            'has_neutral_colors': self.has_neutral_colors,
            'average_lightness': self.average_lightness,
            'average_saturation': self.average_saturation,
            'overall_quality': self.overall_quality,
        }


def prominence_score(color: ColorLike) -> float:
    """Favor saturated colors of mid-to-high lightness."""
    hsl = rgb_to_hsl(as_rgb(color))
    return hsl.s * 0.4 + hsl.l * 0.4 + (1.0 - abs(hsl.l - 0.5) * 2.0) * 0.2


def sort_by_prominence(colors: Sequence[ColorLike]) -> List[RGBColor]:
    """Sort colors by descending prominence score; ties keep input order."""
    return sorted((as_rgb(c) for c in colors), key=prominence_score, reverse=True)


def unique_colors(colors: Sequence[ColorLike], min_ratio: float = 1.2) -> List[RGBColor]:
    """
    Drop colors too close to ones already kept.

    A color is kept only if its contrast ratio with every kept color
    exceeds min_ratio; the first color is always kept.
    """
    kept: List[RGBColor] = []
    for color in (as_rgb(c) for c in colors):
        if all(contrast_ratio(color, existing) > min_ratio for existing in kept):
            kept.append(color)
    return kept


def _empty_palette(style: PaletteStyle) -> ColorPalette:
    return ColorPalette(colors=(), name="Empty Palette", style=style, source=PaletteSource.GENERATED)


class PaletteBuilder:
    """Builds styled palettes on top of a PaletteExtractor."""

    def __init__(
        self,
        extractor: Optional[PaletteExtractor] = None,
        config: Optional[PaletteConfig] = None
    ):
        self.extractor = extractor or PaletteExtractor()
        self.config = config or PaletteConfig()

    def extract(self, image: ImageInput, count: int = 5) -> ExtractionResult:
        """
        Extract candidate colors, retrying with dark pixels included.

        Low-confidence results (dark or busy images) are re-extracted
        without the near-black filter; the retry wins only if it is more
        confident.
        """
        extraction_count = max(count, self.config.min_extraction_count)
        result = self.extractor.extract(image, extraction_count, avoid_near_black=True)

        if result.confidence < self.config.retry_confidence:
            logger.info(
                f"Low confidence {result.confidence:.2f}, retrying with near-black pixels included"
            )
            retry = self.extractor.extract(image, extraction_count, avoid_near_black=False)
            if retry.confidence > result.confidence:
                result = retry

        return result

    def generate_palette(
        self,
        image: ImageInput,
        style: PaletteStyle = PaletteStyle.ADAPTIVE,
        count: int = 5
    ) -> ColorPalette:
        """
        Generate a palette of up to count colors from an image.

        Args:
            image: Pixel buffer or PIL image
            style: Palette style
            count: Target number of colors

        Returns:
            ColorPalette; "Empty Palette" when nothing could be extracted
        """
        result = self.extract(image, count)
        palette = self.palette_from_colors(list(result.colors), style, count)
        return ColorPalette(palette.colors, palette.name, palette.style, palette.source, result.confidence)

    def palette_from_colors(
        self,
        colors: Sequence[RGBColor],
        style: PaletteStyle = PaletteStyle.ADAPTIVE,
        count: int = 5
    ) -> ColorPalette:
        """Arrange already extracted colors (ranked by dominance) into a palette."""
        if not colors:
            return _empty_palette(style)

        if style is PaletteStyle.ADAPTIVE:
            return ColorPalette(
                colors=tuple(sort_by_prominence(colors)[:count]),
                name="Adaptive Palette",
                style=style,
                source=PaletteSource.IMAGE
            )

        base = colors[0]

        if style is PaletteStyle.HARMONIC:
            harmony_type = determine_best_harmony(colors)
            combined = unique_colors(list(colors) + generate_harmony(base, harmony_type),
                                     self.config.unique_min_ratio)
            return ColorPalette(
                colors=tuple(sort_by_prominence(combined)[:count]),
                name=f"{harmony_type.value} Palette",
                style=style,
                source=PaletteSource.IMAGE
            )

        harmony_type = STYLE_HARMONY[style]
        harmony_colors = generate_harmony(base, harmony_type)

        if style is PaletteStyle.COMPLEMENTARY and count > len(harmony_colors):
            extra = generate_advanced_harmony(base, harmony_type, variations=count - len(harmony_colors))
            harmony_colors += [color for variation in extra for color in variation]

        return ColorPalette(
            colors=tuple(harmony_colors[:count]),
            name=f"{style.value} Palette",
            style=style,
            source=PaletteSource.GENERATED
        )


def analyze_palette(palette: ColorPalette) -> PaletteAnalysis:
    """Summarize harmony, contrast, accessibility and temperature of a palette."""
    colors = list(palette.colors)
    analysis = PaletteAnalysis(color_count=len(colors))

    if len(colors) >= 2:
        harmony = analyze_harmony_quality(colors)
        analysis.harmony_score = harmony.score
        analysis.harmony_strengths = harmony.strengths
        analysis.harmony_suggestions = harmony.suggestions

        ratios = sorted((contrast_ratio(a, b) for a, b in combinations(colors, 2)), reverse=True)
        analysis.contrast_ratios = ratios
        analysis.max_contrast_ratio = ratios[0]
        analysis.min_contrast_ratio = ratios[-1]

    analysis.accessibility_issues = generate_accessibility_recommendations(
        colors, AccessibilityContext(font_size=14, is_bold=False)
    )

    analysis.has_warm_colors = any(is_warm(c) for c in colors)
    analysis.has_cool_colors = any(is_cool(c) for c in colors)
    analysis.has_neutral_colors = any(is_neutral(c) for c in colors)

    if colors:
        hsl_colors = [rgb_to_hsl(c) for c in colors]
        analysis.average_lightness = float(np.mean([c.l for c in hsl_colors]))
        analysis.average_saturation = float(np.mean([c.s for c in hsl_colors]))

    return analysis


def _scaled(color: RGBColor, saturation: float = 1.0, lightness: float = 1.0) -> RGBColor:
    hsl = rgb_to_hsl(color)
    return hsl_to_rgb(HSLColor(hsl.h, hsl.s * saturation, hsl.l * lightness), color.alpha)


def _ensure_pairwise_contrast(colors: List[RGBColor], min_ratio: float) -> List[RGBColor]:
    adjusted = list(colors)
    for i, j in combinations(range(len(adjusted)), 2):
        if contrast_ratio(adjusted[i], adjusted[j]) >= min_ratio:
            continue
        # The less saturated of the two gets the boost
        if rgb_to_hsl(adjusted[i]).s < rgb_to_hsl(adjusted[j]).s:
            adjusted[i] = _scaled(adjusted[i], saturation=1.2)
        else:
            adjusted[j] = _scaled(adjusted[j], saturation=1.2)
    return adjusted


def _spread_lightness(colors: List[RGBColor], target_range: float) -> List[RGBColor]:
    if not colors:
        return colors

    hsl_colors = [rgb_to_hsl(c) for c in colors]
    lightness = np.array([c.l for c in hsl_colors])
    low, high = float(lightness.min()), float(lightness.max())

    if high - low >= target_range:
        return colors

    span = high - low
    offset = (1.0 - target_range) / 2.0
    spread = []
    for color, hsl, value in zip(colors, hsl_colors, lightness):
        normalized = (value - low) / span if span > 0 else 0.5
        spread.append(hsl_to_rgb(HSLColor(hsl.h, hsl.s, normalized * target_range + offset), color.alpha))
    return spread


def _severe_confusion(color: RGBColor) -> bool:
    analyses = analyze_color_confusion(color, (VisionType.DEUTERANOPIA, VisionType.PROTANOPIA))
    return any(a.confusion_severity is ConfusionSeverity.SEVERE for a in analyses)


def _adjust_for_color_blindness(colors: List[RGBColor]) -> List[RGBColor]:
    adjusted = list(colors)
    for i, j in combinations(range(len(adjusted)), 2):
        if _severe_confusion(adjusted[i]):
            lightness = rgb_to_hsl(adjusted[j]).l
            adjusted[j] = _scaled(adjusted[j], saturation=1.3, lightness=1.2 if lightness < 0.5 else 0.9)
    return adjusted


def optimize_palette(palette: ColorPalette, purpose: PalettePurpose) -> ColorPalette:
    """
    Tune a palette for its intended use.

    UI palettes raise pairwise contrast toward 3:1 and spread lightness
    over at least 0.6. Branding palettes get more vivid and drop
    near-duplicates (ratio 2:1). Accessible palettes aim for 4.5:1 and
    shift colors that follow one red-green deficiencies confuse. Artistic
    palettes are returned unchanged.
    """
    if purpose is PalettePurpose.ARTISTIC:
        return palette

    colors = list(palette.colors)

    if purpose is PalettePurpose.UI:
        colors = _spread_lightness(_ensure_pairwise_contrast(colors, UI_MIN_CONTRAST), UI_LIGHTNESS_RANGE)
    elif purpose is PalettePurpose.BRANDING:
        colors = unique_colors([_scaled(c, saturation=1.1, lightness=1.05) for c in colors], BRANDING_MIN_RATIO)
    elif purpose is PalettePurpose.ACCESSIBLE:
        colors = _adjust_for_color_blindness(_ensure_pairwise_contrast(colors, ACCESSIBLE_MIN_CONTRAST))

    return ColorPalette(
        colors=tuple(colors),
        name=f"{palette.name} (Optimized)",
        style=palette.style,
        source=PaletteSource.OPTIMIZED,
        confidence=palette.confidence
    )
