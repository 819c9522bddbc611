"""Tests for palette assembly, analysis and optimization."""
import numpy as np
import pytest

from palettelab.color_math import rgb_to_hsl
from palettelab.extraction import PaletteExtractor
from palettelab.palette import (
    ColorPalette, PaletteBuilder, analyze_palette, optimize_palette, prominence_score,
    sort_by_prominence, unique_colors
)
from palettelab.types import PalettePurpose, PaletteSource, PaletteStyle, RGBColor

RED = RGBColor(1, 0, 0)
BLUE = RGBColor(0, 0, 1)
WHITE = RGBColor(1, 1, 1)
BLACK = RGBColor(0, 0, 0)


@pytest.fixture
def builder():
    return PaletteBuilder(extractor=PaletteExtractor(random_state=0))


def make_palette(colors, style=PaletteStyle.ADAPTIVE):
    return ColorPalette(tuple(colors), "Test Palette", style, PaletteSource.IMAGE, 0.9)


class TestProminence:
    """Test prominence scoring and de-duplication."""

    def test_score(self):
        assert prominence_score(RED) == pytest.approx(0.8)
        assert prominence_score(WHITE) == pytest.approx(0.4)
        assert prominence_score(BLACK) == pytest.approx(0.0)

    def test_sort(self):
        assert sort_by_prominence([BLACK, WHITE, RED]) == [RED, WHITE, BLACK]

    def test_unique_drops_near_duplicates(self):
        near_red = RGBColor.from_rgb255(250, 4, 4)
        assert unique_colors([RED, near_red, BLUE]) == [RED, BLUE]

    def test_unique_threshold(self):
        colors = [RED, BLUE]
        # red/blue contrast is about 2.15:1
        assert unique_colors(colors, min_ratio=2.0) == colors
        assert unique_colors(colors, min_ratio=3.0) == [RED]


class TestGeneratePalette:
    """Test palette generation from images."""

    def test_adaptive(self, builder, block_image):
        palette = builder.generate_palette(block_image, PaletteStyle.ADAPTIVE, count=2)

        assert palette.name == "Adaptive Palette"
        assert palette.source is PaletteSource.IMAGE
        assert len(palette.colors) == 2
        assert palette.confidence > 0.5
        assert palette.colors[0] == sort_by_prominence(palette.colors)[0]

    def test_dark_image_retry(self, builder, near_black_image):
        palette = builder.generate_palette(near_black_image, PaletteStyle.ADAPTIVE)

        assert len(palette.colors) == 1
        assert palette.confidence == pytest.approx(1.0)

    def test_empty_palette(self, builder):
        transparent = np.zeros((50, 50, 4), dtype=np.uint8)
        palette = builder.generate_palette(transparent, PaletteStyle.TRIADIC)

        assert palette.name == "Empty Palette"
        assert palette.colors == ()
        assert palette.style is PaletteStyle.TRIADIC

    def test_harmonic(self, builder, block_image):
        palette = builder.generate_palette(block_image, PaletteStyle.HARMONIC, count=4)

        assert palette.name.endswith("Palette")
        assert palette.style is PaletteStyle.HARMONIC
        assert 0 < len(palette.colors) <= 4

    @pytest.mark.parametrize('style,count', [
        (PaletteStyle.MONOCHROMATIC, 3),
        (PaletteStyle.COMPLEMENTARY, 5),
        (PaletteStyle.TRIADIC, 3),
        (PaletteStyle.ANALOGOUS, 5),
    ])
    def test_generated_styles(self, builder, block_image, style, count):
        palette = builder.generate_palette(block_image, style, count=count)

        assert len(palette.colors) == count
        assert palette.source is PaletteSource.GENERATED
        assert palette.name == f"{style.value} Palette"

    def test_to_dict(self, builder, block_image):
        data = builder.generate_palette(block_image).to_dict()
        assert data['style'] == "Adaptive"
        assert all(c.startswith('#') for c in data['colors'])


class TestAnalyzePalette:
    """Test palette analysis."""

    def test_black_white(self):
        analysis = analyze_palette(make_palette([BLACK, WHITE]))

        assert analysis.color_count == 2
        assert analysis.max_contrast_ratio == pytest.approx(21.0)
        assert analysis.has_neutral_colors
        assert analysis.average_lightness == pytest.approx(0.5)
        assert len(analysis.accessibility_issues) == 1

    def test_quality_label(self):
        analysis = analyze_palette(make_palette([BLACK, WHITE, RED]))
        assert analysis.overall_quality in {"Excellent", "Good", "Fair", "Poor", "Needs Improvement"}
        assert 0.0 <= analysis.quality_score <= 1.0

    def test_empty(self):
        analysis = analyze_palette(make_palette([]))
        assert analysis.color_count == 0
        assert analysis.max_contrast_ratio == 1.0


class TestOptimizePalette:
    """Test purpose-driven palette tuning."""

    def test_artistic_identity(self):
        palette = make_palette([RED, BLUE])
        assert optimize_palette(palette, PalettePurpose.ARTISTIC) is palette

    def test_ui_spreads_lightness(self):
        colors = [RGBColor.from_hex(h) for h in ('#B33C3C', '#3C3CB3', '#C26B6B')]
        optimized = optimize_palette(make_palette(colors), PalettePurpose.UI)

        lightness = [rgb_to_hsl(c).l for c in optimized.colors]
        assert max(lightness) - min(lightness) >= 0.6 - 1e-6
        assert optimized.source is PaletteSource.OPTIMIZED
        assert optimized.name == "Test Palette (Optimized)"

    def test_ui_uniform_lightness(self):
        colors = [RGBColor(0.5, 0.5, 0.5), RGBColor(0.5, 0.5, 0.5)]
        optimized = optimize_palette(make_palette(colors), PalettePurpose.UI)
        assert len(optimized.colors) == 2

    def test_branding_drops_near_duplicates(self):
        optimized = optimize_palette(make_palette([RED, RGBColor.from_rgb255(240, 10, 10)]), PalettePurpose.BRANDING)
        assert len(optimized.colors) == 1

    def test_accessible_keeps_count(self):
        colors = [RED, RGBColor(0, 0.8, 0), BLUE]
        optimized = optimize_palette(make_palette(colors), PalettePurpose.ACCESSIBLE)

        assert len(optimized.colors) == 3
        # red is badly confused under protanopia, so the colors after it shift
        assert optimized.colors[1] != colors[1]
        assert optimized.colors[0] == RED

    def test_accessible_shifts_colors_after_confusable_green(self):
        green = RGBColor.from_hex('#33B24C')
        optimized = optimize_palette(make_palette([green, WHITE]), PalettePurpose.ACCESSIBLE)

        assert optimized.colors[0] == green
        assert rgb_to_hsl(optimized.colors[1]).l == pytest.approx(0.9, abs=1e-3)
