"""Tests for gradient construction and optimization."""
import numpy as np
import pytest

from palettelab.accessibility import contrast_ratio
from palettelab.color_math import rgb_to_hsl
from palettelab.gradient import (
    GradientSpec, analyze_gradient, build_gradient, calculate_locations, generate_variations,
    harmony_gradient, optimize_gradient, stepped_variant
)
from palettelab.types import (
    GradientPurpose, GradientStyle, GradientType, HarmonyType, InvalidGradientError, RGBColor
)

RED = RGBColor(1, 0, 0)
GREEN = RGBColor(0, 1, 0)
BLUE = RGBColor(0, 0, 1)


def assert_valid_locations(gradient):
    locations = gradient.locations
    assert len(locations) == len(gradient.colors)
    assert locations[0] == 0.0
    assert locations[-1] == 1.0
    assert all(b >= a for a, b in zip(locations, locations[1:]))


class TestGradientSpec:
    """Test gradient stop invariants."""

    def test_valid(self):
        gradient = GradientSpec((RED, BLUE), (0.0, 1.0))
        assert gradient.type is GradientType.LINEAR

    @pytest.mark.parametrize('colors,locations', [
        ((RED, BLUE), (0.0, 0.5, 1.0)),
        ((RED,), (0.0,)),
        ((RED, GREEN, BLUE), (0.0, 1.2, 1.0)),
        ((RED, GREEN, BLUE), (0.0, 0.7, 0.3)),
        ((RED, BLUE), (0.1, 1.0)),
        ((RED, BLUE), (0.0, 0.9)),
    ])
    def test_invalid(self, colors, locations):
        with pytest.raises(InvalidGradientError):
            GradientSpec(colors, locations)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            GradientSpec((RED,), (0.0,))

    def test_to_dict(self):
        data = GradientSpec((RED, BLUE), (0.0, 1.0), GradientType.RADIAL, 45.0).to_dict()
        assert data == {
            'colors': ['#FF0000', '#0000FF'],
            'locations': [0.0, 1.0],
            'type': 'radial',
            'angle': 45.0,
        }


class TestBuildGradient:
    """Test gradient construction."""

    def test_single_color_duplicated(self):
        gradient = build_gradient([RED])
        assert gradient.colors == (RED, RED)
        assert gradient.locations == (0.0, 1.0)

    def test_empty_rejected(self):
        with pytest.raises(InvalidGradientError):
            build_gradient([])

    def test_location_tables(self):
        assert calculate_locations(4) == (0.0, 0.33, 0.67, 1.0)
        assert calculate_locations(5) == (0.0, 0.25, 0.5, 0.75, 1.0)

    def test_even_spacing_beyond_tables(self):
        gradient = build_gradient([RED, GREEN, BLUE] * 3)
        np.testing.assert_allclose(gradient.locations, np.linspace(0.0, 1.0, 9))
        assert_valid_locations(gradient)

    def test_type_and_angle(self):
        gradient = build_gradient([RED, BLUE], GradientType.CONIC, 90.0)
        assert gradient.type is GradientType.CONIC
        assert gradient.angle == 90.0


class TestSteppedVariant:
    """Test stepped gradients."""

    def test_three_bands(self):
        stepped = stepped_variant(build_gradient([RED, GREEN, BLUE]))

        assert stepped.colors == (RED, RED, GREEN, GREEN, BLUE, BLUE)
        assert stepped.locations == pytest.approx((0.0, 1 / 3 - 0.01, 1 / 3 + 0.01, 2 / 3 - 0.01, 2 / 3 + 0.01, 1.0))
        assert_valid_locations(stepped)

    def test_many_bands_stay_monotone(self):
        colors = [RGBColor(i / 80, 0.5, 0.5) for i in range(80)]
        assert_valid_locations(stepped_variant(build_gradient(colors)))

    def test_harmony_gradient_stepped(self):
        gradient = harmony_gradient(RED, HarmonyType.TRIADIC, GradientStyle.STEPPED)
        assert len(gradient.colors) == 6
        assert gradient.type is GradientType.LINEAR

    def test_harmony_gradient_radial(self):
        gradient = harmony_gradient(RED, HarmonyType.COMPLEMENTARY, GradientStyle.RADIAL)
        assert gradient.type is GradientType.RADIAL
        assert len(gradient.colors) == 2


class TestOptimizeGradient:
    """Test purpose-driven optimization."""

    def test_artistic_identity(self):
        gradient = build_gradient([RED, BLUE])
        assert optimize_gradient(gradient, GradientPurpose.ARTISTIC) is gradient

    def test_ui_background_contrast(self):
        gradient = build_gradient([RGBColor.from_hex('#808080'), RGBColor.from_hex('#8C8C8C'), RED])
        optimized = optimize_gradient(gradient, GradientPurpose.UI_BACKGROUND)

        assert contrast_ratio(optimized.colors[0], optimized.colors[1]) >= 1.5
        assert optimized.locations == pytest.approx((0.0, 0.5, 1.0))

    def test_text_overlay_contrast(self):
        gradient = build_gradient([RGBColor(1, 1, 1), RGBColor.from_hex('#F0F0F0')])
        optimized = optimize_gradient(gradient, GradientPurpose.TEXT_OVERLAY)

        assert contrast_ratio(optimized.colors[0], optimized.colors[1]) >= 4.5
        assert_valid_locations(optimized)

    def test_unreachable_contrast_gives_up(self):
        gradient = build_gradient([RGBColor.from_hex('#808080'), RGBColor.from_hex('#8C8C8C')])
        optimized = optimize_gradient(gradient, GradientPurpose.TEXT_OVERLAY)
        assert optimized.colors[1].to_rgb255() == (255, 255, 255)

    def test_black_can_be_lightened(self):
        gradient = build_gradient([RGBColor(0, 0, 0), RGBColor(0, 0, 0)])
        optimized = optimize_gradient(gradient, GradientPurpose.UI_BACKGROUND)
        assert contrast_ratio(optimized.colors[0], optimized.colors[1]) >= 1.5

    def test_accent_boosts_saturation(self):
        gradient = build_gradient([RGBColor(0.6, 0.4, 0.4), RGBColor(0.4, 0.4, 0.6)])
        optimized = optimize_gradient(gradient, GradientPurpose.ACCENT)

        for before, after in zip(gradient.colors, optimized.colors):
            assert rgb_to_hsl(after).s == pytest.approx(min(1.0, rgb_to_hsl(before).s * 1.2))
        assert optimized.locations == gradient.locations


class TestAnalyzeGradient:
    """Test gradient analysis."""

    def test_black_white(self):
        analysis = analyze_gradient(build_gradient([RGBColor(0, 0, 0), RGBColor(1, 1, 1)]))

        assert analysis.color_count == 2
        assert not analysis.has_transparency
        assert analysis.max_contrast_ratio == pytest.approx(21.0)
        assert analysis.overall_quality in {"Excellent", "Good", "Fair", "Poor", "Needs Improvement"}

    def test_transparency(self):
        analysis = analyze_gradient(build_gradient([RGBColor(1, 0, 0, alpha=0.5), BLUE]))
        assert analysis.has_transparency

    def test_ratios_sorted(self):
        analysis = analyze_gradient(build_gradient([RED, GREEN, BLUE, RGBColor(1, 1, 1)]))

        assert len(analysis.contrast_ratios) == 6
        assert analysis.contrast_ratios == sorted(analysis.contrast_ratios, reverse=True)
        assert analysis.min_contrast_ratio == analysis.contrast_ratios[-1]


class TestVariations:
    """Test random gradient variations."""

    def test_count_and_invariants(self):
        gradient = build_gradient([RED, GREEN, BLUE, RGBColor(1, 1, 0)], GradientType.RADIAL, 30.0)
        variations = generate_variations(gradient, count=4, random_state=1)

        assert len(variations) == 4
        for variation in variations:
            assert_valid_locations(variation)
            assert variation.type is GradientType.RADIAL
            assert variation.angle == 30.0

    def test_reproducible(self):
        gradient = build_gradient([RED, GREEN, BLUE])
        first = generate_variations(gradient, random_state=9)
        second = generate_variations(gradient, random_state=9)
        assert [g.to_dict() for g in first] == [g.to_dict() for g in second]
