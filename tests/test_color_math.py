"""Tests for color space conversion and color value types."""
import math

import numpy as np
import pytest
from skimage.color import rgb2lab

from palettelab.color_math import (
    rgb_to_lab, lab_to_rgb, rgb_to_lab_array, lab_to_rgb_array, relative_luminance,
    rgb_to_hsl, hsl_to_rgb, perceptual_distance, adjust_lightness, adjust_hue,
    is_warm, is_cool, is_neutral, sorted_by_lightness
)
from palettelab.types import RGBColor, HSLColor, LABColor


class TestRGBColor:
    """Test RGB color value type."""

    def test_clamps_out_of_range_and_nan(self):
        color = RGBColor(1.5, -0.2, float('nan'))
        assert (color.r, color.g, color.b) == (1.0, 0.0, 0.0)

    def test_hex_forms(self):
        assert RGBColor.from_hex('#FF0000').to_rgb255() == (255, 0, 0)
        assert RGBColor.from_hex('0f0').to_rgb255() == (0, 255, 0)

        argb = RGBColor.from_hex('#800000FF')
        assert argb.to_rgb255() == (0, 0, 255)
        assert argb.alpha == pytest.approx(128 / 255)

    def test_hex_round_trip(self):
        assert RGBColor.from_hex('#1A2B3C').to_hex() == '#1A2B3C'
        assert RGBColor.from_hex('#801A2B3C').to_hex(include_alpha=True) == '#801A2B3C'

    @pytest.mark.parametrize('value', ['#GG0000', '12345', '', '#'])
    def test_invalid_hex(self, value):
        with pytest.raises(ValueError):
            RGBColor.from_hex(value)

    def test_value_equality(self):
        assert RGBColor(0.1, 0.2, 0.3) == RGBColor(0.1, 0.2, 0.3)


class TestHSLColor:
    """Test HSL normalization."""

    def test_hue_wraps(self):
        assert HSLColor(-30, 0.5, 0.5).h == pytest.approx(330)
        assert HSLColor(720, 0.5, 0.5).h == 0.0

    def test_clamps_saturation_lightness(self):
        hsl = HSLColor(10, 2.0, -1.0)
        assert hsl.s == 1.0
        assert hsl.l == 0.0

    def test_hsl_string(self):
        assert HSLColor(120, 0.5, 0.25).to_hsl_string() == 'hsl(120, 50%, 25%)'


class TestLABConversion:
    """Test sRGB <-> CIELAB conversion."""

    def test_white_and_black(self):
        white = rgb_to_lab(RGBColor(1, 1, 1))
        assert white.l == pytest.approx(100.0, abs=1e-3)
        assert white.a == pytest.approx(0.0, abs=1e-3)
        assert white.b == pytest.approx(0.0, abs=1e-3)

        black = rgb_to_lab(RGBColor(0, 0, 0))
        assert black.l == pytest.approx(0.0, abs=1e-6)

    def test_round_trip_within_one_level(self):
        rng = np.random.RandomState(3)
        rgb = rng.rand(500, 3)

        back = lab_to_rgb_array(rgb_to_lab_array(rgb))
        assert np.max(np.abs(back - rgb)) < 1.0 / 255.0

    def test_matches_scikit_image(self):
        rgb = np.array([[[0.8, 0.1, 0.1], [0.1, 0.6, 0.3], [0.2, 0.3, 0.9], [0.5, 0.5, 0.5]]])
        np.testing.assert_allclose(rgb_to_lab_array(rgb), rgb2lab(rgb), atol=0.1)

    def test_out_of_gamut_clamped_for_display(self):
        color = lab_to_rgb(LABColor(50.0, 120.0, -120.0))
        for channel in (color.r, color.g, color.b):
            assert 0.0 <= channel <= 1.0

    def test_unclamped_inverse_exposes_gamut(self):
        rgb = lab_to_rgb_array(np.array([50.0, 120.0, -120.0]), clamp=False)
        assert np.any(rgb < 0.0) or np.any(rgb > 1.0)


class TestLuminanceAndDistance:
    """Test relative luminance and perceptual distance."""

    def test_luminance_extremes(self):
        assert relative_luminance(RGBColor(1, 1, 1)) == pytest.approx(1.0)
        assert relative_luminance(RGBColor(0, 0, 0)) == pytest.approx(0.0)

    def test_distance_identity(self):
        lab = rgb_to_lab(RGBColor(0.3, 0.6, 0.2))
        assert perceptual_distance(lab, lab) == 0.0

    def test_distance_grows_with_difference(self):
        base = rgb_to_lab(RGBColor(0.5, 0.2, 0.2))
        near = rgb_to_lab(RGBColor(0.52, 0.2, 0.2))
        far = rgb_to_lab(RGBColor(0.1, 0.2, 0.8))
        assert 0.0 < perceptual_distance(base, near) < perceptual_distance(base, far)

    def test_distance_never_nan(self):
        lab1 = LABColor(50.0, 0.0, 0.0)
        lab2 = LABColor(50.0, 1e-9, 0.0)
        assert not math.isnan(perceptual_distance(lab1, lab2))


class TestHSL:
    """Test HSL helpers."""

    def test_red(self):
        hsl = rgb_to_hsl(RGBColor(1, 0, 0))
        assert hsl.h == pytest.approx(0.0)
        assert hsl.s == pytest.approx(1.0)
        assert hsl.l == pytest.approx(0.5)

    def test_round_trip(self):
        color = RGBColor(0.2, 0.7, 0.4)
        back = hsl_to_rgb(rgb_to_hsl(color))
        np.testing.assert_allclose(back.as_array(), color.as_array(), atol=1e-9)

    def test_adjustments_keep_alpha(self):
        color = RGBColor(0.8, 0.2, 0.2, alpha=0.5)
        assert adjust_lightness(color, 0.5).alpha == pytest.approx(0.5)
        assert rgb_to_hsl(adjust_hue(color, 120)).h == pytest.approx(120.0)

    def test_temperature(self):
        assert is_warm(RGBColor(1, 0.3, 0))
        assert is_cool(RGBColor(0, 0.3, 1))
        assert is_neutral(RGBColor(0.5, 0.5, 0.52))

    def test_sorted_by_lightness(self):
        colors = [RGBColor(1, 1, 1), RGBColor(0, 0, 0), RGBColor(0.5, 0.5, 0.5)]
        assert sorted_by_lightness(colors) == [colors[1], colors[2], colors[0]]
