"""Palette science engine: extraction, harmony, accessibility and gradients."""
from palettelab.types import (
    RGBColor,
    LABColor,
    HSLColor,
    HarmonyType,
    GradientType,
    VisionType,
    ExtractionConfig,
    ExtractionResult,
    PaletteError,
    ImageLoadError,
    InvalidGradientError,
    ExtractionCancelled,
)
from palettelab.extraction import PaletteExtractor, extract_colors
from palettelab.harmony import generate_harmony, analyze_harmony_quality
from palettelab.accessibility import analyze_contrast, contrast_ratio, simulate_color_blindness
from palettelab.gradient import GradientSpec, build_gradient, stepped_variant, optimize_gradient
from palettelab.palette import ColorPalette, PaletteBuilder

__version__ = "0.1.0"

__all__ = [
    "RGBColor",
    "LABColor",
    "HSLColor",
    "HarmonyType",
    "GradientType",
    "VisionType",
    "ExtractionConfig",
    "ExtractionResult",
    "PaletteError",
    "ImageLoadError",
    "InvalidGradientError",
    "ExtractionCancelled",
    "PaletteExtractor",
    "extract_colors",
    "generate_harmony",
    "analyze_harmony_quality",
    "analyze_contrast",
    "contrast_ratio",
    "simulate_color_blindness",
    "GradientSpec",
    "build_gradient",
    "stepped_variant",
    "optimize_gradient",
    "ColorPalette",
    "PaletteBuilder",
]
