"""Core types for the palette science engine."""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np

# Type aliases
ImageArray = np.ndarray
WeightMap = np.ndarray


def _unit(value: float) -> float:
    """Clamp a channel value into [0, 1]; NaN becomes 0."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


@dataclass(frozen=True)
class RGBColor:
    """sRGB color with channels normalized to [0, 1]."""
    r: float
    g: float
    b: float
    alpha: float = 1.0

    def __post_init__(self):
        # Out-of-range and NaN input is clamped, never rejected
        object.__setattr__(self, 'r', _unit(self.r))
        object.__setattr__(self, 'g', _unit(self.g))
        object.__setattr__(self, 'b', _unit(self.b))
        object.__setattr__(self, 'alpha', _unit(self.alpha))

    @classmethod
    def from_rgb255(cls, r: int, g: int, b: int, alpha: int = 255) -> 'RGBColor':
        return cls(r / 255.0, g / 255.0, b / 255.0, alpha / 255.0)

    @classmethod
    def from_hex(cls, value: str) -> 'RGBColor':
        """
        Parse a hex color string.

        Accepts 3 digit (RGB), 6 digit (RRGGBB) and 8 digit (AARRGGBB)
        forms, with or without a leading '#'.

        Raises:
            ValueError: If the string is not a valid hex color
        """
        digits = ''.join(ch for ch in value.strip() if ch.isalnum())
        try:
            number = int(digits, 16)
        except ValueError:
            raise ValueError(f"Invalid hex color: {value!r}") from None

        if len(digits) == 3:
            a, r, g, b = 255, (number >> 8) * 17, (number >> 4 & 0xF) * 17, (number & 0xF) * 17
        elif len(digits) == 6:
            a, r, g, b = 255, number >> 16, number >> 8 & 0xFF, number & 0xFF
        elif len(digits) == 8:
            a, r, g, b = number >> 24, number >> 16 & 0xFF, number >> 8 & 0xFF, number & 0xFF
        else:
            raise ValueError(f"Invalid hex color: {value!r}")

        return cls.from_rgb255(r, g, b, a)

    def to_rgb255(self) -> Tuple[int, int, int]:
        return (
            int(round(self.r * 255)),
            int(round(self.g * 255)),
            int(round(self.b * 255)),
        )

    def to_hex(self, include_alpha: bool = False) -> str:
        r, g, b = self.to_rgb255()
        if include_alpha:
            a = int(round(self.alpha * 255))
            return f"#{a:02X}{r:02X}{g:02X}{b:02X}"
        return f"#{r:02X}{g:02X}{b:02X}"

    def to_rgb_string(self) -> str:
        r, g, b = self.to_rgb255()
        return f"rgb({r}, {g}, {b})"

    def as_array(self) -> np.ndarray:
        """RGB channels as a float64 array of shape (3,)."""
        return np.array([self.r, self.g, self.b], dtype=np.float64)


@dataclass(frozen=True)
class LABColor:
    """CIE-LAB color (D65 white)."""
    l: float
    a: float
    b: float

    def as_array(self) -> np.ndarray:
        return np.array([self.l, self.a, self.b], dtype=np.float64)


@dataclass(frozen=True)
class HSLColor:
    """HSL color: hue in [0, 360), saturation and lightness in [0, 1]."""
    h: float
    s: float
    l: float

    def __post_init__(self):
        hue = float(self.h)
        hue = 0.0 if math.isnan(hue) else hue % 360.0
        if hue >= 360.0:
            hue = 0.0
        object.__setattr__(self, 'h', hue)
        object.__setattr__(self, 's', _unit(self.s))
        object.__setattr__(self, 'l', _unit(self.l))

    def to_hsl_string(self) -> str:
        return f"hsl({self.h:.0f}, {self.s * 100:.0f}%, {self.l * 100:.0f}%)"


class HarmonyType(Enum):
    """Hue relationship schemes."""
    COMPLEMENTARY = "Complementary"
    ANALOGOUS = "Analogous"
    TRIADIC = "Triadic"
    TETRADIC = "Tetradic"
    SPLIT_COMPLEMENTARY = "Split-Complementary"
    MONOCHROMATIC = "Monochromatic"
    SQUARE = "Square"


class GradientType(Enum):
    """Gradient shapes."""
    LINEAR = "linear"
    RADIAL = "radial"
    CONIC = "conic"


class GradientStyle(Enum):
    SMOOTH = "smooth"
    STEPPED = "stepped"
    RADIAL = "radial"
    CONIC = "conic"


class GradientPurpose(Enum):
    UI_BACKGROUND = "ui_background"
    TEXT_OVERLAY = "text_overlay"
    ACCENT = "accent"
    ARTISTIC = "artistic"


class VisionType(Enum):
    """Color vision variants that can be simulated."""
    NORMAL = "Normal"
    PROTANOPIA = "Protanopia"
    DEUTERANOPIA = "Deuteranopia"
    TRITANOPIA = "Tritanopia"
    ACHROMATOPSIA = "Achromatopsia"
    PROTANOMALY = "Protanomaly"
    DEUTERANOMALY = "Deuteranomaly"
    TRITANOMALY = "Tritanomaly"


# Deficiencies checked by palette-wide accessibility recommendations
COLOR_BLINDNESS_TYPES = (
    VisionType.PROTANOPIA,
    VisionType.DEUTERANOPIA,
    VisionType.TRITANOPIA,
    VisionType.ACHROMATOPSIA,
)


class ConfusionSeverity(Enum):
    NONE = "No confusion"
    MILD = "Mild confusion possible"
    MODERATE = "Moderate confusion likely"
    SEVERE = "Severe confusion expected"


class RecommendationType(Enum):
    CONTRAST = "contrast"
    COLOR_BLINDNESS = "color_blindness"
    VARIETY = "variety"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PaletteStyle(Enum):
    ADAPTIVE = "Adaptive"
    HARMONIC = "Harmonic"
    MONOCHROMATIC = "Monochromatic"
    COMPLEMENTARY = "Complementary"
    TRIADIC = "Triadic"
    ANALOGOUS = "Analogous"


class PaletteSource(Enum):
    IMAGE = "image"
    GENERATED = "generated"
    OPTIMIZED = "optimized"


class PalettePurpose(Enum):
    UI = "ui"
    BRANDING = "branding"
    ARTISTIC = "artistic"
    ACCESSIBLE = "accessible"


@dataclass
class ExtractionConfig:
    """Configuration for dominant color extraction."""
    # Analysis grid; every image is resampled to this size first
    analysis_width: int = 200
    analysis_height: int = 200

    # Pixel filtering
    near_black_threshold: float = 0.03
    highlight_max_saturation: float = 0.06
    highlight_min_value: float = 0.94
    min_alpha: float = 0.0  # pixels with alpha <= min_alpha are dropped

    # Sample weighting
    center_boost: float = 1.6
    saturation_base: float = 0.5
    saturation_gain: float = 1.5
    saliency_floor: float = 0.35
    min_saliency_factor: float = 0.05

    # Clustering
    max_iterations: int = 30
    tolerance: float = 1e-4
    gamut_tolerance: float = 1e-6

    def __post_init__(self):
        if self.analysis_width < 1 or self.analysis_height < 1:
            raise ValueError(
                f"Analysis size must be positive, got "
                f"{self.analysis_width}x{self.analysis_height}"
            )
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")

    @classmethod
    def preset(cls, name: str) -> 'ExtractionConfig':
        """
        Build a named configuration.

        Args:
            name: 'fast' (coarser grid, fewer iterations), 'standard'
                  or 'quality' (finer grid, more iterations)
        """
        if name == 'fast':
            return cls(analysis_width=100, analysis_height=100, max_iterations=15)
        if name == 'standard':
            return cls()
        if name == 'quality':
            return cls(analysis_width=300, analysis_height=300, max_iterations=50, tolerance=1e-5)
        raise ValueError(f"Unknown extraction preset: {name!r}")


@dataclass
class PaletteConfig:
    """Configuration for palette assembly on top of extraction."""
    min_extraction_count: int = 8
    retry_confidence: float = 0.35
    unique_min_ratio: float = 1.2


@dataclass(frozen=True)
class ExtractionResult:
    """Ranked dominant colors of an image with a dominance confidence."""
    colors: Tuple[RGBColor, ...] = ()
    confidence: float = 0.0
    cluster_weights: Tuple[float, ...] = ()
    sample_count: int = 0
    iterations: int = 0
    converged: bool = False

    @property
    def is_empty(self) -> bool:
        return len(self.colors) == 0

    def to_dict(self) -> dict:
        return {
            'colors': [c.to_hex() for c in self.colors],
            'confidence': self.confidence,
            'cluster_weights': list(self.cluster_weights),
            'sample_count': self.sample_count,
            'iterations': self.iterations,
            'converged': self.converged,
        }


class PaletteError(Exception):
    """Base exception for palette engine errors."""
    pass


class ImageLoadError(PaletteError):
    """Exception raised when a source image cannot be read."""
    pass


class InvalidGradientError(PaletteError, ValueError):
    """Exception raised for gradients that violate stop invariants."""
    pass


class ExtractionCancelled(PaletteError):
    """Exception raised when an extraction is cancelled between iterations."""
    pass
