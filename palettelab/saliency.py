"""Attention (saliency) weight maps used to bias color extraction."""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

import numpy as np
from scipy.ndimage import gaussian_filter, uniform_filter
from skimage.transform import resize

from palettelab.types import WeightMap

logger = logging.getLogger(__name__)

# Normalized box: x, y, width, height (origin top-left, values in [0, 1]), confidence
SalientBox = Tuple[float, float, float, float, float]

MIN_PEAK = 1e-4


class SaliencyEstimator(ABC):
    """Produces a per-pixel attention map for an image, when it can."""

    @abstractmethod
    def estimate(self, pixels: np.ndarray) -> Optional[WeightMap]:
        """
        Estimate saliency for a pixel buffer.

        Args:
            pixels: float array (H, W, 3|4) with values in [0, 1]

        Returns:
            (H, W) weights in [0, 1] with peak 1, or None when no
            meaningful map could be produced
        """


class NullSaliencyEstimator(SaliencyEstimator):
    """Estimator for environments without a vision model; yields no map."""

    def estimate(self, pixels: np.ndarray) -> Optional[WeightMap]:
        return None


class SpectralResidualSaliency(SaliencyEstimator):
    """
    Spectral residual saliency (Hou & Zhang).

    The log amplitude spectrum of a small grayscale copy is compared with
    its local average; what remains after the inverse transform marks
    regions that stand out from the image's statistics.
    """

    def __init__(self, working_width: int = 64, average_size: int = 3, blur_sigma: float = 2.5):
        self.working_width = working_width
        self.average_size = average_size
        self.blur_sigma = blur_sigma

    def estimate(self, pixels: np.ndarray) -> Optional[WeightMap]:
        h, w = pixels.shape[:2]
        if h < 2 or w < 2:
            return None

        rgb = pixels[..., :3]
        gray = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]

        small_w = min(self.working_width, w)
        small_h = max(2, int(round(h * small_w / w)))
        small = resize(gray, (small_h, small_w), anti_aliasing=True)

        spectrum = np.fft.fft2(small)
        log_amplitude = np.log(np.abs(spectrum) + 1e-9)
        phase = np.angle(spectrum)

        residual = log_amplitude - uniform_filter(log_amplitude, size=self.average_size, mode='nearest')
        saliency = np.abs(np.fft.ifft2(np.exp(residual + 1j * phase))) ** 2
        saliency = gaussian_filter(saliency, sigma=self.blur_sigma)

        return normalize_weight_map(saliency, width=w, height=h)


def normalize_weight_map(
    weights: np.ndarray,
    width: Optional[int] = None,
    height: Optional[int] = None
) -> Optional[WeightMap]:
    """
    Resize a weight map to the target grid and scale its peak to 1.

    Args:
        weights: 2-D array of non-negative weights
        width: Target width (defaults to the map's own)
        height: Target height (defaults to the map's own)

    Returns:
        Normalized (height, width) map, or None for malformed or flat-zero
        input
    """
    weights = np.asarray(weights, dtype=np.float64)
    if weights.ndim != 2 or weights.size == 0:
        logger.warning(f"Ignoring saliency map with shape {weights.shape}")
        return None

    target = (height or weights.shape[0], width or weights.shape[1])
    if weights.shape != target:
        weights = resize(weights, target, order=1, preserve_range=True, anti_aliasing=False)

    weights = np.clip(np.nan_to_num(weights, nan=0.0, posinf=0.0, neginf=0.0), 0.0, None)

    peak = weights.max()
    if peak <= MIN_PEAK:
        return None

    return weights / peak


def rasterize_salient_boxes(
    boxes: Iterable[SalientBox],
    width: int,
    height: int
) -> Optional[WeightMap]:
    """
    Turn salient object boxes into a weight map.

    Each box paints its confidence over the pixels it covers; overlapping
    boxes keep the maximum.

    Args:
        boxes: Normalized boxes with confidences
        width: Map width
        height: Map height

    Returns:
        Normalized (height, width) map, or None if no box contributes
    """
    if width <= 0 or height <= 0:
        return None

    weights = np.zeros((height, width), dtype=np.float64)

    for x, y, box_w, box_h, confidence in boxes:
        if confidence <= 0:
            continue

        x0 = int(np.clip(np.floor(x * width), 0, width))
        x1 = int(np.clip(np.ceil((x + box_w) * width), 0, width))
        y0 = int(np.clip(np.floor(y * height), 0, height))
        y1 = int(np.clip(np.ceil((y + box_h) * height), 0, height))

        if x0 >= x1 or y0 >= y1:
            continue

        weights[y0:y1, x0:x1] = np.maximum(weights[y0:y1, x0:x1], confidence)

    return normalize_weight_map(weights)
