"""Dominant color extraction with perceptual weighting and LAB clustering."""
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from sklearn.utils import check_random_state

from palettelab.color_math import rgb_to_lab_array, lab_to_rgb_array
from palettelab.kmeans import KMeansResult, RandomStateLike, weighted_kmeans
from palettelab.raster_ingest import CropRect, ImageInput, crop, image_shape, load_image, prepare_analysis_buffer
from palettelab.saliency import SaliencyEstimator, normalize_weight_map
from palettelab.types import ExtractionConfig, ExtractionResult, RGBColor, WeightMap

logger = logging.getLogger(__name__)


def build_weighted_samples(
    pixels: np.ndarray,
    config: ExtractionConfig,
    avoid_near_black: bool,
    saliency: Optional[WeightMap] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Filter analysis pixels and weight the survivors.

    Transparent pixels are dropped and partially transparent ones
    premultiplied. Near-black pixels are dropped only when requested;
    blown-out near-white highlights are always dropped. Weight is
    center weight (1.0-2.6) times saturation weight (0.5-2.0) times an
    optional saliency factor.

    Args:
        pixels: float RGBA buffer (H, W, 4)
        config: Extraction thresholds and weighting constants
        avoid_near_black: Drop pixels whose channels are all near zero
        saliency: Optional (H, W) map in [0, 1]

    Returns:
        Tuple of (lab, weights):
        - lab: (N, 3) LAB coordinates of surviving pixels
        - weights: (N,) positive weights
    """
    h, w = pixels.shape[:2]
    alpha = pixels[..., 3]
    rgb = pixels[..., :3] * alpha[..., np.newaxis]

    max_c = rgb.max(axis=2)
    min_c = rgb.min(axis=2)
    safe_max = np.where(max_c > 0, max_c, 1.0)
    saturation = np.where(max_c > 0, (max_c - min_c) / safe_max, 0.0)

    keep = alpha > config.min_alpha
    if avoid_near_black:
        keep &= ~np.all(rgb < config.near_black_threshold, axis=2)
    keep &= ~((saturation < config.highlight_max_saturation) & (max_c > config.highlight_min_value))

    ys, xs = np.mgrid[0:h, 0:w]
    center_x, center_y = w / 2.0, h / 2.0
    max_dist = np.hypot(center_x, center_y)
    dist = np.hypot(xs - center_x, ys - center_y)

    center_weight = 1.0 + (1.0 - np.minimum(dist / max_dist, 1.0)) * config.center_boost
    saturation_weight = config.saturation_base + saturation * config.saturation_gain
    weight = center_weight * saturation_weight

    if saliency is not None:
        factor = config.saliency_floor + (1.0 - config.saliency_floor) * saliency
        weight = weight * np.maximum(config.min_saliency_factor, factor)

    keep &= weight > 0

    return rgb_to_lab_array(rgb[keep]), weight[keep]


def rank_clusters(
    result: KMeansResult,
    count: int,
    sample_count: int,
    gamut_tolerance: float = 1e-6
) -> ExtractionResult:
    """
    Order clusters by weight and convert centroids back to RGB.

    Centroids whose inverse conversion leaves the RGB cube are skipped
    rather than clamped, so the ranked list never holds clamped duplicates.
    Confidence is the top cluster's share of the total weight.
    """
    clusters = sorted(result.clusters, key=lambda c: c.total_weight, reverse=True)
    total_weight = sum(c.total_weight for c in clusters)

    if not clusters or total_weight <= 0:
        return ExtractionResult(sample_count=sample_count, iterations=result.iterations,
                                converged=result.converged)

    confidence = min(1.0, clusters[0].total_weight / total_weight)

    colors = []
    weights = []
    for cluster in clusters[:count]:
        rgb = lab_to_rgb_array(cluster.centroid.as_array(), clamp=False)
        if np.any(rgb < -gamut_tolerance) or np.any(rgb > 1.0 + gamut_tolerance):
            logger.debug(f"Dropping out-of-gamut centroid {cluster.centroid} -> {rgb}")
            continue
        colors.append(RGBColor(*(float(v) for v in rgb)))
        weights.append(cluster.total_weight)

    return ExtractionResult(
        colors=tuple(colors),
        confidence=float(confidence),
        cluster_weights=tuple(weights),
        sample_count=sample_count,
        iterations=result.iterations,
        converged=result.converged
    )


class PaletteExtractor:
    """Extracts ranked dominant colors and a confidence score from images."""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        saliency: Optional[SaliencyEstimator] = None,
        random_state: RandomStateLike = None
    ):
        """
        Initialize extractor.

        Args:
            config: Extraction configuration (uses defaults if None)
            saliency: Optional estimator consulted when no map is passed
            random_state: Default seed for k-means++ seeding. An int gives
                          reproducible results; submit and extract_batch
                          draw a separate seed per call from it.
        """
        self.config = config or ExtractionConfig()
        self.saliency = saliency
        self.random_state = random_state

    def extract(
        self,
        image: ImageInput,
        sample_count: int = 5,
        avoid_near_black: bool = True,
        saliency_map: Optional[np.ndarray] = None,
        rect: Optional[CropRect] = None,
        random_state: RandomStateLike = None,
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None
    ) -> ExtractionResult:
        """
        Extract up to sample_count dominant colors.

        Args:
            image: Pixel buffer (H, W, 3|4) or PIL image
            sample_count: Number of clusters / colors requested
            avoid_near_black: Skip near-black pixels (letterboxing, backgrounds)
            saliency_map: Optional per-pixel attention weights of any size;
                          a map with the source's dimensions is cropped
                          with rect along with the pixels
            rect: Optional crop rectangle (x, y, width, height)
            random_state: Overrides the extractor's default seed
            cancel_event: Cooperative cancellation, checked between iterations
            deadline: time.monotonic() value honored between iterations

        Returns:
            ExtractionResult; empty with confidence 0.0 when no pixel
            survives filtering

        Raises:
            ValueError: If sample_count < 1 or the buffer is not an image
            ExtractionCancelled: If cancel_event is set during clustering
        """
        if sample_count < 1:
            raise ValueError(f"sample_count must be >= 1, got {sample_count}")

        config = self.config
        pixels = prepare_analysis_buffer(image, config.analysis_width, config.analysis_height, rect)
        if pixels.size == 0:
            logger.info("Empty pixel buffer, nothing to extract")
            return ExtractionResult()

        if saliency_map is not None and rect is not None:
            saliency_map = np.asarray(saliency_map)
            # Source-sized maps follow the pixels through the crop
            if saliency_map.shape[:2] == image_shape(image):
                saliency_map = crop(saliency_map, rect)

        weight_map = self._resolve_saliency(pixels, saliency_map)
        lab, weights = build_weighted_samples(pixels, config, avoid_near_black, weight_map)

        if len(weights) == 0:
            logger.info("No pixels survived filtering")
            return ExtractionResult()

        k = min(sample_count, len(weights))
        seed = self.random_state if random_state is None else random_state

        result = weighted_kmeans(
            lab,
            weights,
            k,
            random_state=seed,
            max_iterations=config.max_iterations,
            tolerance=config.tolerance,
            cancel_event=cancel_event,
            deadline=deadline
        )

        ranked = rank_clusters(result, sample_count, len(weights), config.gamut_tolerance)
        logger.info(
            f"Extracted {len(ranked.colors)} colors from {len(weights)} samples "
            f"(confidence {ranked.confidence:.2f})"
        )
        return ranked

    def extract_file(self, path: Union[str, Path], **kwargs) -> ExtractionResult:
        """Load an image file and extract from it."""
        return self.extract(load_image(path), **kwargs)

    def submit(self, executor: Executor, image: ImageInput, **kwargs) -> 'Future[ExtractionResult]':
        """
        Schedule an extraction on executor, keeping the caller's thread free.

        A RandomState (passed or held by the extractor) is never handed to
        the worker; an integer seed is drawn from it here instead, so
        concurrent extractions do not share a generator.
        """
        seed = kwargs.pop('random_state', None)
        if seed is None:
            seed = self.random_state
        if isinstance(seed, np.random.RandomState):
            seed = int(seed.randint(0, 2 ** 31 - 1))
        return executor.submit(self.extract, image, random_state=seed, **kwargs)

    def extract_batch(
        self,
        images: Sequence[ImageInput],
        max_workers: Optional[int] = None,
        **kwargs
    ) -> List[ExtractionResult]:
        """
        Extract from several images concurrently.

        Each image gets its own derived seed, so results are reproducible
        when an integer random_state is passed or held by the extractor.

        Returns:
            Results in input order
        """
        random_state = kwargs.pop('random_state', None)
        if random_state is None:
            random_state = self.random_state

        if random_state is None:
            seeds = [None] * len(images)
        else:
            seeds = check_random_state(random_state).randint(0, 2 ** 31 - 1, size=len(images))

        results: List[Optional[ExtractionResult]] = [None] * len(images)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                self.submit(executor, image, random_state=seed, **kwargs): i
                for i, (image, seed) in enumerate(zip(images, seeds))
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return results

    def _resolve_saliency(
        self,
        pixels: np.ndarray,
        saliency_map: Optional[np.ndarray]
    ) -> Optional[WeightMap]:
        h, w = pixels.shape[:2]

        if saliency_map is not None:
            return normalize_weight_map(saliency_map, width=w, height=h)

        if self.saliency is None:
            return None

        try:
            estimated = self.saliency.estimate(pixels)
        except Exception:
            # Extraction falls back to uniform weighting without a map
            logger.warning("Saliency estimation failed, using uniform weights", exc_info=True)
            return None

        if estimated is None:
            return None
        return normalize_weight_map(estimated, width=w, height=h)


def extract_colors(
    image: ImageInput,
    sample_count: int = 5,
    avoid_near_black: bool = True,
    **kwargs
) -> ExtractionResult:
    """Extract with a default-configured PaletteExtractor."""
    return PaletteExtractor().extract(image, sample_count, avoid_near_black, **kwargs)
