"""Weighted k-means clustering in LAB space with k-means++ seeding."""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np
from scipy.spatial.distance import cdist
from sklearn.utils import check_random_state

from palettelab.types import LABColor, ExtractionCancelled

logger = logging.getLogger(__name__)

RandomStateLike = Union[None, int, np.random.RandomState]


@dataclass
class ColorCluster:
    """A centroid and the samples assigned to it in the last iteration."""
    centroid: LABColor
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.intp))
    total_weight: float = 0.0

    @property
    def size(self) -> int:
        return int(len(self.indices))


@dataclass
class KMeansResult:
    clusters: List[ColorCluster]
    iterations: int = 0
    converged: bool = False


def kmeans_plus_plus(
    samples: np.ndarray,
    weights: np.ndarray,
    k: int,
    random_state: RandomStateLike = None
) -> np.ndarray:
    """
    Choose initial centroids with weighted k-means++.

    The first centroid is drawn proportionally to sample weight, each
    following one proportionally to squared distance from the nearest
    chosen centroid times sample weight. Seeding stops early once every
    sample coincides with a chosen centroid.

    Args:
        samples: (N, 3) LAB coordinates
        weights: (N,) positive weights
        k: Maximum number of centroids
        random_state: Seed or RandomState for reproducible draws

    Returns:
        (M, 3) centroids with M <= k
    """
    n = len(samples)
    total = float(weights.sum()) if n else 0.0
    if k <= 0 or n == 0 or total <= 0:
        return np.zeros((0, 3), dtype=np.float64)

    # A fresh generator per call instead of numpy's global one
    rng = np.random.RandomState() if random_state is None else check_random_state(random_state)

    first = rng.choice(n, p=weights / total)
    centroids = [samples[first]]
    closest = np.sum((samples - samples[first]) ** 2, axis=1)

    while len(centroids) < min(k, n):
        mass = closest * weights
        mass_total = float(mass.sum())
        if mass_total <= 0:
            logger.debug(f"Only {len(centroids)} distinct seeds available for k={k}")
            break

        pick = rng.choice(n, p=mass / mass_total)
        centroids.append(samples[pick])
        closest = np.minimum(closest, np.sum((samples - samples[pick]) ** 2, axis=1))

    return np.array(centroids, dtype=np.float64)


def weighted_kmeans(
    samples: np.ndarray,
    weights: np.ndarray,
    k: int,
    random_state: RandomStateLike = None,
    max_iterations: int = 30,
    tolerance: float = 1e-4,
    cancel_event: Optional[threading.Event] = None,
    deadline: Optional[float] = None
) -> KMeansResult:
    """
    Cluster weighted LAB samples.

    Samples are assigned by squared Euclidean distance; centroids are the
    weighted means of their samples. A centroid without samples keeps its
    position. Iteration stops when no centroid moves more than tolerance
    in any channel.

    Args:
        samples: (N, 3) LAB coordinates
        weights: (N,) positive weights
        k: Number of clusters
        random_state: Seed or RandomState for the k-means++ draws
        max_iterations: Iteration cap
        tolerance: Per-channel convergence threshold
        cancel_event: When set, the run is abandoned at the next iteration
                      boundary
        deadline: time.monotonic() value after which no new iteration starts

    Returns:
        KMeansResult with one ColorCluster per centroid

    Raises:
        ExtractionCancelled: If cancel_event is set at an iteration boundary
    """
    samples = np.asarray(samples, dtype=np.float64)
    weights = np.asarray(weights, dtype=np.float64)

    centroids = kmeans_plus_plus(samples, weights, k, random_state)
    m = len(centroids)
    if m == 0:
        return KMeansResult(clusters=[])

    labels = np.zeros(len(samples), dtype=np.intp)
    totals = np.zeros(m, dtype=np.float64)
    iterations = 0
    converged = False

    for iteration in range(1, max_iterations + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise ExtractionCancelled(f"Clustering cancelled before iteration {iteration}")

        if iteration > 1 and deadline is not None and time.monotonic() >= deadline:
            logger.info(f"Deadline reached after {iterations} iterations")
            break

        distances = cdist(samples, centroids, 'sqeuclidean')
        labels = np.argmin(distances, axis=1)

        totals = np.bincount(labels, weights=weights, minlength=m)
        sums = np.stack(
            [np.bincount(labels, weights=weights * samples[:, c], minlength=m) for c in range(3)],
            axis=1
        )

        occupied = totals > 0
        updated = centroids.copy()
        updated[occupied] = sums[occupied] / totals[occupied, np.newaxis]

        moved = np.abs(updated - centroids).max(axis=1) > tolerance
        centroids[moved] = updated[moved]
        iterations = iteration

        if not moved.any():
            converged = True
            break

    logger.debug(
        f"k-means: k={m}, {len(samples)} samples, {iterations} iterations, "
        f"converged={converged}"
    )

    clusters = [
        ColorCluster(
            centroid=LABColor(*(float(v) for v in centroids[j])),
            indices=np.flatnonzero(labels == j),
            total_weight=float(totals[j])
        )
        for j in range(m)
    ]

    return KMeansResult(clusters=clusters, iterations=iterations, converged=converged)
