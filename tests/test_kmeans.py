"""Tests for weighted k-means clustering in LAB space."""
import threading
import time

import numpy as np
import pytest

from palettelab.kmeans import kmeans_plus_plus, weighted_kmeans
from palettelab.types import ExtractionCancelled, LABColor


def two_groups(seed=0):
    rng = np.random.RandomState(seed)
    a = rng.normal([20.0, 10.0, -5.0], 1.0, size=(60, 3))
    b = rng.normal([80.0, -20.0, 30.0], 1.0, size=(40, 3))
    return np.vstack([a, b]), np.ones(100)


class TestSeeding:
    """Test k-means++ seeding."""

    def test_seeds_are_samples(self):
        samples, weights = two_groups()
        centroids = kmeans_plus_plus(samples, weights, 2, random_state=1)

        assert centroids.shape == (2, 3)
        for centroid in centroids:
            assert np.any(np.all(samples == centroid, axis=1))

    def test_stops_when_no_distinct_points_remain(self):
        samples = np.tile([[50.0, 0.0, 0.0]], (10, 1))
        centroids = kmeans_plus_plus(samples, np.ones(10), 5, random_state=0)
        assert len(centroids) == 1

    def test_reproducible_with_seed(self):
        samples, weights = two_groups()
        first = kmeans_plus_plus(samples, weights, 3, random_state=42)
        second = kmeans_plus_plus(samples, weights, 3, random_state=42)
        np.testing.assert_array_equal(first, second)

    def test_empty_input(self):
        assert kmeans_plus_plus(np.zeros((0, 3)), np.zeros(0), 3).shape == (0, 3)


class TestWeightedKMeans:
    """Test the clustering loop."""

    def test_separates_groups(self):
        samples, weights = two_groups()
        result = weighted_kmeans(samples, weights, 2, random_state=0)

        assert result.converged
        lightness = sorted(c.centroid.l for c in result.clusters)
        assert lightness[0] == pytest.approx(20.0, abs=1.0)
        assert lightness[1] == pytest.approx(80.0, abs=1.0)
        assert sorted(c.size for c in result.clusters) == [40, 60]

    def test_weighted_mean(self):
        samples = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
        result = weighted_kmeans(samples, np.array([3.0, 1.0]), 1, random_state=0)

        assert len(result.clusters) == 1
        assert result.clusters[0].centroid.l == pytest.approx(2.5)
        assert result.clusters[0].total_weight == pytest.approx(4.0)

    def test_total_weight_preserved(self):
        samples, _ = two_groups()
        weights = np.linspace(0.5, 2.0, len(samples))
        result = weighted_kmeans(samples, weights, 3, random_state=5)
        assert sum(c.total_weight for c in result.clusters) == pytest.approx(weights.sum())

    def test_cancelled_before_first_iteration(self):
        samples, weights = two_groups()
        event = threading.Event()
        event.set()

        with pytest.raises(ExtractionCancelled):
            weighted_kmeans(samples, weights, 2, random_state=0, cancel_event=event)

    def test_expired_deadline_still_returns_clusters(self):
        samples, weights = two_groups()
        result = weighted_kmeans(samples, weights, 2, random_state=0, deadline=time.monotonic() - 1.0)

        assert len(result.clusters) == 2
        assert result.iterations <= 1

    def test_empty_cluster_keeps_centroid(self, monkeypatch):
        samples = np.array([[10.0, 0.0, 0.0], [12.0, 0.0, 0.0], [50.0, 0.0, 0.0]])
        seeds = np.array([[10.0, 0.0, 0.0], [50.0, 0.0, 0.0], [90.0, 0.0, 0.0]])
        monkeypatch.setattr('palettelab.kmeans.kmeans_plus_plus', lambda *args: seeds.copy())

        result = weighted_kmeans(samples, np.ones(3), 3, random_state=0)

        empty = result.clusters[2]
        assert empty.centroid == LABColor(90.0, 0.0, 0.0)
        assert empty.size == 0
        assert empty.total_weight == 0.0
        assert result.clusters[0].centroid.l == pytest.approx(11.0)
