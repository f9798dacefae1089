"""
Clustering Strategy - 1-D k-means boundary discovery.

Partitions movements by measurement value with k-means; each cluster's
value span becomes a candidate boundary scored by its within-cluster
hit rate.
"""

import logging
from typing import Any, Dict, List

import numpy as np
from scipy.cluster.vq import kmeans2

from core.config import MLOptimizationConfig
from core.statistics import range_statistics
from core.types import OptimalBoundary, OptimizationMethodType
from .base import OptimizationStrategy, StrategyKind, TrainingDataValidation

logger = logging.getLogger(__name__)


class ClusteringStrategy(OptimizationStrategy):
    """
    K-means over the measurement value.

    Initial centroids sit at evenly spaced quantiles so the result is
    deterministic for identical input.
    """

    kind = StrategyKind.CLUSTERING

    MAX_CLUSTERS = 10
    MIN_CLUSTER_SIZE = 5
    SAMPLES_PER_CLUSTER = 5

    def get_parameters(self, config: MLOptimizationConfig = None) -> Dict[str, Any]:
        config = config or MLOptimizationConfig()
        k = int(config.get_parameter('cluster_count', self.config.default_cluster_count))
        return {
            'cluster_count': min(k, self.MAX_CLUSTERS),
            'max_iterations': int(config.get_parameter('clustering_max_iterations', 100)),
            'min_hit_rate': float(config.get_parameter('clustering_min_hit_rate', self.config.min_hit_rate)),
        }

    def minimum_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.get_parameters(config)['cluster_count'] * self.SAMPLES_PER_CLUSTER

    def recommended_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.get_parameters(config)['cluster_count'] * 20

    def effective_cluster_count(self, n: int, config: MLOptimizationConfig) -> int:
        k = self.get_parameters(config)['cluster_count']
        return max(2, min(k, n // self.SAMPLES_PER_CLUSTER))

    def _validate_specific(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        result: TrainingDataValidation
    ):
        params = self.get_parameters(config)
        k = params['cluster_count']
        if k < 2:
            result.errors.append(f"cluster_count must be at least 2, got {k}")
        if params['max_iterations'] < 1:
            result.errors.append(
                f"clustering_max_iterations must be at least 1, got {params['max_iterations']}"
            )
        if k >= 2 and min(k, len(values) // self.SAMPLES_PER_CLUSTER) < 2:
            result.errors.append(
                f"Need at least 2 clusters of {self.SAMPLES_PER_CLUSTER} samples, "
                f"got {len(values)} samples for cluster_count={k}"
            )

        q75, q25 = np.percentile(values, [75, 25])
        if q75 - q25 == 0:
            result.warnings.append("Interquartile range is zero; clusters may be degenerate")

    def _execute(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        diagnostics: Dict[str, Any]
    ) -> List[OptimalBoundary]:
        params = self.get_parameters(config)
        target = config.target_atr_move
        k = self.effective_cluster_count(len(values), config)

        quantiles = (np.arange(k) + 0.5) / k
        initial = np.quantile(values, quantiles).reshape(-1, 1)

        centroids, labels = kmeans2(
            values.reshape(-1, 1),
            initial,
            iter=params['max_iterations'],
            minit='matrix',
            missing='warn',
        )
        centroids = centroids.ravel()
        diagnostics['cluster_count'] = k
        diagnostics['centroids'] = [float(c) for c in centroids]

        boundaries = []
        skipped = 0
        for cluster_id in range(k):
            members = values[labels == cluster_id]
            if len(members) < self.MIN_CLUSTER_SIZE:
                skipped += 1
                continue

            low, high = float(members.min()), float(members.max())
            if low == high:
                skipped += 1
                continue

            count, hit_rate, expected, prob_up = range_statistics(values, atr, low, high, target)
            if hit_rate <= params['min_hit_rate']:
                continue

            span = high - low
            avg_distance = float(np.mean(np.abs(members - centroids[cluster_id])))
            density = len(members) / max(1.0, span)

            size_score = min(1.0, count / 50.0)
            performance_score = min(1.0, 2.0 * hit_rate)
            cohesion_score = max(0.1, 1.0 / (1.0 + avg_distance))
            density_score = min(1.0, density / 10.0)

            confidence = (
                0.4 * size_score +
                0.3 * performance_score +
                0.2 * cohesion_score +
                0.1 * density_score
            )

            boundaries.append(OptimalBoundary(
                range_low=low,
                range_high=high,
                expected_atr_move=expected,
                hit_rate=hit_rate,
                sample_count=count,
                confidence=min(1.0, confidence),
                method=OptimizationMethodType.CLUSTERING,
                probability_up=prob_up,
            ))

        diagnostics['skipped_clusters'] = skipped
        boundaries.sort(key=lambda b: b.range_low)
        return boundaries
