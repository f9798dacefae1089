"""
Decision Tree Strategy - Split-based boundary discovery.

Labels every movement as a large move (|atr| >= target) or not, grows a
depth-bounded binary split tree on the single measurement feature using
Gini impurity, and turns the split thresholds into contiguous intervals.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from core.config import MLOptimizationConfig
from core.statistics import range_statistics
from core.types import OptimalBoundary, OptimizationMethodType
from .base import OptimizationStrategy, StrategyKind, TrainingDataValidation

logger = logging.getLogger(__name__)


def _gini(positives: np.ndarray, counts: np.ndarray) -> np.ndarray:
    p = positives / counts
    return 2.0 * p * (1.0 - p)


def best_split(
    values: np.ndarray,
    labels: np.ndarray,
    min_samples_per_leaf: int
) -> Tuple[Optional[float], float]:
    """
    Best Gini split on one feature.

    Candidate thresholds are midpoints between consecutive distinct values,
    and both children must keep at least min_samples_per_leaf rows.

    Returns:
        (threshold, impurity decrease); threshold is None when no split qualifies
    """
    n = len(values)
    if n < 2 * min_samples_per_leaf:
        return None, 0.0

    order = np.argsort(values, kind='mergesort')
    v = values[order]
    y = labels[order].astype(float)

    cum_pos = np.cumsum(y)
    total_pos = cum_pos[-1]

    left_n = np.arange(min_samples_per_leaf, n - min_samples_per_leaf + 1)
    distinct = v[left_n - 1] < v[left_n]
    if not distinct.any():
        return None, 0.0
    left_n = left_n[distinct]

    right_n = n - left_n
    left_pos = cum_pos[left_n - 1]
    right_pos = total_pos - left_pos

    weighted = (left_n * _gini(left_pos, left_n) + right_n * _gini(right_pos, right_n)) / n
    parent = _gini(np.array([total_pos]), np.array([float(n)]))[0]
    gains = parent - weighted

    best = int(np.argmax(gains))
    i = left_n[best]
    return float((v[i - 1] + v[i]) / 2.0), float(gains[best])


class SingleFeatureTree:
    """
    Minimal binary classification tree over one scalar feature.

    Only the split thresholds are kept; the strategy re-derives
    interval statistics from the data itself.
    """

    def __init__(self, max_depth: int = 5, min_samples_per_leaf: int = 10):
        self.max_depth = max_depth
        self.min_samples_per_leaf = max(1, min_samples_per_leaf)
        self.thresholds: List[float] = []
        self.node_count = 0

    def fit(self, values: np.ndarray, labels: np.ndarray) -> 'SingleFeatureTree':
        self.thresholds = []
        self.node_count = 0
        self._grow(np.asarray(values, dtype=float), np.asarray(labels, dtype=bool), depth=0)
        self.thresholds.sort()
        return self

    def _grow(self, values: np.ndarray, labels: np.ndarray, depth: int):
        self.node_count += 1
        n = len(values)
        positives = int(labels.sum())

        if depth >= self.max_depth or n < 2 * self.min_samples_per_leaf:
            return
        if positives == 0 or positives == n:
            return

        threshold, gain = best_split(values, labels, self.min_samples_per_leaf)
        if threshold is None or gain <= 0:
            return

        self.thresholds.append(threshold)
        left = values <= threshold
        self._grow(values[left], labels[left], depth + 1)
        self._grow(values[~left], labels[~left], depth + 1)

    @property
    def depth_used(self) -> int:
        return len(self.thresholds)


class DecisionTreeStrategy(OptimizationStrategy):
    """Boundaries from the split thresholds of a single-feature tree."""

    kind = StrategyKind.DECISION_TREE

    DEFAULT_MAX_DEPTH = 5
    DEFAULT_MIN_SAMPLES_PER_LEAF = 10

    def get_parameters(self, config: MLOptimizationConfig = None) -> Dict[str, Any]:
        config = config or MLOptimizationConfig()
        max_depth = int(config.get_parameter('decision_tree_max_depth', self.DEFAULT_MAX_DEPTH))
        return {
            'max_depth': min(max_depth, self.config.max_depth),
            'min_samples_per_leaf': int(config.get_parameter(
                'decision_tree_min_samples_per_leaf', self.DEFAULT_MIN_SAMPLES_PER_LEAF
            )),
            'min_hit_rate': float(config.get_parameter(
                'decision_tree_min_hit_rate', self.config.min_hit_rate
            )),
        }

    def minimum_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.get_parameters(config)['min_samples_per_leaf'] * 4

    def recommended_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.minimum_sample_size(config) * 5

    def _validate_specific(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        result: TrainingDataValidation
    ):
        params = self.get_parameters(config)
        if params['min_samples_per_leaf'] < 1:
            result.errors.append(
                f"min_samples_per_leaf must be positive, got {params['min_samples_per_leaf']}"
            )

        large = np.abs(atr) >= config.target_atr_move
        if large.all():
            result.warnings.append("Every movement reaches the target; the tree has nothing to separate")
        else:
            ratio = large.mean()
            if 0 < ratio < 0.1 or ratio > 0.9:
                result.warnings.append(f"Class imbalance: {ratio:.1%} of rows are large moves")

    def _execute(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        diagnostics: Dict[str, Any]
    ) -> List[OptimalBoundary]:
        params = self.get_parameters(config)
        target = config.target_atr_move
        labels = np.abs(atr) >= target

        tree = SingleFeatureTree(
            max_depth=params['max_depth'],
            min_samples_per_leaf=params['min_samples_per_leaf'],
        ).fit(values, labels)

        edges = [float(values.min())] + tree.thresholds + [float(values.max())]
        diagnostics['split_count'] = len(tree.thresholds)
        diagnostics['tree_nodes'] = tree.node_count

        boundaries = []
        for low, high in zip(edges[:-1], edges[1:]):
            if not low < high:
                continue

            count, hit_rate, expected, prob_up = range_statistics(values, atr, low, high, target)
            if count < params['min_samples_per_leaf'] or hit_rate <= params['min_hit_rate']:
                continue

            size_confidence = min(1.0, count / 100.0)
            rate_confidence = max(hit_rate, 0.5)

            boundaries.append(OptimalBoundary(
                range_low=low,
                range_high=high,
                expected_atr_move=expected,
                hit_rate=hit_rate,
                sample_count=count,
                confidence=(size_confidence + rate_confidence) / 2.0,
                method=OptimizationMethodType.DECISION_TREE,
                probability_up=prob_up,
            ))

        return boundaries
