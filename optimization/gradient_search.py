"""
Gradient Search Strategy - Hill-climbing over (lower, upper) range pairs.

Starts from several overlapping ranges spread across the value domain and
climbs the sample-weighted hit rate using symmetric finite differences on
each bound independently.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from core.config import MLOptimizationConfig
from core.statistics import range_mask, range_statistics
from core.types import OptimalBoundary, OptimizationMethodType
from .base import OptimizationStrategy, StrategyKind, TrainingDataValidation

logger = logging.getLogger(__name__)


@dataclass
class SearchTrace:
    """Outcome of climbing a single starting range."""
    lower: float
    upper: float
    score: float
    iterations: int
    converged: bool


class GradientSearchStrategy(OptimizationStrategy):
    """Finite-difference hill climbing of range bounds."""

    kind = StrategyKind.GRADIENT_SEARCH

    MIN_SAMPLES = 30
    RECOMMENDED_SAMPLES = 100
    MAX_START_RANGES = 5
    ROWS_PER_RANGE = 20
    MIN_ROWS_IN_RANGE = 5
    MIN_WIDTH = 0.01
    PATIENCE = 5
    MIN_SCORE = 0.1

    def get_parameters(self, config: MLOptimizationConfig = None) -> Dict[str, Any]:
        config = config or MLOptimizationConfig()
        return {
            'max_iterations': int(config.get_parameter('gradient_max_iterations', config.max_iterations)),
            'convergence_threshold': float(config.get_parameter(
                'gradient_convergence_threshold', config.convergence_threshold
            )),
            'learning_rate': float(config.get_parameter('gradient_learning_rate', 0.01)),
            'epsilon': float(config.get_parameter('gradient_epsilon', 0.01)),
        }

    def minimum_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.MIN_SAMPLES

    def recommended_sample_size(self, config: MLOptimizationConfig) -> int:
        return self.RECOMMENDED_SAMPLES

    def _validate_specific(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        result: TrainingDataValidation
    ):
        params = self.get_parameters(config)
        if params['learning_rate'] <= 0:
            result.errors.append(f"learning_rate must be positive, got {params['learning_rate']}")
        if params['epsilon'] <= 0:
            result.errors.append(f"epsilon must be positive, got {params['epsilon']}")

        large = np.abs(atr) >= config.target_atr_move
        positives = int(large.sum())
        negatives = len(atr) - positives
        if positives and negatives:
            imbalance = min(positives, negatives) / max(positives, negatives)
            if imbalance < 0.1:
                result.warnings.append(f"Severe class imbalance (ratio {imbalance:.3f})")

        q75, q25 = np.percentile(values, [75, 25])
        if params['learning_rate'] * (q75 - q25) > 1:
            result.warnings.append("Learning rate is large relative to the data spread")

    @staticmethod
    def objective(values: np.ndarray, large: np.ndarray, lower: float, upper: float) -> float:
        """Hit rate weighted by min(1, n/30); 0 with fewer than 5 rows."""
        mask = range_mask(values, lower, upper)
        n = int(mask.sum())
        if n < GradientSearchStrategy.MIN_ROWS_IN_RANGE:
            return 0.0
        return float(large[mask].mean()) * min(1.0, n / 30.0)

    def starting_ranges(self, values: np.ndarray) -> List[Tuple[float, float]]:
        num_ranges = min(self.MAX_START_RANGES, len(values) // self.ROWS_PER_RANGE)
        if num_ranges <= 0:
            return []

        lo, hi = float(values.min()), float(values.max())
        size = (hi - lo) / (num_ranges + 1)
        return [(lo + i * size, lo + i * size + 1.5 * size) for i in range(num_ranges)]

    def climb(
        self,
        values: np.ndarray,
        large: np.ndarray,
        lower: float,
        upper: float,
        params: Dict[str, Any]
    ) -> SearchTrace:
        """Climb one range until patience runs out or the iteration budget is spent."""
        lo, hi = float(values.min()), float(values.max())
        lr = params['learning_rate']
        eps = params['epsilon']
        threshold = params['convergence_threshold']

        best = SearchTrace(lower, upper, -1.0, 0, False)
        previous = None
        stable = 0

        for iteration in range(1, params['max_iterations'] + 1):
            lower = max(lo, min(lower, upper - self.MIN_WIDTH))
            upper = min(hi, max(upper, lower + self.MIN_WIDTH))

            score = self.objective(values, large, lower, upper)
            if score > best.score:
                best = SearchTrace(lower, upper, score, iteration, False)

            if previous is not None and abs(score - previous) < threshold:
                stable += 1
                if stable >= self.PATIENCE:
                    best.iterations = iteration
                    best.converged = True
                    return best
            else:
                stable = 0
            previous = score

            grad_lower = (
                self.objective(values, large, lower + eps, upper) -
                self.objective(values, large, lower - eps, upper)
            ) / (2 * eps)
            grad_upper = (
                self.objective(values, large, lower, upper + eps) -
                self.objective(values, large, lower, upper - eps)
            ) / (2 * eps)

            lower += lr * grad_lower
            upper += lr * grad_upper

        best.iterations = params['max_iterations']
        return best

    @staticmethod
    def merge_overlapping(boundaries: List[OptimalBoundary]) -> List[OptimalBoundary]:
        """Resolve overlaps by keeping the higher hit rate; sorted by range_low."""
        merged: List[OptimalBoundary] = []
        for boundary in sorted(boundaries, key=lambda b: b.range_low):
            if merged and boundary.range_low < merged[-1].range_high:
                if boundary.hit_rate > merged[-1].hit_rate:
                    merged[-1] = boundary
                continue
            merged.append(boundary)
        return merged

    def _execute(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        diagnostics: Dict[str, Any]
    ) -> List[OptimalBoundary]:
        params = self.get_parameters(config)
        target = config.target_atr_move
        large = np.abs(atr) >= target

        candidates = []
        traces = []
        for start_lower, start_upper in self.starting_ranges(values):
            trace = self.climb(values, large, start_lower, start_upper, params)
            traces.append({
                'start': (start_lower, start_upper),
                'iterations': trace.iterations,
                'converged': trace.converged,
                'score': trace.score,
            })

            if trace.score < self.MIN_SCORE or not trace.lower < trace.upper:
                continue

            count, hit_rate, expected, prob_up = range_statistics(
                values, atr, trace.lower, trace.upper, target
            )
            candidates.append(OptimalBoundary(
                range_low=trace.lower,
                range_high=trace.upper,
                expected_atr_move=expected,
                hit_rate=hit_rate,
                sample_count=count,
                confidence=(min(1.0, count / 50.0) + min(1.0, 1.5 * hit_rate)) / 2.0,
                method=OptimizationMethodType.GRADIENT_SEARCH,
                probability_up=prob_up,
            ))

        diagnostics['searches'] = traces
        diagnostics['converged_searches'] = sum(1 for t in traces if t['converged'])

        return self.merge_overlapping(candidates)
