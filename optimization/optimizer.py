"""
Boundary Optimizer - Runs the enabled strategies and selects boundaries.

Splits the data in time order, trains every enabled strategy on the head,
scores each on the held-out tail and keeps the best performer. Also offers
a brute-force sliding-window search, per-window dynamic boundaries and a
multi-objective Pareto search.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from core.config import MLOptimizationConfig, OptimizationConfig
from core.exceptions import ConfigurationError, InsufficientDataError
from core.statistics import range_mask, range_statistics
from core.types import (
    OptimalBoundary,
    OptimizationMethodType,
    OptimizationTarget,
    PriceMovement,
    sort_by_time,
    to_arrays,
)
from .base import StrategyResult
from .evaluation import ValidationResult, validate_boundaries
from .factory import OptimizationStrategyFactory

logger = logging.getLogger(__name__)


@dataclass
class MethodResult:
    """How one strategy fared in a combined run."""
    boundaries: List[OptimalBoundary]
    score: float
    execution_time: float
    parameters: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    rejected_data: bool = False


@dataclass
class CombinedOptimizationResult:
    best_method: str
    optimal_boundaries: List[OptimalBoundary]
    validation_score: float
    method_results: Dict[str, MethodResult]
    optimization_time: float
    diagnostics: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'best_method': self.best_method,
            'boundaries': [b.to_dict() for b in self.optimal_boundaries],
            'validation_score': self.validation_score,
            'method_scores': {k: v.score for k, v in self.method_results.items()},
            'optimization_time': self.optimization_time,
            'diagnostics': list(self.diagnostics),
        }


@dataclass
class DynamicBoundaryWindow:
    """Best boundary found inside one time window."""
    window_start: datetime
    window_end: datetime
    boundary: OptimalBoundary
    confidence: float
    sample_size: int
    regime_change: bool
    stability_score: float


@dataclass
class OptimizationObjective:
    target: OptimizationTarget
    min_atr_move: float = 1.5
    weight: float = 1.0


@dataclass
class ParetoSolution:
    boundary: OptimalBoundary
    scores: List[float]
    objective_values: Dict[str, float]
    domination_rank: int = 0


def objective_value(
    values: np.ndarray,
    atr: np.ndarray,
    low: float,
    high: float,
    objective: OptimizationObjective
) -> float:
    """Score of a range under one objective; 0 for an empty range."""
    mask = range_mask(values, low, high)
    if not mask.any():
        return 0.0

    moves = atr[mask]
    if objective.target == OptimizationTarget.HIGHEST_WIN_RATE:
        return float((moves > 0).mean())
    if objective.target == OptimizationTarget.LARGE_MOVE_PROBABILITY:
        return float((np.abs(moves) >= objective.min_atr_move).mean())
    if objective.target == OptimizationTarget.CONSISTENT_RESULTS:
        spread = float(np.std(np.abs(moves), ddof=1)) if len(moves) > 1 else 0.0
        return 1.0 / (1.0 + spread)
    return float(np.mean(np.abs(moves)))


def dominates(a: ParetoSolution, b: ParetoSolution) -> bool:
    """a is at least as good on every score and strictly better on one."""
    strictly_better = False
    for score_a, score_b in zip(a.scores, b.scores):
        if score_a < score_b:
            return False
        if score_a > score_b:
            strictly_better = True
    return strictly_better


class BoundaryOptimizer:
    """
    Orchestrates boundary discovery.

    Usage:
        optimizer = BoundaryOptimizer()
        result = optimizer.run_combined_optimization(movements, MLOptimizationConfig())
        validation = optimizer.validate_boundaries(result.optimal_boundaries, test, 1.5)
    """

    GRID_STEPS = 15
    MIN_GRID_SAMPLES = 3

    def __init__(
        self,
        config: OptimizationConfig = None,
        factory: OptimizationStrategyFactory = None
    ):
        self.config = config or OptimizationConfig()
        self.factory = factory or OptimizationStrategyFactory(self.config)

    def optimize(
        self,
        movements: List[PriceMovement],
        config: MLOptimizationConfig
    ) -> List[OptimalBoundary]:
        """Boundaries chosen by a combined run."""
        return self.run_combined_optimization(movements, config).optimal_boundaries

    def run_combined_optimization(
        self,
        movements: List[PriceMovement],
        config: MLOptimizationConfig
    ) -> CombinedOptimizationResult:
        """
        Train every enabled strategy and keep the best on held-out data.

        A failing strategy is recorded and does not abort the run. If every
        strategy rejected its training data, InsufficientDataError is raised.
        """
        start = time.perf_counter()
        strategies = self.factory.create_strategies(config)
        if not strategies:
            raise ConfigurationError(
                "No optimization strategies are enabled",
                key='use_*',
                value=False,
                expected="at least one strategy enabled",
            )

        ordered = sort_by_time(movements)
        train_size = int(len(ordered) * (1 - config.validation_ratio))
        train, validation = ordered[:train_size], ordered[train_size:]

        method_results: Dict[str, MethodResult] = {}
        diagnostics: List[str] = []

        for strategy in strategies:
            result: StrategyResult = strategy.optimize(train, config)
            score = strategy.evaluate_boundaries(result.boundaries, validation, config.target_atr_move)

            method_results[strategy.name] = MethodResult(
                boundaries=result.boundaries,
                score=score,
                execution_time=result.execution_time,
                parameters=result.parameters,
                errors=result.errors,
                warnings=result.warnings,
                rejected_data=result.rejected_data,
            )
            for error in result.errors:
                diagnostics.append(f"{strategy.name}: {error}")
            for warning in result.warnings:
                diagnostics.append(f"{strategy.name} warning: {warning}")

        if all(r.rejected_data for r in method_results.values()):
            required = min(s.minimum_sample_size(config) for s in strategies)
            raise InsufficientDataError(
                operation="combined boundary optimization",
                required=required,
                actual=len(train),
                guidance="; ".join(diagnostics) or None,
            )

        best_name = max(method_results, key=lambda name: method_results[name].score)
        best = method_results[best_name]
        boundaries = sorted(best.boundaries, key=lambda b: b.confidence, reverse=True)
        boundaries = sorted(boundaries[:config.max_ranges], key=lambda b: b.range_low)

        elapsed = time.perf_counter() - start
        logger.info(
            f"Combined optimization: best={best_name} score={best.score:.4f} "
            f"boundaries={len(boundaries)} ({elapsed:.2f}s)"
        )

        return CombinedOptimizationResult(
            best_method=best_name,
            optimal_boundaries=boundaries,
            validation_score=best.score,
            method_results=method_results,
            optimization_time=elapsed,
            diagnostics=diagnostics,
        )

    def find_optimal_boundaries(
        self,
        movements: List[PriceMovement],
        target_atr_move: float,
        max_ranges: int
    ) -> List[OptimalBoundary]:
        """Exhaustive sliding-window grid; top max_ranges by confidence."""
        if max_ranges <= 0:
            raise ConfigurationError(
                f"max_ranges must be positive, got {max_ranges}",
                key='max_ranges', value=max_ranges, expected="> 0",
            )
        if max_ranges > self.config.max_ranges:
            raise ConfigurationError(
                f"max_ranges cannot exceed {self.config.max_ranges}",
                key='max_ranges', value=max_ranges, expected=f"<= {self.config.max_ranges}",
            )
        if not movements:
            return []

        values, atr = to_arrays(movements)
        lo, hi = float(values.min()), float(values.max())
        if lo == hi:
            return []

        step = (hi - lo) / self.GRID_STEPS
        tolerance = step * 1e-9
        candidates = []

        for i in range(self.GRID_STEPS - 1):
            low = lo + i * step
            j = 2
            while i + j <= self.GRID_STEPS:
                high = min(hi, lo + (i + j) * step)
                j += 1
                if high - low <= tolerance:
                    continue

                count, hit_rate, expected, prob_up = range_statistics(
                    values, atr, low, high, target_atr_move
                )
                if count < self.MIN_GRID_SAMPLES:
                    continue

                score = hit_rate * math.sqrt(count) / 3.0
                candidates.append((score, OptimalBoundary(
                    range_low=low,
                    range_high=high,
                    expected_atr_move=expected,
                    hit_rate=hit_rate,
                    sample_count=count,
                    confidence=min(1.0, score),
                    method=OptimizationMethodType.SLIDING_WINDOW,
                    probability_up=prob_up,
                )))

        # rank on the unclamped score; broad ranges all saturate confidence at 1
        candidates.sort(key=lambda c: c[0], reverse=True)
        return [boundary for _, boundary in candidates[:max_ranges]]

    def validate_boundaries(
        self,
        boundaries: List[OptimalBoundary],
        test_movements: List[PriceMovement],
        target_atr_move: float
    ) -> ValidationResult:
        return validate_boundaries(boundaries, test_movements, target_atr_move, self.config)

    def find_dynamic_boundaries(
        self,
        movements: List[PriceMovement],
        window_size: int,
        step_size: int,
        target_atr_move: float = 1.5
    ) -> List[DynamicBoundaryWindow]:
        """Best sliding-window boundary per time window, with regime-change flags."""
        if window_size <= 0 or step_size <= 0:
            raise ConfigurationError(
                f"window_size and step_size must be positive, got {window_size}/{step_size}",
                key='window_size', value=(window_size, step_size), expected="> 0",
            )
        if len(movements) < window_size:
            return []

        ordered = sort_by_time(movements)
        windows: List[DynamicBoundaryWindow] = []

        for start in range(0, len(ordered) - window_size + 1, step_size):
            chunk = ordered[start:start + window_size]
            found = self.find_optimal_boundaries(chunk, target_atr_move, 1)
            if not found:
                continue

            best = found[0]
            regime_change = False
            stability = 1.0

            if windows:
                prev = windows[-1].boundary
                shift = abs(best.range_low - prev.range_low) + abs(best.range_high - prev.range_high)
                avg_width = (best.width + prev.width) / 2
                if avg_width > 0:
                    ratio = shift / avg_width
                    regime_change = ratio > 0.5
                    stability = max(0.0, 1.0 - ratio)

            windows.append(DynamicBoundaryWindow(
                window_start=chunk[0].start_timestamp,
                window_end=chunk[-1].start_timestamp,
                boundary=best,
                confidence=best.confidence,
                sample_size=len(chunk),
                regime_change=regime_change,
                stability_score=stability,
            ))

        changes = sum(1 for w in windows if w.regime_change)
        logger.info(f"Dynamic boundaries: {len(windows)} windows, {changes} regime changes")
        return windows

    def _local_search(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        objective: OptimizationObjective
    ) -> Optional[Tuple[float, float, float]]:
        """Coordinate search from the 20-80% quantile range for one objective."""
        low, high = (float(q) for q in np.quantile(values, [0.2, 0.8]))
        if not low < high:
            return None

        step = (float(values.max()) - float(values.min())) / 50
        current = objective_value(values, atr, low, high, objective)

        for _ in range(self.config.max_iterations):
            moves = [
                (low - step, high), (low + step, high),
                (low, high - step), (low, high + step),
                (low - step, high + step), (low + step, high - step),
            ]
            best = (current, low, high)
            for test_low, test_high in moves:
                if test_low >= test_high:
                    continue
                score = objective_value(values, atr, test_low, test_high, objective)
                if score > best[0]:
                    best = (score, test_low, test_high)

            if best[0] - current < self.config.convergence_threshold:
                break
            current, low, high = best

        return low, high, current

    def optimize_for_multiple_objectives(
        self,
        movements: List[PriceMovement],
        objectives: List[OptimizationObjective],
        max_solutions: int = 10
    ) -> List[ParetoSolution]:
        """Non-dominated candidate boundaries across several objectives."""
        if not movements or not objectives:
            return []

        values, atr = to_arrays(movements)
        if np.ptp(values) == 0:
            return []

        candidates: List[OptimalBoundary] = []

        for objective in objectives:
            found = self._local_search(values, atr, objective)
            if found is None:
                continue
            low, high, _ = found
            count, hit_rate, expected, prob_up = range_statistics(
                values, atr, low, high, objective.min_atr_move
            )
            if count == 0:
                continue
            candidates.append(OptimalBoundary(
                range_low=low,
                range_high=high,
                expected_atr_move=expected,
                hit_rate=hit_rate,
                sample_count=count,
                confidence=hit_rate,
                method=OptimizationMethodType.GRADIENT_SEARCH,
                probability_up=prob_up,
            ))

        for target in (1.0, 1.5, 2.0):
            candidates.extend(self.find_optimal_boundaries(movements, target, 5)[:3])

        sorted_values = np.sort(values)
        n = len(sorted_values)
        q33, q66 = sorted_values[int(n * 0.33)], sorted_values[int(n * 0.66)]
        q25, q75 = sorted_values[int(n * 0.25)], sorted_values[int(n * 0.75)]
        for low, high in [(sorted_values[0], q33), (q33, q66), (q66, sorted_values[-1]), (q25, q75)]:
            low, high = float(low), float(high)
            if not low < high:
                continue
            count, hit_rate, expected, prob_up = range_statistics(values, atr, low, high, 1.5)
            if count < 5:
                continue
            candidates.append(OptimalBoundary(
                range_low=low,
                range_high=high,
                expected_atr_move=expected,
                hit_rate=hit_rate,
                sample_count=count,
                confidence=hit_rate,
                method=OptimizationMethodType.STATISTICAL,
                probability_up=prob_up,
            ))

        solutions = []
        for boundary in candidates:
            raw = {
                objective.target.value: objective_value(
                    values, atr, boundary.range_low, boundary.range_high, objective
                )
                for objective in objectives
            }
            scores = [raw[o.target.value] * o.weight for o in objectives]
            solutions.append(ParetoSolution(boundary=boundary, scores=scores, objective_values=raw))

        front = [
            s for s in solutions
            if not any(other is not s and dominates(other, s) for other in solutions)
        ]
        front.sort(key=lambda s: sum(s.scores), reverse=True)
        for rank, solution in enumerate(front, start=1):
            solution.domination_rank = rank

        logger.debug(f"Pareto search: {len(candidates)} candidates, {len(front)} on the front")
        return front[:max_solutions]
