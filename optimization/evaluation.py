"""
Boundary Evaluation - In-sample vs out-of-sample comparison.

Compares the hit rate each boundary achieved on its training data with
the hit rate it achieves on a disjoint test set, and flags overfitting
when the weighted performance drops too far.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from core.config import OptimizationConfig
from core.statistics import boundary_hit_rate
from core.types import OptimalBoundary, PriceMovement

logger = logging.getLogger(__name__)


@dataclass
class BoundaryValidation:
    boundary: OptimalBoundary
    in_sample_hit_rate: float
    out_of_sample_hit_rate: float
    performance_degradation: float
    is_stable: bool
    stability_score: float
    out_of_sample_count: int = 0


@dataclass
class ValidationResult:
    """Overall in-sample vs out-of-sample comparison for a boundary set."""
    in_sample_performance: float
    out_of_sample_performance: float
    performance_degradation: float
    boundary_performance: List[BoundaryValidation] = field(default_factory=list)
    is_overfitted: bool = False
    validation_metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def stable_boundaries(self) -> List[BoundaryValidation]:
        return [b for b in self.boundary_performance if b.is_stable]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'in_sample_performance': self.in_sample_performance,
            'out_of_sample_performance': self.out_of_sample_performance,
            'performance_degradation': self.performance_degradation,
            'is_overfitted': self.is_overfitted,
            'boundary_count': len(self.boundary_performance),
            'validation_metrics': dict(self.validation_metrics),
        }


def degradation(in_sample: float, out_of_sample: float) -> float:
    """|in - out| / in, or 1.0 when the in-sample rate is zero."""
    if in_sample <= 0:
        return 1.0
    return abs(in_sample - out_of_sample) / in_sample


def validate_boundaries(
    boundaries: List[OptimalBoundary],
    test_movements: List[PriceMovement],
    target_atr_move: float,
    config: OptimizationConfig = None
) -> ValidationResult:
    """
    Score boundaries on held-out movements.

    The in-sample rate is the boundary's own training hit rate. Overall
    performance weights each boundary by sqrt(sample_count).
    """
    config = config or OptimizationConfig()

    if not boundaries or not test_movements:
        return ValidationResult(
            in_sample_performance=0.0,
            out_of_sample_performance=0.0,
            performance_degradation=1.0,
            is_overfitted=True,
            validation_metrics={
                'stable_boundaries_pct': 0.0,
                'average_stability_score': 0.0,
                'test_sample_size': float(len(test_movements or [])),
            },
        )

    threshold = config.performance_degradation_threshold
    per_boundary = []
    weights = []
    in_rates = []
    out_rates = []

    for boundary in boundaries:
        out_rate, out_count = boundary_hit_rate(boundary, test_movements, target_atr_move)
        deg = degradation(boundary.hit_rate, out_rate)

        per_boundary.append(BoundaryValidation(
            boundary=boundary,
            in_sample_hit_rate=boundary.hit_rate,
            out_of_sample_hit_rate=out_rate,
            performance_degradation=deg,
            is_stable=deg < threshold,
            stability_score=max(0.0, 1.0 - deg),
            out_of_sample_count=out_count,
        ))
        weights.append(math.sqrt(max(boundary.sample_count, 0)))
        in_rates.append(boundary.hit_rate)
        out_rates.append(out_rate)

    weights = np.asarray(weights)
    if weights.sum() > 0:
        in_perf = float(np.average(in_rates, weights=weights))
        out_perf = float(np.average(out_rates, weights=weights))
    else:
        in_perf = float(np.mean(in_rates))
        out_perf = float(np.mean(out_rates))

    overall = degradation(in_perf, out_perf)
    stable_pct = sum(1 for b in per_boundary if b.is_stable) / len(per_boundary)

    result = ValidationResult(
        in_sample_performance=in_perf,
        out_of_sample_performance=out_perf,
        performance_degradation=overall,
        boundary_performance=per_boundary,
        is_overfitted=overall > config.overfitting_threshold,
        validation_metrics={
            'stable_boundaries_pct': stable_pct,
            'average_stability_score': float(np.mean([b.stability_score for b in per_boundary])),
            'test_sample_size': float(len(test_movements)),
        },
    )

    logger.debug(
        f"Validated {len(boundaries)} boundaries: in={in_perf:.3f}, "
        f"out={out_perf:.3f}, degradation={overall:.3f}"
    )
    return result
