"""
Cross-Validation Results - Fold records and aggregate statistics.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.types import DateRange, OptimalBoundary
from optimization.evaluation import ValidationResult


@dataclass
class CrossValidationFold:
    """One train/validation split and how the boundaries fared on it."""
    fold_index: int
    training_score: float
    validation_score: float
    training_boundaries: List[OptimalBoundary]
    validation_result: ValidationResult
    training_sample_count: int
    validation_sample_count: int
    period: Optional[DateRange] = None
    training_indices: Tuple[int, ...] = ()
    validation_indices: Tuple[int, ...] = ()

    @property
    def score_gap(self) -> float:
        return self.training_score - self.validation_score


@dataclass
class CrossValidationResult:
    fold_scores: List[float]
    mean_score: float
    std_dev_score: float
    confidence_interval: Tuple[float, float]
    fold_results: List[CrossValidationFold]
    is_overfitting: bool
    metrics: Dict[str, float] = field(default_factory=dict)
    strategy_name: str = ""
    config: Any = None
    diagnostics: List[str] = field(default_factory=list)

    @property
    def fold_count(self) -> int:
        return len(self.fold_results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy_name': self.strategy_name,
            'fold_count': self.fold_count,
            'fold_scores': list(self.fold_scores),
            'mean_score': self.mean_score,
            'std_dev_score': self.std_dev_score,
            'confidence_interval': list(self.confidence_interval),
            'is_overfitting': self.is_overfitting,
            'metrics': dict(self.metrics),
            'diagnostics': list(self.diagnostics),
        }


@dataclass
class TimeSeriesCrossValidationResult(CrossValidationResult):
    """Adds temporal stability diagnostics for time-ordered validation."""
    is_stationary: bool = False
    stationarity_tests: Dict[str, float] = field(default_factory=dict)
    temporal_degradation: float = 0.0
    optimal_lookback_window: timedelta = timedelta(days=30)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({
            'is_stationary': self.is_stationary,
            'stationarity_tests': dict(self.stationarity_tests),
            'temporal_degradation': self.temporal_degradation,
            'optimal_lookback_days': self.optimal_lookback_window.total_seconds() / 86400,
        })
        return result
