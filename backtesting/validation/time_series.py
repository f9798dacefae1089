"""
Time-Series Validation - Expanding and rolling window folds.

Both variants sort movements by timestamp so every validation row comes
after every training row in its fold. They differ in how the training
window moves and in how temporal degradation is measured.
"""

import logging
import math
from abc import abstractmethod
from datetime import timedelta
from typing import List

import numpy as np

from core.types import PriceMovement, sort_by_time
from core.statistics import linear_slope
from .base import FoldSplit, OptimizationMethod, ValidationStrategy, coefficient_of_variation
from .results import CrossValidationFold, TimeSeriesCrossValidationResult

logger = logging.getLogger(__name__)


DEFAULT_LOOKBACK = timedelta(days=30)


class TimeSeriesValidation(ValidationStrategy):
    """Shared machinery for time-ordered validation."""

    MIN_TRAIN_ROWS = 10

    # (max std dev, max degradation) for the stationarity verdict
    STATIONARITY_LIMITS = (0.2, 0.3)

    def required_minimum(self) -> int:
        return max(20, 2 * self.MIN_TRAIN_ROWS)

    def prepare(self, data: List[PriceMovement]) -> List[PriceMovement]:
        return sort_by_time(data)

    def step(self, n: int) -> int:
        return max(1, int(n * self.config.step_size))

    @abstractmethod
    def temporal_degradation(self, scores: List[float]) -> float:
        pass

    @abstractmethod
    def optimal_lookback(
        self,
        folds: List[CrossValidationFold],
        data: List[PriceMovement]
    ) -> timedelta:
        pass

    def extra_metrics(self, scores: List[float]) -> dict:
        return {}

    def validate(
        self,
        data: List[PriceMovement],
        method: OptimizationMethod
    ) -> TimeSeriesCrossValidationResult:
        ordered, folds, diagnostics = self._run_folds(data, method)
        agg = self._aggregate(folds)

        scores = agg['fold_scores']
        degradation = self.temporal_degradation(scores)
        max_std, max_deg = self.STATIONARITY_LIMITS
        lookback = self.optimal_lookback(folds, ordered)

        metrics = {
            'window_count': float(len(folds)),
            'avg_training_score': agg['avg_train'],
            'avg_validation_score': agg['avg_val'],
            'train_val_gap': agg['avg_train'] - agg['avg_val'],
            'temporal_degradation': degradation,
            'estimated_optimal_lookback_days': lookback.total_seconds() / 86400,
        }
        metrics.update(self.extra_metrics(scores))

        return TimeSeriesCrossValidationResult(
            fold_scores=scores,
            mean_score=agg['mean_score'],
            std_dev_score=agg['std_dev_score'],
            confidence_interval=agg['confidence_interval'],
            fold_results=folds,
            is_overfitting=agg['is_overfitting'],
            metrics=metrics,
            strategy_name=method.name,
            config=self.config,
            diagnostics=diagnostics,
            is_stationary=agg['std_dev_score'] < max_std and degradation < max_deg,
            stationarity_tests={
                'std_dev_score': agg['std_dev_score'],
                'temporal_degradation': degradation,
                'std_dev_limit': max_std,
                'degradation_limit': max_deg,
            },
            temporal_degradation=degradation,
            optimal_lookback_window=lookback,
        )

    @staticmethod
    def _span(data: List[PriceMovement]) -> timedelta:
        if len(data) < 2:
            return timedelta(0)
        return data[-1].start_timestamp - data[0].start_timestamp


class ExpandingWindowValidation(TimeSeriesValidation):
    """
    Training window anchored at the start and grown by step each fold.

    Degradation is the negative part of the score-vs-fold slope: an
    expanding window that gets worse as it sees more data is decaying.
    """

    name = "ExpandingWindow"
    STATIONARITY_LIMITS = (0.2, 0.3)

    def splits(self, n: int) -> List[FoldSplit]:
        min_train = int(n * self.config.min_train_window_size)
        if min_train < self.MIN_TRAIN_ROWS:
            min_train = min(self.MIN_TRAIN_ROWS, n // 2)

        step = self.step(n)
        splits = []
        train_end = min_train
        while train_end + step <= n:
            splits.append(FoldSplit(
                training_indices=tuple(range(train_end)),
                validation_indices=tuple(range(train_end, train_end + step)),
            ))
            train_end += step
        return splits

    def temporal_degradation(self, scores: List[float]) -> float:
        return max(0.0, -linear_slope(scores))

    def optimal_lookback(self, folds, data) -> timedelta:
        if len(folds) < 2:
            return DEFAULT_LOOKBACK
        best = max(folds, key=lambda f: f.validation_score)
        share = best.training_sample_count / len(data)
        return self._span(data) * share


class RollingWindowValidation(TimeSeriesValidation):
    """
    Fixed-size training window sliding forward by step each fold.

    Rolling windows are expected to be stationary, so degradation is the
    spread of fold scores rather than a trend.
    """

    name = "RollingWindow"
    STATIONARITY_LIMITS = (0.25, 0.2)

    def splits(self, n: int) -> List[FoldSplit]:
        train_size = int(n * self.config.min_train_window_size)
        if train_size < self.MIN_TRAIN_ROWS:
            train_size = min(self.MIN_TRAIN_ROWS, n // 3)

        step = self.step(n)
        splits = []
        start = 0
        while start + train_size + step <= n:
            train_end = start + train_size
            splits.append(FoldSplit(
                training_indices=tuple(range(start, train_end)),
                validation_indices=tuple(range(train_end, train_end + step)),
            ))
            start += step
        return splits

    def temporal_degradation(self, scores: List[float]) -> float:
        if len(scores) < 2:
            return 0.0
        return min(1.0, math.sqrt(float(np.var(scores))))

    def optimal_lookback(self, folds, data) -> timedelta:
        if len(folds) < 2:
            return DEFAULT_LOOKBACK
        share = float(np.mean([f.training_sample_count for f in folds])) / len(data)
        return self._span(data) * share

    def extra_metrics(self, scores: List[float]) -> dict:
        return {'window_consistency': max(0.0, 1.0 - coefficient_of_variation(scores))}
