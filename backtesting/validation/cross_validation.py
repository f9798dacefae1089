"""
Cross-Validation Service - Runs a validation strategy over the optimizer.

Wires a ValidationStrategy to the boundary optimizer and augments the
result with bias/variance, stability and data-quality diagnostics.
"""

import logging
from typing import Dict, List

import numpy as np

from core.config import (
    CrossValidationConfig,
    CrossValidationStrategyType,
    MLOptimizationConfig,
    ValidationConfig,
)
from core.exceptions import (
    BoundaryAnalysisError,
    ConvergenceFailureReason,
    InsufficientDataError,
    OptimizationConvergenceError,
)
from core.statistics import clamp, mean_hit_rate, safe_mean, sample_std
from core.types import OptimalBoundary, PriceMovement
from optimization.optimizer import BoundaryOptimizer
from .base import OptimizationMethod, ValidationStrategy
from .kfold import KFoldValidation
from .results import CrossValidationResult
from .time_series import ExpandingWindowValidation, RollingWindowValidation

logger = logging.getLogger(__name__)


class BoundaryOptimizationMethod(OptimizationMethod):
    """Trains with a combined optimizer run and scores by mean hit rate."""

    name = "BoundaryOptimizer"

    def __init__(self, config: MLOptimizationConfig = None, optimizer: BoundaryOptimizer = None):
        super().__init__(config)
        self.optimizer = optimizer or BoundaryOptimizer()

    def train(self, data: List[PriceMovement]) -> List[OptimalBoundary]:
        result = self.optimizer.run_combined_optimization(data, self.config)
        self.last_diagnostics = list(result.diagnostics)
        return result.optimal_boundaries

    def evaluate(self, boundaries: List[OptimalBoundary], data: List[PriceMovement]) -> float:
        return mean_hit_rate(boundaries, data, self.config.target_atr_move)


VALIDATION_STRATEGIES = {
    CrossValidationStrategyType.K_FOLD: KFoldValidation,
    CrossValidationStrategyType.EXPANDING_WINDOW: ExpandingWindowValidation,
    CrossValidationStrategyType.ROLLING_WINDOW: RollingWindowValidation,
}


class CrossValidationService:
    """
    Runs cross-validation for boundary optimization.

    Usage:
        service = CrossValidationService()
        strategy = service.create_expanding_window_strategy(0.3, 0.1)
        result = service.run_cross_validation(movements, strategy, MLOptimizationConfig())
        print(result.metrics['overfitting_risk'])
    """

    def __init__(self, config: ValidationConfig = None, optimizer: BoundaryOptimizer = None):
        self.config = config or ValidationConfig()
        self.optimizer = optimizer or BoundaryOptimizer()

    def run_cross_validation(
        self,
        data: List[PriceMovement],
        strategy: ValidationStrategy,
        config: MLOptimizationConfig,
        method: OptimizationMethod = None
    ) -> CrossValidationResult:
        """
        Validate the optimizer with the given strategy.

        Raises:
            InsufficientDataError: fewer rows than folds
            OptimizationConvergenceError: a non-domain error escaped the strategy
        """
        k = strategy.config.k_folds
        if len(data) < k:
            raise InsufficientDataError(
                operation="cross-validation",
                required=k,
                actual=len(data),
                guidance=f"Need at least {k} samples for {k}-fold cross-validation",
            )

        method = method or BoundaryOptimizationMethod(config, self.optimizer)

        try:
            result = strategy.validate(data, method)
        except BoundaryAnalysisError:
            raise
        except Exception as e:
            logger.error(f"Cross-validation with {strategy.name} failed: {e}")
            raise OptimizationConvergenceError(
                strategy_name=strategy.name,
                reason=ConvergenceFailureReason.ALGORITHM_ERROR,
                completed_iterations=0,
                max_iterations=k,
                cause=e,
            ) from e

        result.metrics.update(self.additional_metrics(result, data))
        logger.info(
            f"Cross-validation ({strategy.name}): mean={result.mean_score:.4f} "
            f"std={result.std_dev_score:.4f} overfitting={result.is_overfitting}"
        )
        return result

    @staticmethod
    def additional_metrics(
        result: CrossValidationResult,
        data: List[PriceMovement]
    ) -> Dict[str, float]:
        """Bias/variance, stability and data-quality descriptors."""
        metrics: Dict[str, float] = {}

        if result.fold_results:
            train_scores = [f.training_score for f in result.fold_results]
            val_scores = [f.validation_score for f in result.fold_results]
            train_mean = safe_mean(train_scores)
            val_mean = safe_mean(val_scores)
            gap = train_mean - val_mean

            metrics['train_mean'] = train_mean
            metrics['train_std_dev'] = sample_std(train_scores)
            metrics['validation_mean'] = val_mean
            metrics['validation_std_dev'] = sample_std(val_scores)
            metrics['bias_variance_gap'] = gap
            metrics['overfitting_risk'] = max(0.0, gap / max(train_mean, 0.001))
            metrics['cv_stability'] = clamp(
                1.0 - result.std_dev_score / max(abs(result.mean_score), 0.001)
            )

            avg_train_size = safe_mean([f.training_sample_count for f in result.fold_results])
            metrics['avg_train_sample_size'] = avg_train_size
            metrics['avg_validation_sample_size'] = safe_mean(
                [f.validation_sample_count for f in result.fold_results]
            )
            metrics['sample_efficiency'] = result.mean_score / max(avg_train_size, 1.0)

        unique = len(np.unique([m.measurement_value for m in data])) if data else 0
        metrics['data_size'] = float(len(data))
        metrics['unique_values'] = float(unique)
        metrics['data_sparsity'] = unique / len(data) if data else 0.0
        return metrics

    @staticmethod
    def create_strategy(config: CrossValidationConfig) -> ValidationStrategy:
        return VALIDATION_STRATEGIES[config.strategy](config)

    @staticmethod
    def create_kfold_strategy(k: int = 5, random_seed: int = None) -> KFoldValidation:
        return KFoldValidation(CrossValidationConfig(
            k_folds=k,
            strategy=CrossValidationStrategyType.K_FOLD,
            random_seed=random_seed,
        ))

    @staticmethod
    def create_expanding_window_strategy(
        initial_size: float = 0.3,
        step_size: float = 0.1
    ) -> ExpandingWindowValidation:
        return ExpandingWindowValidation(CrossValidationConfig(
            strategy=CrossValidationStrategyType.EXPANDING_WINDOW,
            min_train_window_size=initial_size,
            step_size=step_size,
        ))

    @staticmethod
    def create_time_series_kfold_strategy(k: int = 5) -> ExpandingWindowValidation:
        """Time-ordered k-fold: expanding window from 30% in steps of 1/k."""
        return ExpandingWindowValidation(CrossValidationConfig(
            k_folds=k,
            strategy=CrossValidationStrategyType.EXPANDING_WINDOW,
            min_train_window_size=0.3,
            step_size=1.0 / max(k, 1),
        ))

    @staticmethod
    def create_rolling_window_strategy(
        window_size: float = 0.5,
        step_size: float = 0.1
    ) -> RollingWindowValidation:
        return RollingWindowValidation(CrossValidationConfig(
            strategy=CrossValidationStrategyType.ROLLING_WINDOW,
            min_train_window_size=window_size,
            step_size=step_size,
        ))
