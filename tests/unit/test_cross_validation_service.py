"""
Tests for CrossValidationService.
"""

import pytest

# Import test fixtures
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fixtures.sample_data import generate_price_movements
from fixtures.mock_methods import BrokenMethod, ConstantScoreMethod, DiagnosticMethod, OverfitMethod


class TestCrossValidationService:
    """Test the service wrapper around validation strategies."""

    def test_fewer_rows_than_folds(self, ml_config):
        from backtesting.validation import CrossValidationService
        from core.exceptions import InsufficientDataError

        service = CrossValidationService()
        strategy = service.create_kfold_strategy(k=5)
        with pytest.raises(InsufficientDataError) as exc_info:
            service.run_cross_validation(generate_price_movements(n_samples=4), strategy, ml_config)
        assert exc_info.value.required == 5
        assert exc_info.value.actual == 4

    def test_non_domain_error_wrapped(self, band_movements, ml_config):
        from backtesting.validation import CrossValidationService
        from core.exceptions import ConvergenceFailureReason, OptimizationConvergenceError

        service = CrossValidationService()
        strategy = service.create_kfold_strategy(k=3)
        with pytest.raises(OptimizationConvergenceError) as exc_info:
            service.run_cross_validation(band_movements, strategy, ml_config, method=BrokenMethod())

        error = exc_info.value
        assert error.strategy_name == "KFold"
        assert error.reason == ConvergenceFailureReason.ALGORITHM_ERROR
        assert error.max_iterations == 3
        assert isinstance(error.cause, RuntimeError)

    def test_additional_metrics(self, band_movements, ml_config):
        from backtesting.validation import CrossValidationService

        service = CrossValidationService()
        strategy = service.create_kfold_strategy(k=4)
        result = service.run_cross_validation(
            band_movements, strategy, ml_config, method=OverfitMethod(0.8, 0.4)
        )

        metrics = result.metrics
        assert metrics['train_mean'] == pytest.approx(0.8)
        assert metrics['validation_mean'] == pytest.approx(0.4)
        assert metrics['bias_variance_gap'] == pytest.approx(0.4)
        assert metrics['overfitting_risk'] == pytest.approx(0.5)
        assert metrics['cv_stability'] == pytest.approx(1.0)
        assert metrics['avg_train_sample_size'] == pytest.approx(225)
        assert metrics['avg_validation_sample_size'] == pytest.approx(75)
        assert metrics['data_size'] == 300
        assert metrics['unique_values'] == 300
        assert metrics['data_sparsity'] == pytest.approx(1.0)
        assert metrics['fold_count'] == 4
        assert result.is_overfitting

    def test_create_strategy_from_config(self):
        from backtesting.validation import (
            CrossValidationService,
            ExpandingWindowValidation,
            KFoldValidation,
            RollingWindowValidation,
        )
        from core.config import CrossValidationConfig, CrossValidationStrategyType

        expected = {
            CrossValidationStrategyType.K_FOLD: KFoldValidation,
            CrossValidationStrategyType.EXPANDING_WINDOW: ExpandingWindowValidation,
            CrossValidationStrategyType.ROLLING_WINDOW: RollingWindowValidation,
        }
        for kind, cls in expected.items():
            strategy = CrossValidationService.create_strategy(CrossValidationConfig(strategy=kind))
            assert isinstance(strategy, cls)

    def test_time_series_kfold_strategy(self, band_movements):
        from backtesting.validation import CrossValidationService, ExpandingWindowValidation

        strategy = CrossValidationService.create_time_series_kfold_strategy(k=5)

        assert isinstance(strategy, ExpandingWindowValidation)
        assert strategy.config.step_size == pytest.approx(0.2)
        splits = strategy.splits(len(band_movements))
        assert [len(s.training_indices) for s in splits] == [90, 150, 210]
        assert all(len(s.validation_indices) == 60 for s in splits)

    def test_invalid_factory_arguments(self):
        from backtesting.validation import CrossValidationService
        from core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError):
            CrossValidationService.create_kfold_strategy(k=1)
        with pytest.raises(ConfigurationError):
            CrossValidationService.create_expanding_window_strategy(1.5, 0.1)
        with pytest.raises(ConfigurationError):
            CrossValidationService.create_time_series_kfold_strategy(k=1)

    def test_result_serializes(self, band_movements, ml_config):
        from backtesting.validation import CrossValidationService

        service = CrossValidationService()
        result = service.run_cross_validation(
            band_movements, service.create_rolling_window_strategy(), ml_config,
            method=ConstantScoreMethod(0.6),
        )
        data = result.to_dict()
        assert data['strategy_name'] == "ConstantScore"
        assert data['fold_count'] == 5
        assert data['mean_score'] == pytest.approx(0.6)

    @pytest.mark.slow
    def test_real_optimizer_in_folds(self, band_movements, ml_config):
        from backtesting.validation import CrossValidationService

        service = CrossValidationService()
        result = service.run_cross_validation(
            band_movements, service.create_expanding_window_strategy(0.5, 0.1), ml_config
        )

        assert result.strategy_name == "BoundaryOptimizer"
        assert result.fold_count == 5
        assert all(0.0 <= s <= 1.0 for s in result.fold_scores)
        assert result.confidence_interval[0] <= result.mean_score <= result.confidence_interval[1]

    def test_training_diagnostics_reported_per_fold(self, band_movements, ml_config):
        from backtesting.validation import CrossValidationService

        service = CrossValidationService()
        result = service.run_cross_validation(
            band_movements, service.create_expanding_window_strategy(0.3, 0.1), ml_config,
            method=DiagnosticMethod(),
        )

        assert len(result.diagnostics) == result.fold_count == 7
        assert result.diagnostics[0].startswith("Fold 0: Clustering:")
        assert result.diagnostics[-1].startswith("Fold 6: Clustering:")

    @pytest.mark.slow
    def test_strategy_errors_inside_folds_reach_diagnostics(self, band_movements):
        from backtesting.validation import CrossValidationService
        from core.config import MLOptimizationConfig

        config = MLOptimizationConfig(algorithm_parameters={'clustering_max_iterations': 0})
        service = CrossValidationService()
        result = service.run_cross_validation(
            band_movements, service.create_expanding_window_strategy(0.5, 0.1), config
        )

        clustering = [d for d in result.diagnostics if "Clustering" in d]
        assert len(clustering) >= result.fold_count
        assert all(d.startswith("Fold ") for d in clustering)
