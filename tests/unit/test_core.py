"""
Tests for core types, configuration, exceptions and statistics helpers.
"""

import math
import pytest
import numpy as np
import pandas as pd
from datetime import datetime, timedelta

# Import test fixtures
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fixtures.sample_data import generate_price_movements


class TestPriceMovement:
    """Test PriceMovement record."""

    def test_direction_from_sign(self):
        from core.types import PriceMovement, PriceDirection

        ts = datetime(2024, 1, 1)
        assert PriceMovement(ts, 1.0, 2.0).direction == PriceDirection.UP
        assert PriceMovement(ts, 1.0, -0.5).direction == PriceDirection.DOWN
        assert PriceMovement(ts, 1.0, 0.0).direction == PriceDirection.FLAT

    def test_is_immutable(self):
        from core.types import PriceMovement

        movement = PriceMovement(datetime(2024, 1, 1), 1.0, 2.0)
        with pytest.raises(Exception):
            movement.atr_movement = 3.0

    def test_frame_round_trip_keeps_context(self):
        from core.types import movements_from_frame

        df = pd.DataFrame({
            'timestamp': ['2024-01-01 09:00', '2024-01-01 10:00'],
            'measurement': [10.0, 20.0],
            'atr_movement': [1.5, -0.3],
            'volume': [100.0, 200.0],
            'label': ['a', 'b'],
        })
        movements = movements_from_frame(df, timestamp_col='timestamp')

        assert len(movements) == 2
        assert movements[1].measurement_value == 20.0
        assert movements[1].start_timestamp == datetime(2024, 1, 1, 10)
        assert movements[0].contextual_data == {'volume': 100.0}

    def test_frame_with_missing_values_rejected(self):
        from core.exceptions import DataQualityError
        from core.types import movements_from_frame

        df = pd.DataFrame({
            'timestamp': ['2024-01-01 09:00', '2024-01-01 10:00', '2024-01-01 11:00'],
            'measurement': [10.0, np.nan, 30.0],
            'atr_movement': [1.5, -0.3, np.inf],
        })
        with pytest.raises(DataQualityError) as exc_info:
            movements_from_frame(df, timestamp_col='timestamp')
        assert exc_info.value.context['row_positions'] == [1, 2]
        assert exc_info.value.error_code == "DATA_QUALITY"


class TestDateRange:
    """Test DateRange."""

    def test_contains_is_inclusive(self):
        from core.types import DateRange

        period = DateRange(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 15))
        assert period.contains(datetime(2024, 1, 1, 9))
        assert period.contains(datetime(2024, 1, 1, 15))
        assert not period.contains(datetime(2024, 1, 1, 15, 1))
        assert period.duration == timedelta(hours=6)

    def test_end_before_start_rejected(self):
        from core.types import DateRange

        with pytest.raises(ValueError):
            DateRange(datetime(2024, 1, 2), datetime(2024, 1, 1))

    def test_touching_ranges_do_not_overlap(self):
        from core.types import DateRange

        a = DateRange(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 10))
        b = DateRange(datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 11))
        c = DateRange(datetime(2024, 1, 1, 9, 30), datetime(2024, 1, 1, 11))
        assert not a.overlaps(b)
        assert a.overlaps(c)


class TestOptimalBoundary:
    """Test OptimalBoundary invariants."""

    def test_valid_boundary(self):
        from core.types import OptimalBoundary

        boundary = OptimalBoundary(range_low=1.0, range_high=2.0, hit_rate=0.5,
                                   sample_count=10, confidence=0.7)
        assert boundary.contains(1.0)
        assert boundary.contains(2.0)
        assert not boundary.contains(2.01)
        assert boundary.width == pytest.approx(1.0)

    @pytest.mark.parametrize("kwargs", [
        {'range_low': 2.0, 'range_high': 2.0},
        {'range_low': 3.0, 'range_high': 2.0},
        {'range_low': 1.0, 'range_high': 2.0, 'hit_rate': 1.2},
        {'range_low': 1.0, 'range_high': 2.0, 'confidence': -0.1},
        {'range_low': 1.0, 'range_high': 2.0, 'sample_count': -1},
    ])
    def test_invalid_boundary_rejected(self, kwargs):
        from core.types import OptimalBoundary

        with pytest.raises(ValueError):
            OptimalBoundary(**kwargs)


class TestConfiguration:
    """Test config dataclasses and parameter defaults."""

    def test_defaults_come_from_params(self):
        from core.config import MLOptimizationConfig, OptimizationConfig
        from config.analysis_params import get_params

        assert MLOptimizationConfig().target_atr_move == get_params('ml_optimization')['target_atr_move']
        assert OptimizationConfig().max_ranges == 100

    def test_get_params_overrides_do_not_leak(self):
        from config.analysis_params import get_params

        params = get_params('optimization', max_iterations=5)
        assert params['max_iterations'] == 5
        assert get_params('optimization')['max_iterations'] == 1000

    def test_unknown_section(self):
        from config.analysis_params import get_params

        with pytest.raises(KeyError):
            get_params('nope')

    @pytest.mark.parametrize("kwargs", [
        {'target_atr_move': 0},
        {'max_ranges': 0},
        {'validation_ratio': 1.0},
    ])
    def test_invalid_ml_config(self, kwargs):
        from core.config import MLOptimizationConfig
        from core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError):
            MLOptimizationConfig(**kwargs)

    def test_invalid_cv_config(self):
        from core.config import CrossValidationConfig
        from core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError) as exc_info:
            CrossValidationConfig(k_folds=1)
        assert exc_info.value.key == 'k_folds'
        assert exc_info.value.get_fix_suggestions()


class TestExceptions:
    """Test exception context."""

    def test_insufficient_data_names_counts(self):
        from core.exceptions import InsufficientDataError, BoundaryAnalysisError

        error = InsufficientDataError("k-fold validation", required=10, actual=4)
        assert isinstance(error, BoundaryAnalysisError)
        assert "10" in str(error) and "4" in str(error)
        assert error.shortfall == 6
        assert "6" in error.recommended_action
        assert error.context['required'] == 10

    def test_convergence_error_trims_history(self):
        from core.exceptions import OptimizationConvergenceError, ConvergenceFailureReason

        error = OptimizationConvergenceError(
            strategy_name="GradientSearch",
            reason=ConvergenceFailureReason.MAX_ITERATIONS_REACHED,
            completed_iterations=100,
            max_iterations=100,
            error_history=list(range(20, 0, -1)),
        )
        assert len(error.error_history) == 10
        assert error.error_trend == "improving"
        assert any("max_iterations" in s for s in error.tuning_suggestions())

    def test_convergence_error_carries_cause(self):
        from core.exceptions import OptimizationConvergenceError

        cause = RuntimeError("boom")
        error = OptimizationConvergenceError(strategy_name="KFold", cause=cause)
        assert error.cause is cause
        assert "KFold" in str(error) and "boom" in str(error)


class TestStatistics:
    """Test shared statistics helpers."""

    def test_sample_std_bessel(self):
        from core.statistics import sample_std

        assert sample_std([1.0]) == 0.0
        assert sample_std([1.0, 3.0]) == pytest.approx(math.sqrt(2.0))

    def test_confidence_interval(self):
        from core.statistics import normal_confidence_interval

        assert normal_confidence_interval([0.5]) == (0.0, 0.0)

        values = [0.4, 0.5, 0.6, 0.5]
        low, high = normal_confidence_interval(values, 0.95)
        margin = 1.959964 * np.std(values, ddof=1) / 2
        assert low == pytest.approx(0.5 - margin, rel=1e-4)
        assert high == pytest.approx(0.5 + margin, rel=1e-4)

    def test_pearson_indeterminate(self):
        from core.statistics import pearson_correlation

        assert math.isnan(pearson_correlation([1, 2], [1, 2]))
        assert math.isnan(pearson_correlation([1, 1, 1, 1], [1, 2, 3, 4]))
        assert pearson_correlation([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)

    def test_linear_slope(self):
        from core.statistics import linear_slope

        assert linear_slope([0.7, 0.6, 0.5]) == pytest.approx(-0.1)
        assert linear_slope([0.5]) == 0.0

    def test_range_statistics(self):
        from core.statistics import range_statistics

        values = np.array([1.0, 2.0, 3.0, 10.0])
        atr = np.array([2.0, -0.5, -2.0, 5.0])
        count, hit_rate, expected, prob_up = range_statistics(values, atr, 1.0, 3.0, 1.5)

        assert count == 3
        assert hit_rate == pytest.approx(2 / 3)
        assert expected == pytest.approx(0.0)
        assert prob_up == pytest.approx(1 / 3)

    def test_mean_hit_rate_ignores_empty_boundaries(self):
        from core.statistics import mean_hit_rate
        from core.types import OptimalBoundary

        movements = generate_price_movements(n_samples=50, seed=3)
        covering = OptimalBoundary(range_low=0.0, range_high=100.0)
        empty = OptimalBoundary(range_low=200.0, range_high=300.0)

        alone = mean_hit_rate([covering], movements, 1.5)
        assert mean_hit_rate([covering, empty], movements, 1.5) == pytest.approx(alone)
        assert mean_hit_rate([empty], movements, 1.5) == 0.0
