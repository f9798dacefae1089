"""
Tests for the boundary backtester and its metrics.
"""

import pytest
import numpy as np
import pandas as pd
from datetime import datetime, timedelta

# Import test fixtures
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def make_movements(pairs, start=datetime(2024, 1, 1)):
    from core.types import PriceMovement
    return [
        PriceMovement(start + timedelta(hours=i), value, atr)
        for i, (value, atr) in enumerate(pairs)
    ]


@pytest.fixture
def two_boundaries():
    from core.types import OptimalBoundary
    return [
        OptimalBoundary(range_low=0.0, range_high=10.0, expected_atr_move=2.0, hit_rate=0.6),
        OptimalBoundary(range_low=20.0, range_high=30.0, expected_atr_move=-1.0, hit_rate=0.6),
    ]


class TestBoundaryBacktester:
    """Test trade simulation."""

    def test_hand_computed_result(self, two_boundaries):
        from backtesting import BoundaryBacktester

        moves = make_movements([(5.0, 3.0), (25.0, 0.5), (25.0, -2.0), (50.0, 1.0)])
        result = BoundaryBacktester().run(two_boundaries, moves, 1.5)

        assert result.total_trades == 3
        assert result.winning_trades == 2
        assert result.hit_rate == pytest.approx(2 / 3)
        assert result.average_return == pytest.approx(0.0)
        assert result.sharpe_ratio == pytest.approx(0.0)
        assert result.max_drawdown == pytest.approx(0.02)
        assert result.risk_metrics['avg_win'] == pytest.approx(1.0)
        assert result.risk_metrics['avg_loss'] == pytest.approx(-2.0)
        assert [t.trade_return for t in result.trades] == pytest.approx([1.5, 0.5, -2.0])
        assert [t.boundary_index for t in result.trades] == [0, 1, 1]

    def test_no_trades(self, two_boundaries):
        from backtesting import BoundaryBacktester

        result = BoundaryBacktester().run(two_boundaries, make_movements([(50.0, 1.0)]), 1.5)

        assert result.total_trades == 0
        assert result.hit_rate == 0.0
        assert result.average_return == 0.0
        assert result.sharpe_ratio == 0.0
        assert result.max_drawdown == 0.0

    def test_first_matching_boundary_wins(self):
        from backtesting import BoundaryBacktester
        from core.types import OptimalBoundary

        overlapping = [
            OptimalBoundary(range_low=0.0, range_high=10.0, expected_atr_move=1.0),
            OptimalBoundary(range_low=5.0, range_high=15.0, expected_atr_move=-1.0),
        ]
        result = BoundaryBacktester().run(overlapping, make_movements([(7.0, 2.0)]), 1.5)
        assert result.trades[0].boundary_index == 0
        assert result.trades[0].is_win

    def test_small_expected_move_floored(self):
        from backtesting import BoundaryBacktester
        from core.types import OptimalBoundary

        boundary = OptimalBoundary(range_low=0.0, range_high=10.0, expected_atr_move=0.01)
        result = BoundaryBacktester().run([boundary], make_movements([(1.0, 0.5)]), 1.5)
        assert result.trades[0].trade_return == pytest.approx(5.0)

    @pytest.mark.parametrize("target", [0.0, -1.5])
    def test_non_positive_target(self, two_boundaries, target):
        from backtesting import BoundaryBacktester
        from core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError):
            BoundaryBacktester().run(two_boundaries, make_movements([(5.0, 3.0)]), target)

    def test_drawdown_bounds(self, band_movements):
        from backtesting import BoundaryBacktester
        from optimization.decision_tree import DecisionTreeStrategy
        from core.config import MLOptimizationConfig

        train, test = band_movements[:200], band_movements[200:]
        boundaries = DecisionTreeStrategy().optimize(train, MLOptimizationConfig()).boundaries
        result = BoundaryBacktester().run(boundaries, test, 1.5)

        assert 0.0 <= result.max_drawdown <= 1.0
        assert 0.0 <= result.hit_rate <= 1.0
        assert result.winning_trades <= result.total_trades

    def test_training_hit_rate_reproduced(self, band_movements):
        from backtesting import BoundaryBacktester
        from optimization.decision_tree import DecisionTreeStrategy
        from core.config import MLOptimizationConfig

        boundaries = DecisionTreeStrategy().optimize(band_movements, MLOptimizationConfig()).boundaries
        assert boundaries

        for boundary in boundaries:
            result = BoundaryBacktester().run([boundary], band_movements, 1.5)
            assert result.total_trades == boundary.sample_count
            assert result.hit_rate == pytest.approx(boundary.hit_rate)

    def test_service_delegates(self, two_boundaries):
        from backtesting import BacktestService

        moves = make_movements([(5.0, 3.0), (25.0, 0.5), (25.0, -2.0)])
        result = BacktestService().backtest_boundaries(two_boundaries, moves, 1.5)
        assert result.to_dict()['total_trades'] == 3


class TestMetrics:
    """Test metric helpers."""

    def test_sharpe_ratio(self):
        from backtesting.analysis.metrics import calculate_sharpe_ratio

        assert calculate_sharpe_ratio(pd.Series([1.0])) == 0.0
        assert calculate_sharpe_ratio(pd.Series([1.0, 1.0, 1.0])) == 0.0
        returns = pd.Series([1.0, 2.0, 3.0])
        assert calculate_sharpe_ratio(returns) == pytest.approx(2.0 / 1.0)

    def test_drawdown_counts_from_initial_equity(self):
        from backtesting.analysis.metrics import calculate_max_drawdown

        # Falls straight away: measured against the 1.0 starting equity
        equity = pd.Series([0.9, 0.95, 0.8])
        assert calculate_max_drawdown(equity) == pytest.approx(0.2)
        assert calculate_max_drawdown(pd.Series([1.0, 1.1, 1.2])) == 0.0
        assert calculate_max_drawdown(pd.Series(dtype=float)) == 0.0

    def test_summarize_correlations_skips_nan(self):
        from backtesting.analysis.metrics import summarize_correlations

        summary = summarize_correlations([0.5, float('nan'), 0.7])
        assert summary['count'] == 2
        assert summary['mean'] == pytest.approx(0.6)
        assert summary['std'] == pytest.approx(np.std([0.5, 0.7], ddof=1))
        assert summarize_correlations([float('nan')])['count'] == 0
