"""
Backtest Service - Walk-forward analysis and boundary backtests.

Validates its configuration up front, then exposes window construction,
walk-forward correlation analysis and boundary trade simulation.
"""

import logging
from typing import List

from core.config import (
    OptimizationConfig,
    StatisticalConfig,
    ValidationConfig,
    WalkForwardAnalysisConfig,
)
from core.exceptions import ConfigurationError
from core.types import DateRange, OptimalBoundary, OptimizationTarget, PriceMovement
from .engine.boundary_backtest import BacktestResult, BoundaryBacktester
from .validation.walk_forward import (
    WalkForwardAnalyzer,
    WalkForwardResults,
    WalkForwardWindow,
    create_walk_forward_windows,
)

logger = logging.getLogger(__name__)


class BacktestService:
    """
    Facade over walk-forward analysis and boundary backtesting.

    Usage:
        service = BacktestService()
        windows = service.create_walk_forward_windows(period, 5)
        wf = service.run_walk_forward_analysis(movements, WalkForwardAnalysisConfig(period))
        bt = service.backtest_boundaries(boundaries, test_movements, 1.5)
    """

    def __init__(
        self,
        config: ValidationConfig = None,
        statistical_config: StatisticalConfig = None,
        optimization_config: OptimizationConfig = None
    ):
        self.config = config or ValidationConfig()
        self.statistical_config = statistical_config or StatisticalConfig()
        self.validate_configuration(self.config, self.statistical_config)

        self.analyzer = WalkForwardAnalyzer(self.statistical_config)
        self.backtester = BoundaryBacktester(optimization_config)

    @staticmethod
    def validate_configuration(config: ValidationConfig, statistical_config: StatisticalConfig):
        """Raise ConfigurationError for out-of-range walk-forward settings."""
        wf = config.walk_forward

        if config.max_walk_forward_windows <= 0:
            raise ConfigurationError(
                "max_walk_forward_windows must be positive",
                key='max_walk_forward_windows', value=config.max_walk_forward_windows,
                expected="> 0",
            )
        if not 0 < wf.training_pct < 1:
            raise ConfigurationError(
                "Training percentage must be between 0 and 1",
                key='training_pct', value=wf.training_pct, expected="in (0, 1)",
            )
        if not 0 < wf.testing_pct < 1:
            raise ConfigurationError(
                "Testing percentage must be between 0 and 1",
                key='testing_pct', value=wf.testing_pct, expected="in (0, 1)",
            )
        if wf.training_pct + wf.testing_pct > 1:
            raise ConfigurationError(
                "Training and testing percentages cannot sum above 1.0",
                key='training_pct+testing_pct', value=wf.training_pct + wf.testing_pct,
                expected="<= 1.0",
            )
        if wf.advancement_factor <= 0:
            raise ConfigurationError(
                "Window advancement factor must be positive",
                key='advancement_factor', value=wf.advancement_factor, expected="> 0",
            )
        if not 0 < statistical_config.stability_threshold <= 1:
            raise ConfigurationError(
                "Stability threshold must be in (0, 1]",
                key='stability_threshold', value=statistical_config.stability_threshold,
                expected="in (0, 1]",
            )

    def create_walk_forward_windows(
        self,
        in_sample_period: DateRange,
        window_count: int
    ) -> List[WalkForwardWindow]:
        return create_walk_forward_windows(in_sample_period, window_count, self.config)

    def run_walk_forward_analysis(
        self,
        movements: List[PriceMovement],
        config: WalkForwardAnalysisConfig,
        target: OptimizationTarget = OptimizationTarget.LARGE_MOVE_PROBABILITY
    ) -> WalkForwardResults:
        windows = self.create_walk_forward_windows(config.in_sample_period, config.window_count)
        return self.analyzer.analyze(movements, windows, target)

    def backtest_boundaries(
        self,
        boundaries: List[OptimalBoundary],
        test_data: List[PriceMovement],
        target_atr: float
    ) -> BacktestResult:
        return self.backtester.run(boundaries, test_data, target_atr)
