"""
Backtesting Module - Boundary validation, walk-forward analysis and backtests.
"""

from .engine.boundary_backtest import (
    BoundaryBacktester,
    BacktestResult,
    BoundaryTrade,
)

from .validation import (
    CrossValidationFold,
    CrossValidationResult,
    TimeSeriesCrossValidationResult,
    OptimizationMethod,
    ValidationStrategy,
    KFoldValidation,
    ExpandingWindowValidation,
    RollingWindowValidation,
    BoundaryOptimizationMethod,
    CrossValidationService,
    WalkForwardWindow,
    WalkForwardResults,
    WalkForwardAnalyzer,
    create_walk_forward_windows,
)

from .analysis.metrics import (
    calculate_sharpe_ratio,
    calculate_max_drawdown,
    calculate_risk_metrics,
)

from .service import BacktestService


__all__ = [
    # Engine
    'BoundaryBacktester',
    'BacktestResult',
    'BoundaryTrade',
    # Validation
    'CrossValidationFold',
    'CrossValidationResult',
    'TimeSeriesCrossValidationResult',
    'OptimizationMethod',
    'ValidationStrategy',
    'KFoldValidation',
    'ExpandingWindowValidation',
    'RollingWindowValidation',
    'BoundaryOptimizationMethod',
    'CrossValidationService',
    'WalkForwardWindow',
    'WalkForwardResults',
    'WalkForwardAnalyzer',
    'create_walk_forward_windows',
    # Metrics
    'calculate_sharpe_ratio',
    'calculate_max_drawdown',
    'calculate_risk_metrics',
    # Service
    'BacktestService',
]
