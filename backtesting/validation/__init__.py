"""
Backtesting Validation - Cross-validation and walk-forward tools.
"""

from .results import (
    CrossValidationFold,
    CrossValidationResult,
    TimeSeriesCrossValidationResult,
)

from .base import (
    FoldSplit,
    OptimizationMethod,
    ValidationStrategy,
)

from .kfold import KFoldValidation

from .time_series import (
    TimeSeriesValidation,
    ExpandingWindowValidation,
    RollingWindowValidation,
)

from .cross_validation import (
    BoundaryOptimizationMethod,
    CrossValidationService,
)

from .walk_forward import (
    WalkForwardWindow,
    WalkForwardResults,
    WalkForwardAnalyzer,
    create_walk_forward_windows,
)


__all__ = [
    # Results
    'CrossValidationFold',
    'CrossValidationResult',
    'TimeSeriesCrossValidationResult',
    # Strategies
    'FoldSplit',
    'OptimizationMethod',
    'ValidationStrategy',
    'KFoldValidation',
    'TimeSeriesValidation',
    'ExpandingWindowValidation',
    'RollingWindowValidation',
    # Service
    'BoundaryOptimizationMethod',
    'CrossValidationService',
    # Walk-forward
    'WalkForwardWindow',
    'WalkForwardResults',
    'WalkForwardAnalyzer',
    'create_walk_forward_windows',
]
