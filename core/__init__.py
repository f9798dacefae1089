"""
Core Module - Domain types, configuration and errors for boundary analysis.
"""

from .exceptions import (
    BoundaryAnalysisError,
    InsufficientDataError,
    ConfigurationError,
    ConvergenceFailureReason,
    OptimizationConvergenceError,
    DataQualityError,
)

from .types import (
    PriceDirection,
    PriceMovement,
    DateRange,
    OptimalBoundary,
    OptimizationMethodType,
    OptimizationTarget,
    sort_by_time,
    movements_from_frame,
)

from .config import (
    OptimizationConfig,
    MLOptimizationConfig,
    CrossValidationConfig,
    CrossValidationStrategyType,
    WalkForwardConfig,
    WalkForwardAnalysisConfig,
    ValidationConfig,
    StatisticalConfig,
)


__all__ = [
    # Exceptions
    'BoundaryAnalysisError',
    'InsufficientDataError',
    'ConfigurationError',
    'ConvergenceFailureReason',
    'OptimizationConvergenceError',
    'DataQualityError',

    # Types
    'PriceDirection',
    'PriceMovement',
    'DateRange',
    'OptimalBoundary',
    'OptimizationMethodType',
    'OptimizationTarget',
    'sort_by_time',
    'movements_from_frame',

    # Config
    'OptimizationConfig',
    'MLOptimizationConfig',
    'CrossValidationConfig',
    'CrossValidationStrategyType',
    'WalkForwardConfig',
    'WalkForwardAnalysisConfig',
    'ValidationConfig',
    'StatisticalConfig',
]
