"""
Optimization Module - Boundary discovery strategies and orchestration.
"""

from .base import (
    OptimizationStrategy,
    StrategyKind,
    StrategyResult,
    TrainingDataValidation,
)

from .decision_tree import DecisionTreeStrategy, SingleFeatureTree
from .clustering import ClusteringStrategy
from .gradient_search import GradientSearchStrategy
from .factory import OptimizationStrategyFactory

from .evaluation import (
    BoundaryValidation,
    ValidationResult,
    validate_boundaries,
)

from .optimizer import (
    BoundaryOptimizer,
    CombinedOptimizationResult,
    MethodResult,
    DynamicBoundaryWindow,
    OptimizationObjective,
    ParetoSolution,
)


__all__ = [
    # Strategies
    'OptimizationStrategy',
    'StrategyKind',
    'StrategyResult',
    'TrainingDataValidation',
    'DecisionTreeStrategy',
    'SingleFeatureTree',
    'ClusteringStrategy',
    'GradientSearchStrategy',
    'OptimizationStrategyFactory',

    # Evaluation
    'BoundaryValidation',
    'ValidationResult',
    'validate_boundaries',

    # Orchestration
    'BoundaryOptimizer',
    'CombinedOptimizationResult',
    'MethodResult',
    'DynamicBoundaryWindow',
    'OptimizationObjective',
    'ParetoSolution',
]
