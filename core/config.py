"""
Analysis Configuration - Typed settings for optimization and validation.

Defaults come from config/analysis_params.py. Every dataclass validates
itself on construction and raises ConfigurationError for out-of-range values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from config.analysis_params import get_params
from .exceptions import ConfigurationError


_OPT = get_params('optimization')
_ML = get_params('ml_optimization')
_CV = get_params('cross_validation')
_WF = get_params('walk_forward')
_VAL = get_params('validation')
_STAT = get_params('statistical')


def _require(condition: bool, key: str, value: Any, expected: str):
    if not condition:
        raise ConfigurationError(
            f"Invalid configuration: {key}={value!r}, expected {expected}",
            key=key,
            value=value,
            expected=expected,
        )


class CrossValidationStrategyType(Enum):
    K_FOLD = "kfold"
    EXPANDING_WINDOW = "expanding_window"
    ROLLING_WINDOW = "rolling_window"


@dataclass
class OptimizationConfig:
    """Algorithm-level limits shared by all strategies."""
    max_iterations: int = _OPT['max_iterations']
    convergence_threshold: float = _OPT['convergence_threshold']
    default_cluster_count: int = _OPT['default_cluster_count']
    max_ranges: int = _OPT['max_ranges']
    max_depth: int = _OPT['max_depth']
    min_hit_rate: float = _OPT['min_hit_rate']
    performance_degradation_threshold: float = _OPT['performance_degradation_threshold']
    overfitting_threshold: float = _OPT['overfitting_threshold']
    trade_return_scale: float = _OPT['trade_return_scale']
    minimum_expected_return_divisor: float = _OPT['minimum_expected_return_divisor']

    def __post_init__(self):
        _require(self.max_iterations > 0, 'max_iterations', self.max_iterations, "> 0")
        _require(self.convergence_threshold > 0, 'convergence_threshold',
                 self.convergence_threshold, "> 0")
        _require(self.default_cluster_count >= 2, 'default_cluster_count',
                 self.default_cluster_count, ">= 2")
        _require(self.max_ranges > 0, 'max_ranges', self.max_ranges, "> 0")
        _require(self.max_depth > 0, 'max_depth', self.max_depth, "> 0")
        _require(0 <= self.min_hit_rate < 1, 'min_hit_rate', self.min_hit_rate, "in [0, 1)")
        _require(0 < self.performance_degradation_threshold <= 1,
                 'performance_degradation_threshold',
                 self.performance_degradation_threshold, "in (0, 1]")
        _require(self.minimum_expected_return_divisor > 0, 'minimum_expected_return_divisor',
                 self.minimum_expected_return_divisor, "> 0")


@dataclass
class MLOptimizationConfig:
    """
    Per-run optimization request.

    algorithm_parameters carries strategy-specific overrides, e.g.
    'decision_tree_max_depth', 'cluster_count', 'gradient_learning_rate'.
    """
    target_atr_move: float = _ML['target_atr_move']
    max_ranges: int = _ML['max_ranges']
    validation_ratio: float = _ML['validation_ratio']
    use_decision_tree: bool = _ML['use_decision_tree']
    use_clustering: bool = _ML['use_clustering']
    use_gradient_search: bool = _ML['use_gradient_search']
    max_iterations: int = _OPT['max_iterations']
    convergence_threshold: float = _OPT['convergence_threshold']
    algorithm_parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _require(self.target_atr_move > 0, 'target_atr_move', self.target_atr_move, "> 0")
        _require(self.max_ranges > 0, 'max_ranges', self.max_ranges, "> 0")
        _require(0 < self.validation_ratio < 1, 'validation_ratio',
                 self.validation_ratio, "in (0, 1)")
        _require(self.max_iterations > 0, 'max_iterations', self.max_iterations, "> 0")
        _require(self.convergence_threshold > 0, 'convergence_threshold',
                 self.convergence_threshold, "> 0")

    @property
    def any_strategy_enabled(self) -> bool:
        return self.use_decision_tree or self.use_clustering or self.use_gradient_search

    def get_parameter(self, name: str, default: Any = None) -> Any:
        return self.algorithm_parameters.get(name, default)


@dataclass
class CrossValidationConfig:
    k_folds: int = _CV['k_folds']
    strategy: CrossValidationStrategyType = CrossValidationStrategyType.K_FOLD
    random_seed: Optional[int] = _CV['random_seed']
    min_train_window_size: float = _CV['min_train_window_size']
    step_size: float = _CV['step_size']
    confidence_level: float = _CV['confidence_level']
    overfitting_gap: float = _CV['overfitting_gap']

    def __post_init__(self):
        _require(self.k_folds >= 2, 'k_folds', self.k_folds, ">= 2")
        _require(0 < self.min_train_window_size < 1, 'min_train_window_size',
                 self.min_train_window_size, "in (0, 1)")
        _require(0 < self.step_size < 1, 'step_size', self.step_size, "in (0, 1)")
        _require(0 < self.confidence_level < 1, 'confidence_level',
                 self.confidence_level, "in (0, 1)")


@dataclass
class WalkForwardConfig:
    training_pct: float = _WF['training_pct']
    testing_pct: float = _WF['testing_pct']
    advancement_factor: float = _WF['advancement_factor']


@dataclass
class ValidationConfig:
    max_walk_forward_windows: int = _VAL['max_walk_forward_windows']
    walk_forward: WalkForwardConfig = field(default_factory=WalkForwardConfig)


@dataclass
class StatisticalConfig:
    minimum_correlation: float = _STAT['minimum_correlation']
    stability_threshold: float = _STAT['stability_threshold']


@dataclass
class WalkForwardAnalysisConfig:
    """Request for a walk-forward correlation analysis."""
    in_sample_period: Any  # core.types.DateRange
    window_count: int = 5

    def __post_init__(self):
        _require(self.window_count > 0, 'window_count', self.window_count, "> 0")
