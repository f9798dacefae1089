"""
Base Strategy - Abstract base class for boundary optimization strategies.

Every strategy trains on a subset of price movements and emits candidate
OptimalBoundary ranges. The base class owns the shared workflow:
validate the training data, run the algorithm, score the result.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from core.config import MLOptimizationConfig, OptimizationConfig
from core.statistics import mean_hit_rate
from core.types import OptimalBoundary, PriceMovement, to_arrays

logger = logging.getLogger(__name__)


class StrategyKind(Enum):
    """Closed set of optimization strategies, in declaration order."""
    DECISION_TREE = "DecisionTree"
    CLUSTERING = "Clustering"
    GRADIENT_SEARCH = "GradientSearch"


@dataclass
class TrainingDataValidation:
    """Outcome of a strategy's pre-flight data checks."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class StrategyResult:
    """Output of one strategy run."""
    strategy_name: str
    boundaries: List[OptimalBoundary]
    score: float = 0.0
    diagnostics: Dict[str, Any] = field(default_factory=dict)
    parameters: Dict[str, Any] = field(default_factory=dict)
    is_successful: bool = True
    error_message: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    execution_time: float = 0.0
    # True when the run never started because validation failed
    rejected_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy_name': self.strategy_name,
            'boundary_count': len(self.boundaries),
            'score': self.score,
            'is_successful': self.is_successful,
            'error_message': self.error_message,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'execution_time': self.execution_time,
        }


class OptimizationStrategy(ABC):
    """
    Abstract base class for all boundary optimization strategies.

    Subclasses implement:
    - kind: which StrategyKind they are
    - minimum_sample_size() / recommended_sample_size()
    - get_parameters(): resolved algorithm parameters
    - _execute(): the actual search
    and may extend _validate_specific() with extra checks.
    """

    kind: StrategyKind = None

    # Numeric failures raised inside an algorithm become diagnostics
    NUMERIC_ERRORS = (ArithmeticError, ValueError, FloatingPointError, np.linalg.LinAlgError)

    def __init__(self, config: OptimizationConfig = None, enabled: bool = True):
        self.config = config or OptimizationConfig()
        self.enabled = enabled

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def is_enabled(self) -> bool:
        return self.enabled

    @abstractmethod
    def minimum_sample_size(self, config: MLOptimizationConfig) -> int:
        pass

    @abstractmethod
    def recommended_sample_size(self, config: MLOptimizationConfig) -> int:
        pass

    @abstractmethod
    def get_parameters(self, config: MLOptimizationConfig = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _execute(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        diagnostics: Dict[str, Any]
    ) -> List[OptimalBoundary]:
        """Run the search on measurement and ATR move arrays."""
        pass

    def optimize(
        self,
        training_data: List[PriceMovement],
        config: MLOptimizationConfig
    ) -> StrategyResult:
        """
        Train on the given movements and return candidate boundaries.

        Rejected data yields an unsuccessful result with errors and no
        boundaries. Numeric failures inside the algorithm are recorded
        rather than raised.
        """
        start = time.perf_counter()
        parameters = self.get_parameters(config)

        validation = self.validate_training_data(training_data, config)
        if not validation.is_valid:
            logger.info(f"{self.name} rejected training data: {'; '.join(validation.errors)}")
            return StrategyResult(
                strategy_name=self.name,
                boundaries=[],
                is_successful=False,
                error_message="Training data validation failed",
                rejected_data=True,
                errors=validation.errors,
                warnings=validation.warnings,
                parameters=parameters,
                diagnostics={'validation': validation.context},
                execution_time=time.perf_counter() - start,
            )

        values, atr = to_arrays(training_data)
        diagnostics: Dict[str, Any] = {'training_samples': len(training_data)}

        try:
            boundaries = self._execute(values, atr, config, diagnostics)
        except self.NUMERIC_ERRORS as e:
            logger.warning(f"{self.name} failed during optimization: {e}")
            diagnostics['exception'] = f"{type(e).__name__}: {e}"
            return StrategyResult(
                strategy_name=self.name,
                boundaries=[],
                is_successful=False,
                error_message=str(e),
                errors=[f"{type(e).__name__}: {e}"],
                warnings=validation.warnings,
                parameters=parameters,
                diagnostics=diagnostics,
                execution_time=time.perf_counter() - start,
            )

        score = self.evaluate_boundaries(boundaries, training_data, config.target_atr_move)
        diagnostics['boundary_count'] = len(boundaries)
        elapsed = time.perf_counter() - start

        logger.debug(
            f"{self.name}: {len(boundaries)} boundaries, score={score:.4f}, "
            f"{elapsed * 1000:.1f}ms"
        )

        return StrategyResult(
            strategy_name=self.name,
            boundaries=boundaries,
            score=score,
            diagnostics=diagnostics,
            parameters=parameters,
            warnings=validation.warnings,
            execution_time=elapsed,
        )

    def evaluate_boundaries(
        self,
        boundaries: List[OptimalBoundary],
        validation_data: List[PriceMovement],
        target_atr: float
    ) -> float:
        """Mean hit rate over the boundaries that cover at least one row."""
        return mean_hit_rate(boundaries, validation_data, target_atr)

    def validate_training_data(
        self,
        training_data: List[PriceMovement],
        config: MLOptimizationConfig
    ) -> TrainingDataValidation:
        """Common structural checks followed by strategy-specific ones."""
        result = TrainingDataValidation()
        n = len(training_data) if training_data else 0
        result.context['sample_count'] = n

        if n == 0:
            result.errors.append("Training data is empty")
            return result

        required = self.minimum_sample_size(config)
        recommended = self.recommended_sample_size(config)
        result.context['required_samples'] = required
        if n < required:
            result.errors.append(
                f"Insufficient samples for {self.name}: required {required}, got {n}"
            )
        elif n < recommended:
            result.warnings.append(
                f"Sample size {n} is below the recommended {recommended} for {self.name}"
            )

        values, atr = to_arrays(training_data)
        unique_count = len(np.unique(values))
        result.context['unique_values'] = unique_count

        if np.ptp(values) == 0:
            result.errors.append("Measurement values are constant")
        elif unique_count < 3:
            result.errors.append(
                f"At least 3 distinct measurement values are required, got {unique_count}"
            )

        positives = int((np.abs(atr) >= config.target_atr_move).sum())
        result.context['positive_samples'] = positives
        if positives == 0:
            result.errors.append(
                f"No movements reach the target ATR move of {config.target_atr_move}"
            )

        self._validate_specific(values, atr, config, result)
        return result

    def _validate_specific(
        self,
        values: np.ndarray,
        atr: np.ndarray,
        config: MLOptimizationConfig,
        result: TrainingDataValidation
    ):
        """Hook for strategy-specific checks."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(enabled={self.enabled})"
