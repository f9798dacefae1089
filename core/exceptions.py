"""
Core Exceptions for Boundary Analysis.

Custom exceptions for handling the error conditions raised by the
optimization and validation pipeline.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class BoundaryAnalysisError(Exception):
    """Base exception for all boundary analysis errors."""

    error_code = "BOUNDARY_ANALYSIS_ERROR"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = dict(context or {})

    @property
    def user_message(self) -> str:
        return str(self)


class InsufficientDataError(BoundaryAnalysisError):
    """Not enough data for optimization or validation."""

    error_code = "INSUFFICIENT_DATA"

    def __init__(
        self,
        operation: str,
        required: int,
        actual: int,
        guidance: str = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.operation = operation
        self.required = required
        self.actual = actual
        self.guidance = guidance

        message = (
            f"Insufficient data for {operation}: "
            f"required {required} samples, got {actual}"
        )
        if guidance:
            message = f"{message}. {guidance}"

        ctx = {'operation': operation, 'required': required, 'actual': actual}
        ctx.update(context or {})
        super().__init__(message, ctx)

    @property
    def shortfall(self) -> int:
        return max(0, self.required - self.actual)

    @property
    def recommended_action(self) -> str:
        """Human readable remediation hint."""
        if self.guidance:
            return self.guidance
        if self.actual == 0:
            return f"Provide data for {self.operation}; no samples were supplied."
        return (
            f"Collect at least {self.shortfall} more samples "
            f"or relax the minimum sample requirement for {self.operation}."
        )


class ConfigurationError(BoundaryAnalysisError):
    """Invalid configuration."""

    error_code = "INVALID_CONFIGURATION"

    def __init__(
        self,
        message: str,
        key: str = None,
        value: Any = None,
        expected: str = None
    ):
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(message, {'key': key, 'value': value, 'expected': expected})

    def get_fix_suggestions(self) -> List[str]:
        suggestions = []
        if self.key and self.expected:
            suggestions.append(f"Set '{self.key}' to {self.expected} (got {self.value!r})")
        elif self.key:
            suggestions.append(f"Review the value of '{self.key}' (got {self.value!r})")
        suggestions.append("Compare against the defaults in config/analysis_params.py")
        return suggestions


class ConvergenceFailureReason(Enum):
    """Why an optimization run failed to converge."""
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    NUMERICAL_INSTABILITY = "numerical_instability"
    INVALID_PARAMETERS = "invalid_parameters"
    ALGORITHM_ERROR = "algorithm_error"


class OptimizationConvergenceError(BoundaryAnalysisError):
    """
    Optimization failed to converge or raised an internal error.

    Carries iteration context and an error history so callers can
    tune the search instead of seeing an opaque low-level failure.
    """

    error_code = "OPTIMIZATION_CONVERGENCE_FAILED"
    MAX_HISTORY = 10

    def __init__(
        self,
        strategy_name: str,
        reason: ConvergenceFailureReason = ConvergenceFailureReason.ALGORITHM_ERROR,
        completed_iterations: int = 0,
        max_iterations: int = 0,
        final_error: Optional[float] = None,
        convergence_threshold: Optional[float] = None,
        error_history: Optional[List[float]] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.strategy_name = strategy_name
        self.reason = reason
        self.completed_iterations = completed_iterations
        self.max_iterations = max_iterations
        self.final_error = final_error
        self.convergence_threshold = convergence_threshold
        self.error_history = list(error_history or [])[-self.MAX_HISTORY:]
        self.cause = cause

        message = f"Optimization '{strategy_name}' failed ({reason.value})"
        if max_iterations:
            message += f" after {completed_iterations}/{max_iterations} iterations"
        if cause is not None:
            message += f": {type(cause).__name__}: {cause}"

        ctx = {
            'strategy_name': strategy_name,
            'reason': reason.value,
            'completed_iterations': completed_iterations,
            'max_iterations': max_iterations,
        }
        ctx.update(context or {})
        super().__init__(message, ctx)

    @property
    def error_trend(self) -> str:
        """Direction of the recorded error history."""
        if len(self.error_history) < 2:
            return "unknown"
        first, last = self.error_history[0], self.error_history[-1]
        if last < first:
            return "improving"
        if last > first:
            return "diverging"
        return "flat"

    def tuning_suggestions(self) -> List[str]:
        suggestions = []
        if self.reason == ConvergenceFailureReason.MAX_ITERATIONS_REACHED:
            suggestions.append("Increase max_iterations")
            if self.error_trend == "improving":
                suggestions.append("Error was still decreasing; a larger budget should converge")
            else:
                suggestions.append("Loosen convergence_threshold")
        elif self.reason == ConvergenceFailureReason.NUMERICAL_INSTABILITY:
            suggestions.append("Reduce the learning rate")
            suggestions.append("Check the measurement values for extreme outliers")
        elif self.reason == ConvergenceFailureReason.INVALID_PARAMETERS:
            suggestions.append("Review algorithm_parameters for out-of-range values")
        else:
            suggestions.append(f"Inspect the input data passed to {self.strategy_name}")
            suggestions.append("Try a different optimization strategy")
        return suggestions


class DataQualityError(BoundaryAnalysisError):
    """Data quality check failed."""

    error_code = "DATA_QUALITY"
