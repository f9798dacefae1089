"""
Validation Strategy Base - Shared fold execution and aggregation.

A validation strategy decides how a dataset is split into train/validation
pairs. Everything else (training, scoring, aggregation) is shared here so
the variants only implement the split policy.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from core.config import CrossValidationConfig, MLOptimizationConfig
from core.exceptions import InsufficientDataError
from core.statistics import normal_confidence_interval, safe_mean, sample_std
from core.types import DateRange, OptimalBoundary, PriceMovement
from optimization.evaluation import validate_boundaries
from .results import CrossValidationFold, CrossValidationResult

logger = logging.getLogger(__name__)


class OptimizationMethod(ABC):
    """Something that can be trained on movements and scored on others."""

    name: str = "OptimizationMethod"

    def __init__(self, config: MLOptimizationConfig = None):
        self.config = config or MLOptimizationConfig()
        # messages from the most recent train() call
        self.last_diagnostics: List[str] = []

    @abstractmethod
    def train(self, data: List[PriceMovement]) -> List[OptimalBoundary]:
        pass

    @abstractmethod
    def evaluate(self, boundaries: List[OptimalBoundary], data: List[PriceMovement]) -> float:
        pass


@dataclass
class FoldSplit:
    """Row indices of one split, relative to the (possibly sorted) dataset."""
    training_indices: Tuple[int, ...]
    validation_indices: Tuple[int, ...]


class ValidationStrategy(ABC):
    """
    Abstract base class for validation strategies.

    Subclasses implement:
    - required_minimum(): rows needed before any fold runs
    - prepare(): optional reordering (time-series variants sort)
    - splits(): the fold index pairs
    """

    name: str = "Validation"

    def __init__(self, config: CrossValidationConfig = None):
        self.config = config or CrossValidationConfig()

    @abstractmethod
    def required_minimum(self) -> int:
        pass

    @abstractmethod
    def splits(self, n: int) -> List[FoldSplit]:
        pass

    def prepare(self, data: List[PriceMovement]) -> List[PriceMovement]:
        return list(data)

    def validate(self, data: List[PriceMovement], method: OptimizationMethod) -> CrossValidationResult:
        """Run every fold and aggregate."""
        ordered, folds, diagnostics = self._run_folds(data, method)
        return self._build_result(ordered, folds, diagnostics, method)

    def _check_size(self, data: Sequence[PriceMovement]):
        required = self.required_minimum()
        actual = len(data) if data else 0
        if actual < required:
            raise InsufficientDataError(
                operation=f"{self.name} validation",
                required=required,
                actual=actual,
            )

    def _run_folds(
        self,
        data: List[PriceMovement],
        method: OptimizationMethod
    ) -> Tuple[List[PriceMovement], List[CrossValidationFold], List[str]]:
        self._check_size(data)
        ordered = self.prepare(data)
        fold_splits = self.splits(len(ordered))

        if not fold_splits:
            raise InsufficientDataError(
                operation=f"{self.name} validation",
                required=self.required_minimum(),
                actual=len(ordered),
                guidance="The split configuration produced no folds for this dataset size",
            )

        folds = []
        diagnostics: List[str] = []
        for i, split in enumerate(fold_splits):
            train = [ordered[j] for j in split.training_indices]
            test = [ordered[j] for j in split.validation_indices]
            folds.append(self._run_fold(i, train, test, split, method, diagnostics))

        logger.info(
            f"{self.name}: {len(folds)} folds, "
            f"mean validation score {safe_mean([f.validation_score for f in folds]):.4f}"
        )
        return ordered, folds, diagnostics

    def _run_fold(
        self,
        index: int,
        train: List[PriceMovement],
        test: List[PriceMovement],
        split: FoldSplit,
        method: OptimizationMethod,
        diagnostics: List[str]
    ) -> CrossValidationFold:
        method.last_diagnostics = []
        try:
            boundaries = method.train(train)
        except InsufficientDataError as e:
            message = f"Fold {index}: no boundaries ({e})"
            logger.warning(message)
            diagnostics.append(message)
            boundaries = []
        diagnostics.extend(f"Fold {index}: {d}" for d in method.last_diagnostics)

        train_score = method.evaluate(boundaries, train)
        val_score = method.evaluate(boundaries, test)
        validation = validate_boundaries(boundaries, test, method.config.target_atr_move)

        timestamps = [m.start_timestamp for m in train + test]
        period = DateRange(min(timestamps), max(timestamps)) if timestamps else None

        logger.debug(f"Fold {index}: train={train_score:.4f} validation={val_score:.4f}")

        return CrossValidationFold(
            fold_index=index,
            training_score=train_score,
            validation_score=val_score,
            training_boundaries=boundaries,
            validation_result=validation,
            training_sample_count=len(train),
            validation_sample_count=len(test),
            period=period,
            training_indices=split.training_indices,
            validation_indices=split.validation_indices,
        )

    def _aggregate(self, folds: List[CrossValidationFold]) -> Dict[str, Any]:
        scores = [f.validation_score for f in folds]
        train_scores = [f.training_score for f in folds]
        avg_train = safe_mean(train_scores)
        avg_val = safe_mean(scores)

        return {
            'fold_scores': scores,
            'mean_score': avg_val,
            'std_dev_score': sample_std(scores),
            'confidence_interval': normal_confidence_interval(scores, self.config.confidence_level),
            'is_overfitting': avg_train - avg_val > self.config.overfitting_gap,
            'avg_train': avg_train,
            'avg_val': avg_val,
        }

    def _build_result(
        self,
        ordered: List[PriceMovement],
        folds: List[CrossValidationFold],
        diagnostics: List[str],
        method: OptimizationMethod
    ) -> CrossValidationResult:
        agg = self._aggregate(folds)
        return CrossValidationResult(
            fold_scores=agg['fold_scores'],
            mean_score=agg['mean_score'],
            std_dev_score=agg['std_dev_score'],
            confidence_interval=agg['confidence_interval'],
            fold_results=folds,
            is_overfitting=agg['is_overfitting'],
            metrics={
                'fold_count': float(len(folds)),
                'avg_training_score': agg['avg_train'],
                'avg_validation_score': agg['avg_val'],
                'train_val_gap': agg['avg_train'] - agg['avg_val'],
            },
            strategy_name=method.name,
            config=self.config,
            diagnostics=diagnostics,
        )


def coefficient_of_variation(values: Sequence[float]) -> float:
    mean = float(np.mean(values)) if len(values) else 0.0
    if mean == 0:
        return 0.0
    return sample_std(values) / abs(mean)
