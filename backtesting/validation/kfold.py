"""
K-Fold Validation - Non-temporal resampling folds.
"""

import logging
from typing import List

import numpy as np

from .base import FoldSplit, ValidationStrategy

logger = logging.getLogger(__name__)


class KFoldValidation(ValidationStrategy):
    """
    Splits rows into k folds of size n//k (the first n%k folds take one extra).

    Rows keep their input order unless a random_seed is configured, in
    which case they are shuffled once with that seed.
    """

    name = "KFold"

    def required_minimum(self) -> int:
        return max(self.config.k_folds, 2)

    def splits(self, n: int) -> List[FoldSplit]:
        k = self.config.k_folds
        if self.config.random_seed is not None:
            order = np.random.default_rng(self.config.random_seed).permutation(n)
        else:
            order = np.arange(n)

        sizes = [n // k + (1 if i < n % k else 0) for i in range(k)]
        splits = []
        start = 0
        for size in sizes:
            validation = order[start:start + size]
            training = np.concatenate([order[:start], order[start + size:]])
            start += size
            if len(validation) == 0 or len(training) == 0:
                continue
            splits.append(FoldSplit(
                training_indices=tuple(int(i) for i in training),
                validation_indices=tuple(int(i) for i in validation),
            ))
        return splits
