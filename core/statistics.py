"""
Statistics helpers shared by the optimization and validation layers.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import stats

from .types import OptimalBoundary, PriceMovement, to_arrays

logger = logging.getLogger(__name__)


def sample_std(values: Sequence[float]) -> float:
    """Bessel-corrected standard deviation, 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def normal_confidence_interval(
    values: Sequence[float],
    confidence_level: float = 0.95
) -> Tuple[float, float]:
    """
    Normal-approximation interval mean +/- z * stderr.

    Returns (0, 0) when fewer than two values are available.
    """
    n = len(values)
    if n < 2:
        return (0.0, 0.0)

    mean = float(np.mean(values))
    std_error = sample_std(values) / math.sqrt(n)
    z = stats.norm.ppf(0.5 + confidence_level / 2)
    margin = float(z * std_error)
    return (mean - margin, mean + margin)


def linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their index."""
    if len(values) < 2:
        return 0.0
    x = np.arange(len(values), dtype=float)
    result = stats.linregress(x, np.asarray(values, dtype=float))
    return float(result.slope)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson correlation, NaN when indeterminate.

    Indeterminate means fewer than three pairs or zero variance on either side.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if len(x) < 3 or len(x) != len(y):
        return float('nan')
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return float('nan')
    r, _ = stats.pearsonr(x, y)
    return float(r)


def range_mask(values: np.ndarray, low: float, high: float) -> np.ndarray:
    """Inclusive membership mask."""
    return (values >= low) & (values <= high)


def range_statistics(
    values: np.ndarray,
    atr: np.ndarray,
    low: float,
    high: float,
    target_atr: float
) -> Tuple[int, float, float, float]:
    """
    Statistics for the rows whose measurement lies in [low, high].

    Returns (count, hit_rate, expected_atr_move, probability_up).
    expected_atr_move is the signed mean move of the rows that met the target.
    """
    mask = range_mask(values, low, high)
    count = int(mask.sum())
    if count == 0:
        return 0, 0.0, 0.0, 0.0

    in_range = atr[mask]
    hits = np.abs(in_range) >= target_atr
    hit_rate = float(hits.mean())
    expected = float(in_range[hits].mean()) if hits.any() else 0.0
    probability_up = float((in_range > 0).mean())
    return count, hit_rate, expected, probability_up


def boundary_hit_rate(
    boundary: OptimalBoundary,
    movements: List[PriceMovement],
    target_atr: float
) -> Tuple[float, int]:
    """Hit rate of a boundary on a dataset and the number of rows it covers."""
    if not movements:
        return 0.0, 0
    values, atr = to_arrays(movements)
    count, hit_rate, _, _ = range_statistics(
        values, atr, boundary.range_low, boundary.range_high, target_atr
    )
    return hit_rate, count


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def safe_mean(values: Sequence[float], default: Optional[float] = 0.0) -> float:
    if len(values) == 0:
        return default
    return float(np.mean(values))


def mean_hit_rate(
    boundaries: List[OptimalBoundary],
    movements: List[PriceMovement],
    target_atr: float
) -> float:
    """Mean hit rate over the boundaries that cover at least one row."""
    if not boundaries or not movements:
        return 0.0

    values, atr = to_arrays(movements)
    large = np.abs(atr) >= target_atr

    rates = []
    for boundary in boundaries:
        mask = range_mask(values, boundary.range_low, boundary.range_high)
        if mask.any():
            rates.append(float(large[mask].mean()))

    return float(np.mean(rates)) if rates else 0.0
