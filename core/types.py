"""
Domain Types - Price movements, time ranges and optimal boundaries.

These records are immutable; the pipeline only filters and partitions them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Any

import numpy as np
import pandas as pd

from .exceptions import DataQualityError


class PriceDirection(Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class OptimizationMethodType(Enum):
    """Which algorithm produced a boundary."""
    DECISION_TREE = "DecisionTree"
    CLUSTERING = "Clustering"
    GRADIENT_SEARCH = "GradientSearch"
    SLIDING_WINDOW = "SlidingWindow"
    STATISTICAL = "Statistical"


class OptimizationTarget(Enum):
    """Objective used when ranking candidate boundaries."""
    HIGHEST_WIN_RATE = "highest_win_rate"
    LARGE_MOVE_PROBABILITY = "large_move_probability"
    CONSISTENT_RESULTS = "consistent_results"
    AVERAGE_MOVE = "average_move"


@dataclass(frozen=True)
class PriceMovement:
    """A measurement taken at a point in time and the ATR-normalized move that followed."""
    start_timestamp: datetime
    measurement_value: float
    atr_movement: float
    contextual_data: Dict[str, float] = field(default_factory=dict, compare=False, hash=False)

    @property
    def direction(self) -> PriceDirection:
        if self.atr_movement > 0:
            return PriceDirection.UP
        if self.atr_movement < 0:
            return PriceDirection.DOWN
        return PriceDirection.FLAT

    def is_large_move(self, target_atr: float) -> bool:
        return abs(self.atr_movement) >= target_atr


@dataclass(frozen=True)
class DateRange:
    """Closed calendar interval."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"DateRange end {self.end} precedes start {self.start}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end

    def overlaps(self, other: 'DateRange') -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class OptimalBoundary:
    """Contiguous measurement range with its predictive statistics."""
    range_low: float
    range_high: float
    expected_atr_move: float = 0.0
    hit_rate: float = 0.0
    sample_count: int = 0
    confidence: float = 0.0
    method: OptimizationMethodType = OptimizationMethodType.STATISTICAL
    probability_up: float = 0.0

    def __post_init__(self):
        if not self.range_low < self.range_high:
            raise ValueError(
                f"range_low ({self.range_low}) must be below range_high ({self.range_high})"
            )
        if not 0.0 <= self.hit_rate <= 1.0:
            raise ValueError(f"hit_rate must be in [0, 1], got {self.hit_rate}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")
        if not 0.0 <= self.probability_up <= 1.0:
            raise ValueError(f"probability_up must be in [0, 1], got {self.probability_up}")
        if self.sample_count < 0:
            raise ValueError(f"sample_count must be non-negative, got {self.sample_count}")

    @property
    def width(self) -> float:
        return self.range_high - self.range_low

    @property
    def center(self) -> float:
        return (self.range_low + self.range_high) / 2

    def contains(self, value: float) -> bool:
        return self.range_low <= value <= self.range_high

    def overlaps(self, other: 'OptimalBoundary') -> bool:
        return self.range_low < other.range_high and other.range_low < self.range_high

    def to_dict(self) -> Dict[str, Any]:
        return {
            'range_low': self.range_low,
            'range_high': self.range_high,
            'expected_atr_move': self.expected_atr_move,
            'hit_rate': self.hit_rate,
            'sample_count': self.sample_count,
            'confidence': self.confidence,
            'method': self.method.value,
            'probability_up': self.probability_up,
        }


def sort_by_time(movements: Iterable[PriceMovement]) -> List[PriceMovement]:
    """Stable sort by start timestamp."""
    return sorted(movements, key=lambda m: m.start_timestamp)


def to_arrays(movements: List[PriceMovement]):
    """Return (measurement, atr) numpy arrays for a movement list."""
    values = np.fromiter((m.measurement_value for m in movements), dtype=float, count=len(movements))
    atr = np.fromiter((m.atr_movement for m in movements), dtype=float, count=len(movements))
    return values, atr


def movements_from_frame(
    df: pd.DataFrame,
    measurement_col: str = 'measurement',
    atr_col: str = 'atr_movement',
    timestamp_col: str = None
) -> List[PriceMovement]:
    """Build movements from a DataFrame (timestamp column or DatetimeIndex)."""
    numeric = df[[measurement_col, atr_col]].apply(pd.to_numeric, errors='coerce')
    bad_rows = ~np.isfinite(numeric.to_numpy(dtype=float)).all(axis=1)
    if bad_rows.any():
        raise DataQualityError(
            f"{int(bad_rows.sum())} rows have missing or non-numeric "
            f"'{measurement_col}'/'{atr_col}' values",
            context={'row_positions': np.flatnonzero(bad_rows)[:10].tolist()},
        )

    if timestamp_col is not None:
        timestamps = pd.to_datetime(df[timestamp_col])
    else:
        timestamps = pd.to_datetime(df.index)

    context_cols = [
        c for c in df.select_dtypes(include='number').columns
        if c not in (measurement_col, atr_col, timestamp_col)
    ]
    movements = []
    for i, ts in enumerate(timestamps):
        row = df.iloc[i]
        context = {col: float(row[col]) for col in context_cols}
        movements.append(PriceMovement(
            start_timestamp=pd.Timestamp(ts).to_pydatetime(),
            measurement_value=float(row[measurement_col]),
            atr_movement=float(row[atr_col]),
            contextual_data=context,
        ))
    return movements
