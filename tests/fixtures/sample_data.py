"""
Sample Data Generators - Synthetic price movements for testing.

Movements are hourly, start on 2024-01-01 and are fully determined by
the seed, so tests can rely on exact reproducibility.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import numpy as np

from core.types import PriceMovement


START = datetime(2024, 1, 1)


def generate_price_movements(
    n_samples: int = 300,
    seed: int = 42,
    band: Tuple[float, float] = (60.0, 80.0),
    p_large_in_band: float = 0.9,
    p_large_outside: float = 0.05,
    target_atr: float = 1.5,
    signed_by_size: bool = True,
    value_range: Tuple[float, float] = (0.0, 100.0),
    start: datetime = START,
    step: timedelta = timedelta(hours=1)
) -> List[PriceMovement]:
    """
    Movements where measurements inside `band` usually precede large moves.

    With signed_by_size, every large move is positive and every small move
    negative, so a boundary's hit rate equals its directional win rate.

    Args:
        n_samples: Number of movements
        seed: Random seed for reproducibility
        band: Predictive measurement interval
        p_large_in_band: Chance of a large move inside the band
        p_large_outside: Chance of a large move outside the band
        target_atr: Threshold that defines a large move
        signed_by_size: Encode size in the sign (see above)
        value_range: Uniform measurement range
        start: First timestamp
        step: Spacing between timestamps

    Returns:
        Time-ordered list of PriceMovement
    """
    rng = np.random.default_rng(seed)
    values = rng.uniform(value_range[0], value_range[1], n_samples)

    in_band = (values >= band[0]) & (values <= band[1])
    p_large = np.where(in_band, p_large_in_band, p_large_outside)
    large = rng.random(n_samples) < p_large

    big = rng.uniform(target_atr, target_atr + 1.5, n_samples)
    small = rng.uniform(0.05, target_atr * 0.6, n_samples)

    if signed_by_size:
        atr = np.where(large, big, -small)
    else:
        sign = np.where(rng.random(n_samples) < 0.5, 1.0, -1.0)
        atr = sign * np.where(large, big, small)

    return [
        PriceMovement(
            start_timestamp=start + step * i,
            measurement_value=float(values[i]),
            atr_movement=float(atr[i]),
        )
        for i in range(n_samples)
    ]


def generate_constant_measurement(
    n_samples: int = 100,
    value: float = 50.0,
    start: datetime = START
) -> List[PriceMovement]:
    """Identical measurements with alternating large and small moves."""
    return [
        PriceMovement(
            start_timestamp=start + timedelta(hours=i),
            measurement_value=value,
            atr_movement=2.0 if i % 2 == 0 else -0.5,
        )
        for i in range(n_samples)
    ]


def generate_small_moves(
    n_samples: int = 200,
    seed: int = 7,
    target_atr: float = 1.5,
    start: datetime = START
) -> List[PriceMovement]:
    """Varied measurements where no move reaches the target."""
    rng = np.random.default_rng(seed)
    values = rng.uniform(0, 100, n_samples)
    moves = rng.uniform(-target_atr * 0.9, target_atr * 0.9, n_samples)
    return [
        PriceMovement(
            start_timestamp=start + timedelta(hours=i),
            measurement_value=float(values[i]),
            atr_movement=float(moves[i]),
        )
        for i in range(n_samples)
    ]


def generate_correlated_movements(
    n_samples: int = 600,
    seed: int = 11,
    slope: float = 0.03,
    noise: float = 0.1,
    start: datetime = START,
    step: Optional[timedelta] = None
) -> List[PriceMovement]:
    """Moves that rise linearly with the measurement plus a little noise."""
    rng = np.random.default_rng(seed)
    step = step or timedelta(minutes=10)
    values = rng.uniform(0, 100, n_samples)
    moves = slope * values + rng.normal(0, noise, n_samples)
    return [
        PriceMovement(
            start_timestamp=start + step * i,
            measurement_value=float(values[i]),
            atr_movement=float(moves[i]),
        )
        for i in range(n_samples)
    ]


def generate_regime_shift_movements(
    n_per_regime: int = 200,
    seed: int = 3,
    first_band: Tuple[float, float] = (10.0, 30.0),
    second_band: Tuple[float, float] = (70.0, 90.0),
    start: datetime = START
) -> List[PriceMovement]:
    """Two back-to-back histories whose predictive band moves between them."""
    first = generate_price_movements(n_samples=n_per_regime, seed=seed, band=first_band, start=start)
    second = generate_price_movements(
        n_samples=n_per_regime,
        seed=seed + 1,
        band=second_band,
        start=start + timedelta(hours=n_per_regime),
    )
    return first + second
