"""
Performance Metrics Module - Return and risk metrics for boundary trades.

Trade returns are expressed in units of the boundary's expected move,
so the ratios here are unannualized.
"""

import logging
from typing import Dict, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def calculate_sharpe_ratio(returns: pd.Series) -> float:
    """
    Sharpe-like ratio: mean / std of trade returns.

    Returns 0 when fewer than two returns or zero dispersion.
    """
    if len(returns) < 2:
        return 0.0

    std = returns.std()
    if std == 0 or np.isnan(std):
        return 0.0

    return float(returns.mean() / std)


def calculate_volatility(returns: pd.Series) -> float:
    if len(returns) < 2:
        return 0.0
    return float(returns.std())


def build_equity_curve(returns: pd.Series, scale: float = 0.01) -> pd.Series:
    """Compounded equity starting from 1.0, each return scaled by `scale`."""
    return (1 + returns * scale).cumprod()


def calculate_drawdown_series(equity: pd.Series) -> pd.Series:
    """Peak-to-trough drawdown as a fraction of the running peak (including the 1.0 start)."""
    if len(equity) == 0:
        return pd.Series(dtype=float)
    running_max = equity.cummax().clip(lower=1.0)
    return (running_max - equity) / running_max


def calculate_max_drawdown(equity: pd.Series) -> float:
    drawdown = calculate_drawdown_series(equity)
    if len(drawdown) == 0:
        return 0.0
    return float(max(0.0, drawdown.max()))


def calculate_risk_metrics(returns: pd.Series, win_rate: float) -> Dict[str, float]:
    """Volatility, win rate and average winning / losing return."""
    wins = returns[returns > 0]
    losses = returns[returns < 0]
    return {
        'volatility': calculate_volatility(returns),
        'win_rate': float(win_rate),
        'avg_win': float(wins.mean()) if len(wins) else 0.0,
        'avg_loss': float(losses.mean()) if len(losses) else 0.0,
    }


def calculate_hit_rate(winning_trades: int, total_trades: int) -> float:
    return winning_trades / total_trades if total_trades > 0 else 0.0


def summarize_correlations(values: Sequence[float]) -> Dict[str, float]:
    """Mean / Bessel std over the determinate (non-NaN) correlations."""
    arr = np.asarray([v for v in values if not np.isnan(v)], dtype=float)
    return {
        'count': float(len(arr)),
        'mean': float(arr.mean()) if len(arr) else 0.0,
        'std': float(arr.std(ddof=1)) if len(arr) > 1 else 0.0,
    }
