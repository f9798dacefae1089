"""
Backtesting Analysis Module - Return and risk metrics.
"""

from .metrics import (
    calculate_sharpe_ratio,
    calculate_volatility,
    calculate_max_drawdown,
    calculate_drawdown_series,
    calculate_risk_metrics,
    calculate_hit_rate,
    build_equity_curve,
    summarize_correlations,
)


__all__ = [
    'calculate_sharpe_ratio',
    'calculate_volatility',
    'calculate_max_drawdown',
    'calculate_drawdown_series',
    'calculate_risk_metrics',
    'calculate_hit_rate',
    'build_equity_curve',
    'summarize_correlations',
]
