"""
Backtesting Engine - Boundary trade simulation.
"""

from .boundary_backtest import BoundaryBacktester, BacktestResult, BoundaryTrade


__all__ = [
    'BoundaryBacktester',
    'BacktestResult',
    'BoundaryTrade',
]
