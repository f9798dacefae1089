"""
Boundary Backtesting Engine - Simulates trades against discovered boundaries.

Each test movement whose measurement falls inside a boundary becomes a
trade in the direction of that boundary's expected move. Returns are
compounded into an equity curve to measure drawdown.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from core.config import OptimizationConfig
from core.exceptions import ConfigurationError
from core.types import OptimalBoundary, PriceMovement
from ..analysis.metrics import (
    build_equity_curve,
    calculate_hit_rate,
    calculate_max_drawdown,
    calculate_risk_metrics,
    calculate_sharpe_ratio,
)

logger = logging.getLogger(__name__)


@dataclass
class BoundaryTrade:
    """Single simulated trade."""
    timestamp: datetime
    measurement_value: float
    boundary_index: int
    expected_move: float
    actual_move: float
    trade_return: float
    is_win: bool


@dataclass
class BacktestResult:
    """Complete boundary backtest results."""
    hit_rate: float
    average_return: float
    sharpe_ratio: float
    max_drawdown: float
    total_trades: int
    winning_trades: int
    risk_metrics: Dict[str, float] = field(default_factory=dict)
    equity_curve: Optional[pd.Series] = None
    trades: List[BoundaryTrade] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excluding the equity curve and trade list)."""
        return {
            'hit_rate': self.hit_rate,
            'average_return': self.average_return,
            'sharpe_ratio': self.sharpe_ratio,
            'max_drawdown': self.max_drawdown,
            'total_trades': self.total_trades,
            'winning_trades': self.winning_trades,
            'risk_metrics': dict(self.risk_metrics),
        }


class BoundaryBacktester:
    """
    Trade simulation over boundaries.

    Usage:
        backtester = BoundaryBacktester()
        result = backtester.run(boundaries, test_movements, target_atr=1.5)
        print(result.hit_rate, result.max_drawdown)
    """

    def __init__(self, config: OptimizationConfig = None):
        self.config = config or OptimizationConfig()

    def run(
        self,
        boundaries: List[OptimalBoundary],
        test_data: List[PriceMovement],
        target_atr: float
    ) -> BacktestResult:
        if target_atr <= 0:
            raise ConfigurationError(
                f"Target ATR must be positive, got {target_atr}",
                key='target_atr', value=target_atr, expected="> 0",
            )

        divisor_floor = self.config.minimum_expected_return_divisor
        trades: List[BoundaryTrade] = []

        for movement in test_data:
            index = next(
                (i for i, b in enumerate(boundaries) if b.contains(movement.measurement_value)),
                None,
            )
            if index is None:
                continue

            expected = boundaries[index].expected_atr_move
            actual = movement.atr_movement
            trades.append(BoundaryTrade(
                timestamp=movement.start_timestamp,
                measurement_value=movement.measurement_value,
                boundary_index=index,
                expected_move=expected,
                actual_move=actual,
                trade_return=actual / max(abs(expected), divisor_floor),
                is_win=bool(np.sign(expected) == np.sign(actual)),
            ))

        total = len(trades)
        winning = sum(1 for t in trades if t.is_win)
        hit_rate = calculate_hit_rate(winning, total)

        returns = pd.Series(
            [t.trade_return for t in trades],
            index=pd.DatetimeIndex([t.timestamp for t in trades]),
            dtype=float,
        )
        equity = build_equity_curve(returns, self.config.trade_return_scale)

        result = BacktestResult(
            hit_rate=hit_rate,
            average_return=float(returns.mean()) if total else 0.0,
            sharpe_ratio=calculate_sharpe_ratio(returns),
            max_drawdown=calculate_max_drawdown(equity),
            total_trades=total,
            winning_trades=winning,
            risk_metrics=calculate_risk_metrics(returns, hit_rate),
            equity_curve=equity,
            trades=trades,
        )

        logger.info(
            f"Boundary backtest: {total} trades, hit rate {hit_rate:.1%}, "
            f"max drawdown {result.max_drawdown:.2%}"
        )
        return result
