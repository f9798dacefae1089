#!/usr/bin/env python3
"""
Boundary Analysis Runner - Optimize and validate ATR boundaries.

Loads price movements from a CSV (or generates a synthetic set), finds
the measurement ranges that precede large ATR moves, and checks them
with cross-validation, walk-forward analysis and a held-out backtest.

Usage:
    python scripts/run_boundary_analysis.py --synthetic --samples 600
    python scripts/run_boundary_analysis.py --csv movements.csv --target 2.0 --cv expanding
    python scripts/run_boundary_analysis.py --csv movements.csv --windows 8 --verbose
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import (
    BoundaryAnalysisError,
    CrossValidationConfig,
    CrossValidationStrategyType,
    DateRange,
    MLOptimizationConfig,
    PriceMovement,
    WalkForwardAnalysisConfig,
    movements_from_frame,
    sort_by_time,
)
from optimization import BoundaryOptimizer
from backtesting import BacktestService, CrossValidationService
from config.analysis_params import get_params

logger = logging.getLogger(__name__)


CV_CHOICES = {
    'kfold': CrossValidationStrategyType.K_FOLD,
    'expanding': CrossValidationStrategyType.EXPANDING_WINDOW,
    'rolling': CrossValidationStrategyType.ROLLING_WINDOW,
}


def load_movements(path: str) -> List[PriceMovement]:
    """Read timestamp, measurement, atr_movement columns from a CSV."""
    df = pd.read_csv(path)
    missing = {'timestamp', 'measurement', 'atr_movement'} - set(df.columns)
    if missing:
        raise ValueError(f"CSV is missing columns: {sorted(missing)}")
    logger.info(f"Loaded {len(df)} rows from {path}")
    return movements_from_frame(df, timestamp_col='timestamp')


def generate_movements(n_samples: int, seed: int) -> List[PriceMovement]:
    """Synthetic movements where a mid-high measurement band precedes large moves."""
    rng = np.random.default_rng(seed)
    start = datetime(2024, 1, 1)
    values = rng.uniform(0, 100, n_samples)

    in_band = (values >= 60) & (values <= 80)
    large = rng.random(n_samples) < np.where(in_band, 0.8, 0.15)
    magnitude = np.where(large, rng.uniform(1.6, 3.0, n_samples), rng.uniform(0.0, 1.2, n_samples))
    sign = np.where(rng.random(n_samples) < 0.6, 1.0, -1.0)

    return [
        PriceMovement(
            start_timestamp=start + timedelta(hours=i),
            measurement_value=float(values[i]),
            atr_movement=float(sign[i] * magnitude[i]),
        )
        for i in range(n_samples)
    ]


def print_summary(combined, cv_result, wf_result, bt_result):
    print("\n" + "=" * 60)
    print("BOUNDARY ANALYSIS SUMMARY")
    print("=" * 60)

    print(f"\nBest method: {combined.best_method} (validation score {combined.validation_score:.3f})")
    for name, method in combined.method_results.items():
        status = "rejected" if method.rejected_data else f"{len(method.boundaries)} boundaries"
        print(f"  {name:<16} score={method.score:.3f}  {status}")

    print("\nBoundaries:")
    for b in combined.optimal_boundaries:
        print(
            f"  [{b.range_low:10.4f}, {b.range_high:10.4f}]  hit={b.hit_rate:.1%}  "
            f"n={b.sample_count:<5} conf={b.confidence:.2f}  exp={b.expected_atr_move:+.2f}"
        )

    print(f"\nCross-validation ({cv_result.strategy_name}):")
    low, high = cv_result.confidence_interval
    print(f"  Mean score:   {cv_result.mean_score:.3f} +/- {cv_result.std_dev_score:.3f}")
    print(f"  95% CI:       [{low:.3f}, {high:.3f}]")
    print(f"  Overfitting:  {cv_result.is_overfitting}")
    print(f"  Risk:         {cv_result.metrics.get('overfitting_risk', 0.0):.3f}")

    print("\nWalk-forward:")
    print(f"  Windows:      {wf_result.window_count}")
    print(f"  Avg corr:     {wf_result.average_correlation:+.3f}")
    print(f"  Stable:       {wf_result.is_stable} (score {wf_result.stability_score:.2f})")

    print("\nHeld-out backtest:")
    print(f"  Trades:       {bt_result.total_trades}")
    print(f"  Hit rate:     {bt_result.hit_rate:.1%}")
    print(f"  Sharpe-like:  {bt_result.sharpe_ratio:.2f}")
    print(f"  Max DD:       {bt_result.max_drawdown:.2%}")
    print("=" * 60)


def main():
    parser = argparse.ArgumentParser(
        description="Find and validate ATR-predictive measurement boundaries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/run_boundary_analysis.py --synthetic --samples 600
    python scripts/run_boundary_analysis.py --csv movements.csv --target 2.0 --cv expanding

CSV columns:
    timestamp, measurement, atr_movement (extra numeric columns are kept as context)
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--csv', type=str, help='Path to a CSV of price movements')
    source.add_argument('--synthetic', action='store_true', help='Use generated data')

    parser.add_argument('--samples', type=int, default=600,
                        help='Synthetic sample count (default: 600)')
    parser.add_argument('--seed', type=int, default=42,
                        help='Synthetic data seed (default: 42)')
    parser.add_argument('--target', type=float,
                        default=get_params('ml_optimization')['target_atr_move'],
                        help='Target ATR move (default: 1.5)')
    parser.add_argument('--max-ranges', type=int, default=5,
                        help='Maximum boundaries to keep (default: 5)')
    parser.add_argument('--cv', choices=sorted(CV_CHOICES), default='expanding',
                        help='Cross-validation strategy (default: expanding)')
    parser.add_argument('--windows', type=int, default=5,
                        help='Walk-forward window count (default: 5)')
    parser.add_argument('--holdout', type=float, default=0.2,
                        help='Fraction held out for the final backtest (default: 0.2)')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        if args.csv:
            movements = load_movements(args.csv)
        else:
            movements = generate_movements(args.samples, args.seed)
        movements = sort_by_time(movements)

        split = int(len(movements) * (1 - args.holdout))
        train, holdout = movements[:split], movements[split:]

        ml_config = MLOptimizationConfig(target_atr_move=args.target, max_ranges=args.max_ranges)

        optimizer = BoundaryOptimizer()
        combined = optimizer.run_combined_optimization(train, ml_config)

        cv_service = CrossValidationService(optimizer=optimizer)
        strategy = cv_service.create_strategy(CrossValidationConfig(strategy=CV_CHOICES[args.cv]))
        cv_result = cv_service.run_cross_validation(train, strategy, ml_config)

        backtest_service = BacktestService()
        period = DateRange(movements[0].start_timestamp, movements[-1].start_timestamp)
        wf_result = backtest_service.run_walk_forward_analysis(
            movements,
            WalkForwardAnalysisConfig(period, window_count=args.windows),
        )
        bt_result = backtest_service.backtest_boundaries(
            combined.optimal_boundaries, holdout, args.target
        )

        print_summary(combined, cv_result, wf_result, bt_result)
        return 0

    except (BoundaryAnalysisError, ValueError, OSError) as e:
        logger.error(f"Boundary analysis failed: {e}", exc_info=args.verbose)
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
