"""
Walk-Forward Validation - Calendar-time out-of-sample testing.

Slices one continuous period into overlapping train/test window pairs
and checks whether the measurement/move correlation found in each
training window holds in the test window that follows it.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List

from core.config import StatisticalConfig, ValidationConfig
from core.exceptions import ConfigurationError
from core.statistics import pearson_correlation
from core.types import DateRange, OptimizationTarget, PriceMovement
from ..analysis.metrics import summarize_correlations

logger = logging.getLogger(__name__)


@dataclass
class WalkForwardWindow:
    """A train/test period pair and, once analysed, its correlations."""
    in_sample_period: DateRange
    out_of_sample_period: DateRange

    # Filled by the analysis; NaN means indeterminate
    in_sample_correlation: float = float('nan')
    out_of_sample_correlation: float = float('nan')
    performance_degradation: float = float('nan')
    in_sample_size: int = 0
    out_of_sample_size: int = 0
    is_significant: bool = False

    @property
    def is_determinate(self) -> bool:
        return not (math.isnan(self.in_sample_correlation) or math.isnan(self.out_of_sample_correlation))


@dataclass
class WalkForwardResults:
    """Complete walk-forward analysis results."""
    windows: List[WalkForwardWindow]
    average_correlation: float
    correlation_std_dev: float
    is_stable: bool
    stability_score: float
    target: OptimizationTarget = OptimizationTarget.LARGE_MOVE_PROBABILITY
    performance_metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def window_count(self) -> int:
        return len(self.windows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'window_count': self.window_count,
            'average_correlation': self.average_correlation,
            'correlation_std_dev': self.correlation_std_dev,
            'is_stable': self.is_stable,
            'stability_score': self.stability_score,
            'target': self.target.value,
            'performance_metrics': dict(self.performance_metrics),
        }


def create_walk_forward_windows(
    period: DateRange,
    window_count: int,
    config: ValidationConfig = None
) -> List[WalkForwardWindow]:
    """
    Divide a period into window_count train/test pairs.

    The period is cut into window_count+1 slices; window i trains from
    start + i*slice*advancement for slice*training_pct and tests for
    slice*testing_pct straight after. A test period running past the end
    is pulled back inside it; windows without valid space are skipped.

    Non-overlapping holds within a window (in-sample ends where
    out-of-sample starts) and between successive in-sample periods and
    successive out-of-sample periods. With advancement_factor < 1 a
    window's out-of-sample period does run into the next window's
    in-sample period.
    """
    config = config or ValidationConfig()
    wf = config.walk_forward

    if window_count <= 0:
        raise ConfigurationError(
            f"Window count must be positive, got {window_count}",
            key='window_count', value=window_count, expected="> 0",
        )
    if window_count > config.max_walk_forward_windows:
        raise ConfigurationError(
            f"Window count cannot exceed {config.max_walk_forward_windows}",
            key='window_count', value=window_count,
            expected=f"<= {config.max_walk_forward_windows}",
        )
    if period.start >= period.end:
        raise ConfigurationError(
            "In-sample period start must be before its end",
            key='in_sample_period', value=(period.start, period.end), expected="start < end",
        )

    slice_length = period.duration / (window_count + 1)
    windows = []

    for i in range(window_count):
        is_start = period.start + slice_length * (i * wf.advancement_factor)
        is_end = is_start + slice_length * wf.training_pct
        oos_start = is_end
        oos_end = oos_start + slice_length * wf.testing_pct

        if oos_end > period.end:
            oos_end = period.end
            oos_start = max(is_end, oos_end - slice_length * wf.testing_pct)

        if not (period.start <= is_start < is_end <= oos_start < oos_end <= period.end):
            logger.debug(f"Skipping walk-forward window {i}: no valid space")
            continue

        windows.append(WalkForwardWindow(
            in_sample_period=DateRange(is_start, is_end),
            out_of_sample_period=DateRange(oos_start, oos_end),
        ))

    return windows


def _subset(movements: List[PriceMovement], period: DateRange) -> List[PriceMovement]:
    return [m for m in movements if period.contains(m.start_timestamp)]


def _correlation(movements: List[PriceMovement]) -> float:
    return pearson_correlation(
        [m.measurement_value for m in movements],
        [m.atr_movement for m in movements],
    )


class WalkForwardAnalyzer:
    """
    Measurement/move correlation stability across walk-forward windows.

    Usage:
        analyzer = WalkForwardAnalyzer()
        windows = create_walk_forward_windows(period, 5)
        results = analyzer.analyze(movements, windows)
        if results.is_stable:
            print("Relationship holds out of sample")
    """

    def __init__(self, statistical_config: StatisticalConfig = None):
        self.statistical_config = statistical_config or StatisticalConfig()

    def analyze(
        self,
        movements: List[PriceMovement],
        windows: List[WalkForwardWindow],
        target: OptimizationTarget = OptimizationTarget.LARGE_MOVE_PROBABILITY
    ) -> WalkForwardResults:
        min_corr = self.statistical_config.minimum_correlation
        analysed = []

        for window in windows:
            in_sample = _subset(movements, window.in_sample_period)
            out_sample = _subset(movements, window.out_of_sample_period)
            in_corr = _correlation(in_sample)
            out_corr = _correlation(out_sample)

            analysed.append(WalkForwardWindow(
                in_sample_period=window.in_sample_period,
                out_of_sample_period=window.out_of_sample_period,
                in_sample_correlation=in_corr,
                out_of_sample_correlation=out_corr,
                performance_degradation=abs(in_corr - out_corr),
                in_sample_size=len(in_sample),
                out_of_sample_size=len(out_sample),
                is_significant=(not math.isnan(out_corr)) and abs(out_corr) > min_corr,
            ))

        in_summary = summarize_correlations([w.in_sample_correlation for w in analysed])
        out_summary = summarize_correlations([w.out_of_sample_correlation for w in analysed])
        degradations = [w.performance_degradation for w in analysed if not math.isnan(w.performance_degradation)]

        determinate = int(in_summary['count'])
        std = in_summary['std']
        is_stable = determinate > 0 and std < self.statistical_config.stability_threshold
        stability = max(0.0, 1.0 - std) if determinate > 0 else 0.0

        if analysed and determinate < len(analysed):
            logger.warning(
                f"{len(analysed) - determinate} of {len(analysed)} walk-forward windows "
                f"had an indeterminate in-sample correlation"
            )

        metrics = {
            'determinate_windows': float(determinate),
            'indeterminate_windows': float(len(analysed) - determinate),
            'average_out_of_sample_correlation': out_summary['mean'],
            'average_degradation': sum(degradations) / len(degradations) if degradations else 0.0,
            'significant_window_pct': (
                sum(1 for w in analysed if w.is_significant) / len(analysed) if analysed else 0.0
            ),
        }

        logger.info(
            f"Walk-forward: {len(analysed)} windows, avg correlation {in_summary['mean']:.3f}, "
            f"std {std:.3f}, stable={is_stable}"
        )

        return WalkForwardResults(
            windows=analysed,
            average_correlation=in_summary['mean'],
            correlation_std_dev=std,
            is_stable=is_stable,
            stability_score=stability,
            target=target,
            performance_metrics=metrics,
        )
