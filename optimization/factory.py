"""
Strategy Factory - Instantiates optimization strategies from configuration.
"""

import logging
from typing import Dict, List, Type

from core.config import MLOptimizationConfig, OptimizationConfig
from core.exceptions import ConfigurationError
from .base import OptimizationStrategy, StrategyKind
from .clustering import ClusteringStrategy
from .decision_tree import DecisionTreeStrategy
from .gradient_search import GradientSearchStrategy

logger = logging.getLogger(__name__)


STRATEGY_CLASSES: Dict[StrategyKind, Type[OptimizationStrategy]] = {
    StrategyKind.DECISION_TREE: DecisionTreeStrategy,
    StrategyKind.CLUSTERING: ClusteringStrategy,
    StrategyKind.GRADIENT_SEARCH: GradientSearchStrategy,
}


def _normalize(name: str) -> str:
    return name.replace('_', '').replace('-', '').replace(' ', '').lower()


class OptimizationStrategyFactory:
    """
    Creates strategies for the closed set of StrategyKind variants.

    Usage:
        factory = OptimizationStrategyFactory()
        for strategy in factory.create_strategies(ml_config):
            result = strategy.optimize(train, ml_config)
    """

    def __init__(self, optimization_config: OptimizationConfig = None):
        self.optimization_config = optimization_config or OptimizationConfig()

    @staticmethod
    def is_enabled(kind: StrategyKind, config: MLOptimizationConfig) -> bool:
        return {
            StrategyKind.DECISION_TREE: config.use_decision_tree,
            StrategyKind.CLUSTERING: config.use_clustering,
            StrategyKind.GRADIENT_SEARCH: config.use_gradient_search,
        }[kind]

    def create(self, kind: StrategyKind, enabled: bool = True) -> OptimizationStrategy:
        return STRATEGY_CLASSES[kind](self.optimization_config, enabled=enabled)

    def create_strategies(self, config: MLOptimizationConfig) -> List[OptimizationStrategy]:
        """Enabled strategies in declaration order."""
        strategies = [
            self.create(kind)
            for kind in StrategyKind
            if self.is_enabled(kind, config)
        ]
        logger.debug(f"Created strategies: {[s.name for s in strategies]}")
        return strategies

    def create_strategy(self, name: str, config: MLOptimizationConfig = None) -> OptimizationStrategy:
        """
        Look up a strategy by name, case-insensitive ('DecisionTree', 'decision_tree').

        With a config, the strategy's enabled flag follows its use_* switch.
        """
        key = _normalize(name or '')
        for kind in StrategyKind:
            if key in (_normalize(kind.value), _normalize(kind.name)):
                enabled = self.is_enabled(kind, config) if config is not None else True
                return self.create(kind, enabled=enabled)

        raise ConfigurationError(
            f"Unknown optimization strategy: {name!r}",
            key='strategy',
            value=name,
            expected=f"one of {self.supported_strategies()}",
        )

    @staticmethod
    def supported_strategies() -> List[str]:
        return [kind.value for kind in StrategyKind]
