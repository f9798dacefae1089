# config/analysis_params.py
"""
Default parameters for boundary optimization and validation.

Every threshold the pipeline uses lives here so a run can be tuned
without touching algorithm code. Sections map onto the config
dataclasses in core/config.py.
"""

OPTIMIZATION_PARAMS = {
    # Search limits
    'max_iterations': 1000,
    'convergence_threshold': 0.001,
    'max_ranges': 100,

    # Strategy defaults
    'default_cluster_count': 3,
    'max_depth': 20,
    'min_hit_rate': 0.1,  # Intervals at or below this are discarded

    # Boundary validation
    'performance_degradation_threshold': 0.3,
    'overfitting_threshold': 0.5,

    # Trade simulation
    'trade_return_scale': 0.01,
    'minimum_expected_return_divisor': 0.1,
}

ML_OPTIMIZATION_PARAMS = {
    'target_atr_move': 1.5,
    'max_ranges': 5,
    'validation_ratio': 0.2,
    'use_decision_tree': True,
    'use_clustering': True,
    'use_gradient_search': True,
}

CROSS_VALIDATION_PARAMS = {
    'k_folds': 5,
    'random_seed': None,  # No shuffle unless a seed is given
    'min_train_window_size': 0.3,
    'step_size': 0.1,
    'confidence_level': 0.95,
    'overfitting_gap': 0.1,
}

WALK_FORWARD_PARAMS = {
    'training_pct': 0.6,
    'testing_pct': 0.4,
    'advancement_factor': 0.8,
}

VALIDATION_PARAMS = {
    'max_walk_forward_windows': 100,
}

STATISTICAL_PARAMS = {
    'minimum_correlation': 0.1,
    'stability_threshold': 0.2,
}


SECTIONS = {
    'optimization': OPTIMIZATION_PARAMS,
    'ml_optimization': ML_OPTIMIZATION_PARAMS,
    'cross_validation': CROSS_VALIDATION_PARAMS,
    'walk_forward': WALK_FORWARD_PARAMS,
    'validation': VALIDATION_PARAMS,
    'statistical': STATISTICAL_PARAMS,
}


def get_params(section: str, **overrides) -> dict:
    """Get a copy of a parameter section, with optional overrides."""
    if section not in SECTIONS:
        raise KeyError(f"Unknown parameter section: {section}")

    params = SECTIONS[section].copy()
    params.update(overrides)
    return params
