"""
Test Fixtures - Sample price movement data for testing.
"""

from .sample_data import (
    generate_price_movements,
    generate_constant_measurement,
    generate_small_moves,
    generate_correlated_movements,
)


__all__ = [
    'generate_price_movements',
    'generate_constant_measurement',
    'generate_small_moves',
    'generate_correlated_movements',
]
