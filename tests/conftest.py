"""
Pytest configuration and fixtures.

Puts the project root on the path and provides shared price movement data.
"""

import sys
import logging
from pathlib import Path

# Configure logging for tests
logging.basicConfig(level=logging.WARNING)

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))


# Fixtures
import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as running the full optimizer inside every fold"
    )


@pytest.fixture
def band_movements():
    """300 hourly movements; measurements in [60, 80] precede large moves."""
    from fixtures.sample_data import generate_price_movements
    return generate_price_movements(n_samples=300, seed=42)


@pytest.fixture
def ml_config():
    from core.config import MLOptimizationConfig
    return MLOptimizationConfig(target_atr_move=1.5, max_ranges=5)


@pytest.fixture
def constant_movements():
    from fixtures.sample_data import generate_constant_measurement
    return generate_constant_measurement(n_samples=100)


@pytest.fixture
def small_moves():
    from fixtures.sample_data import generate_small_moves
    return generate_small_moves(n_samples=200)
