"""
Configuration Module - Default parameters for boundary analysis.
"""

from .analysis_params import get_params


__all__ = [
    'get_params',
]
