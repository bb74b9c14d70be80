"""Utility modules for the cvd_indicator package."""

from .retry import FixedDelay

__all__ = [
    "FixedDelay",
]
