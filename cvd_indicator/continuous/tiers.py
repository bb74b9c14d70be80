"""
Volume-tier classification by trade notional.
"""

from decimal import Decimal
from typing import Optional

from .data_types import VolumeTier

# Notional below the smallest tier's floor still counts toward total CVD.
MIN_TIER_NOTIONAL = min(tier.low for tier in VolumeTier)


def classify(notional: Decimal) -> Optional[VolumeTier]:
    """
    Map a trade notional to its tier.

    Args:
        notional: price * quantity, non-negative

    Returns:
        The tier with low <= notional < high, or None below 100.
    """
    if notional < MIN_TIER_NOTIONAL:
        return None
    for tier in VolumeTier:
        if tier.contains(notional):
            return tier
    return None
