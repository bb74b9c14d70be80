"""
Reconnect delay policy for the live streams.

The streams retry forever after a disconnect. The pause between attempts
is constant: it does not grow with repeated failures.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class FixedDelay:
    """
    Constant delay calculator.

    Args:
        delay: Delay in seconds before every retry (default: 5.0)

    Example:
        >>> policy = FixedDelay(5.0)
        >>> policy.calculate(attempt=0)
        5.0
        >>> policy.calculate(attempt=10)
        5.0
    """

    def __init__(self, delay: float = 5.0):
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay

    def calculate(self, attempt: int) -> float:
        """
        Calculate delay for given retry attempt.

        Args:
            attempt: Retry attempt number (0-indexed), ignored

        Returns:
            Delay in seconds
        """
        return self.delay

    async def wait(self, attempt: int) -> None:
        """Suspend until the next attempt may start."""
        delay = self.calculate(attempt)
        logger.info(f"Retrying in {delay:.2f} seconds...")
        await asyncio.sleep(delay)
