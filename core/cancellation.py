"""Cooperative cancellation for scan sessions.

A scan never runs requests in parallel, so stopping it only needs a flag that
every suspension point polls: before and after each delay, before each
network call and right after each response.
"""

import asyncio
import logging

from core.exceptions import ScanCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """A stop flag shared by everything running inside one scan session."""

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "Scan manually stopped") -> None:
        if not self._cancelled:
            logger.info(f"Cancellation requested: {reason}")
        self._cancelled = True
        self.reason = reason

    def raise_if_cancelled(self, where: str = "") -> None:
        """Raise ScanCancelledError if a stop has been requested."""
        if self._cancelled:
            suffix = f" {where}" if where else ""
            raise ScanCancelledError(f"Scan manually stopped{suffix}", {"reason": self.reason})


async def cancellable_sleep(
    seconds: float, token: CancellationToken | None = None, where: str = ""
) -> None:
    """Sleep for ``seconds``, checking the token before and after the wait."""
    if token is not None:
        token.raise_if_cancelled(f"before delay {where}".rstrip())
    if seconds > 0:
        await asyncio.sleep(seconds)
    if token is not None:
        token.raise_if_cancelled(f"during delay {where}".rstrip())
