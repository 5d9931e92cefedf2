"""Shared request-rate ceiling for Discogs API calls.

Scans are sequential and already pace themselves with per-request delays;
the limiter is the hard per-minute ceiling shared by every client on the
event loop (e.g. a sync and a settings lookup running side by side).
"""

import asyncio
import logging

from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)

# Lazily-initialized limiters, stored per event loop
_rate_limiters: dict[asyncio.AbstractEventLoop, AsyncLimiter] = {}


def _create_limiter() -> AsyncLimiter:
    from config.settings import get_settings

    settings = get_settings()
    return AsyncLimiter(settings.discogs_rate_limit, 60)


def get_rate_limiter() -> AsyncLimiter:
    """Get or create the rate limiter for the current event loop.

    Returns:
        AsyncLimiter configured for requests per minute
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return _create_limiter()

    if loop not in _rate_limiters:
        _rate_limiters[loop] = _create_limiter()
        logger.debug(f"Created rate limiter: {_rate_limiters[loop].max_rate:g} req/min")
    return _rate_limiters[loop]


def reset_rate_limiting() -> None:
    """Reset rate limiting state for testing."""
    _rate_limiters.clear()
    logger.debug("Reset rate limiting state")
