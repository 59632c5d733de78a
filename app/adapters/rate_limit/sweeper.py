"""Background task that periodically purges expired rate limit entries."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from app.adapters.rate_limit.base import AbstractRateLimiter

logger = logging.getLogger(__name__)


class RateLimitSweeper:
    """Run ``limiter.sweep()`` every ``interval_seconds`` on the event loop.

    Started and stopped by the application lifespan, so the task lives
    exactly as long as the server does.
    """

    def __init__(self, limiter: AbstractRateLimiter, *, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-limit-sweeper")
        logger.debug("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("rate_limit.sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                removed = self._limiter.sweep()
            except Exception:
                logger.exception("rate_limit.sweep_failed")
                continue
            if removed:
                logger.debug("rate_limit.swept", extra={"removed": removed})
