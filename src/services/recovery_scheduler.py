"""
Recovery Scheduler for the Social Battery.

Runs the only autonomous operation of the core: a periodic recovery tick
dispatched into the store. The tick itself decides whether recovery
applies (see services.social_battery.recovery). The loop task must be
stopped on teardown so no timer outlives the app.
"""

from __future__ import annotations

import asyncio
import logging

from src.config.battery import DEFAULT_TICK_MINUTES
from src.services.state_store import SocialBatteryStore

logger = logging.getLogger(__name__)


class RecoveryScheduler:
    """
    Periodic recovery tick.

    Usage:
        scheduler = RecoveryScheduler(store, interval_minutes=15)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        store: SocialBatteryStore,
        interval_minutes: float = DEFAULT_TICK_MINUTES,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._store = store
        self._interval_seconds = interval_minutes * 60
        self._task: asyncio.Task[None] | None = None
        self.ticks_applied = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the tick loop on the running event loop (no-op if running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="social-battery-recovery")
        logger.info("Recovery scheduler started (every %.0f s)", self._interval_seconds)

    async def stop(self) -> None:
        """Cancel the tick loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Recovery scheduler stopped")

    async def tick_once(self) -> bool:
        """Dispatch a single recovery tick."""
        applied = await self._store.tick()
        if applied:
            self.ticks_applied += 1
        return applied

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await self.tick_once()
            except Exception:
                logger.exception("Recovery tick failed")
