"""Revocation sweeper - periodically prunes ledger entries whose credentials have expired."""

import asyncio

from sessiongate.core.clock import Clock, utc_now
from sessiongate.core.logging import get_logger
from sessiongate.services.revocation import TokenRevocationLedger

logger = get_logger("revocation_sweeper")

DEFAULT_INTERVAL_SECONDS = 300

# Let the app finish starting before the first sweep
STARTUP_DELAY_SECONDS = 30


class RevocationSweeper:
    """Background task that calls ``sweep_expired`` on a fixed interval.

    Sweeping only removes entries that can no longer match a live credential,
    so it is safe to run alongside any number of in-flight requests, and
    several processes may sweep the same store concurrently.
    """

    def __init__(
        self,
        ledger: TokenRevocationLedger,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock = utc_now,
        startup_delay: float = STARTUP_DELAY_SECONDS,
    ):
        self._ledger = ledger
        self._interval = interval_seconds
        self._clock = clock
        self._startup_delay = startup_delay
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep task."""
        if self.running:
            logger.warning("Revocation sweeper is already running")
            return

        self._task = asyncio.create_task(self._sweep_loop(), name="revocation-sweeper")
        logger.info(f"Revocation sweeper started (interval: {self._interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Revocation sweeper stopped")

    async def _sweep_loop(self) -> None:
        await asyncio.sleep(self._startup_delay)

        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Error sweeping expired revocation entries")

            await asyncio.sleep(self._interval)

    async def run_once(self) -> int:
        """Execute a single sweep. Returns the number of entries removed."""
        removed = await self._ledger.sweep_expired(self._clock())
        if removed > 0:
            logger.info(f"Swept {removed} expired revocation entries", extra={"removed": removed})
        return removed
