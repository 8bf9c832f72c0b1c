"""
Expired reservation sweeper.

Periodically rewrites reserved slots whose reserved_until has passed back
to available, at most `limit` rows per run to keep each run short. Reads
never depend on it (lazy expiry); it only keeps stored status tidy.

Runs as an asyncio task in backend lifespan when sweep_interval_seconds > 0.
Uses the synchronous store (via asyncio.to_thread).
"""

import asyncio
import logging

from .reservation import ReservationCoordinator

logger = logging.getLogger(__name__)


async def expiry_sweeper_loop(
    coordinator: ReservationCoordinator,
    interval_seconds: int,
    limit: int | None = None,
) -> None:
    """Sweep expired reservations every interval_seconds until cancelled."""
    logger.info(f"expiry_sweeper_loop started (interval={interval_seconds}s)")

    try:
        while True:
            try:
                await asyncio.to_thread(coordinator.sweep_expired, limit)
            except asyncio.CancelledError:
                logger.info("expiry_sweeper_loop cancelled")
                raise
            except Exception:
                logger.exception("expiry_sweeper_loop error")

            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        pass
