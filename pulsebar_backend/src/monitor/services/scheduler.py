from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from src.monitor.services.monitoring_service import MonitoringOrchestrator

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def refresh_loop(
    orchestrator: MonitoringOrchestrator,
    shutdown_event: asyncio.Event,
    interval_sec: int,
) -> None:
    """
    Background loop that refreshes the orchestrator every interval_sec.

    The first refresh runs immediately. Refreshes go through orchestrator.refresh(), so a
    manual refresh racing with a tick is coalesced rather than run concurrently.
    Errors are logged and non-fatal; the next tick is the retry.
    """
    interval = max(1, int(interval_sec))
    logger.info("Refresh loop started (interval=%ss)", interval)

    while not shutdown_event.is_set():
        tick_started = datetime.now(timezone.utc)
        try:
            await orchestrator.refresh()
        except Exception:
            logger.exception("Refresh tick failed")

        elapsed = (datetime.now(timezone.utc) - tick_started).total_seconds()
        sleep_for = max(0.1, interval - elapsed)
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=sleep_for)
        except asyncio.TimeoutError:
            pass

    logger.info("Refresh loop stopped")
