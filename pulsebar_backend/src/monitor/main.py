from __future__ import annotations

import asyncio
import logging

from src.monitor.services.scheduler import refresh_loop
from src.monitor.state import AppState

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def start(state: AppState) -> None:
    """Start the background refresh loop (first refresh runs right away)."""
    if state.refresh_task is not None and not state.refresh_task.done():
        return
    state.shutdown_event = asyncio.Event()
    state.refresh_task = asyncio.create_task(
        refresh_loop(state.orchestrator, state.shutdown_event, state.config.refresh_interval_sec)
    )


# PUBLIC_INTERFACE
async def stop(state: AppState, timeout: float = 5.0) -> None:
    """Signal the refresh loop to stop and wait for it to finish."""
    state.shutdown_event.set()
    refresh_task = state.refresh_task
    if refresh_task is not None:
        try:
            await asyncio.wait_for(refresh_task, timeout=timeout)
        except Exception:
            logger.exception("Error stopping refresh loop")
    state.refresh_task = None

    try:
        await asyncio.wait_for(state.orchestrator.wait_for_notifications(), timeout=timeout)
    except Exception:
        logger.exception("Error waiting for pending notifications")
