from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from src.monitor.config import MonitorConfig
from src.monitor.services.interfaces import CredentialSource, InstanceLister, MetricFetcher, Notifier
from src.monitor.services.monitoring_service import MonitoringOrchestrator


@dataclass
class AppState:
    """Typed container for the long-lived monitoring singletons."""

    config: MonitorConfig
    orchestrator: MonitoringOrchestrator
    refresh_task: Optional["asyncio.Task[None]"] = None
    shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)


# PUBLIC_INTERFACE
def init_state(
    config: MonitorConfig,
    *,
    credentials: CredentialSource,
    lister: InstanceLister,
    fetcher: MetricFetcher,
    notifier: Notifier,
) -> AppState:
    """Build AppState with an orchestrator wired to the given collaborators."""
    orchestrator = MonitoringOrchestrator(
        config,
        credentials=credentials,
        lister=lister,
        fetcher=fetcher,
        notifier=notifier,
    )
    return AppState(config=config, orchestrator=orchestrator)
