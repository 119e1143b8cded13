"""Collaborators the orchestrator depends on. Implementations are injected by the host application."""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

from src.monitor.schemas.instances import Credentials, Instance
from src.monitor.schemas.metrics import MetricSample, MetricWindow


class CredentialSource(Protocol):
    def exists(self) -> bool:
        """Whether any credentials source is present at all."""
        ...

    def resolve(self, profile: str) -> Optional[Credentials]:
        """Credentials for the profile, or None when the profile is missing or incomplete."""
        ...


class InstanceLister(Protocol):
    def list_instances(self, region: str, credentials: Credentials) -> Sequence[Instance]:
        """List instances in the region. Raises on failure."""
        ...


class MetricFetcher(Protocol):
    def fetch(self, instance_id: str, window: MetricWindow, credentials: Credentials) -> MetricSample:
        """Fetch raw readings for one instance over the window. Raises on failure."""
        ...


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        """Deliver an alert message. Fire-and-forget."""
        ...
