from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import pytest

from src.monitor.config import MonitorConfig
from src.monitor.schemas.instances import Credentials, Instance
from src.monitor.schemas.metrics import MetricSample, MetricWindow
from src.monitor.services.instances_service import estimate_max_connections
from src.monitor.services.monitoring_service import MonitoringOrchestrator

GIB = 1024 * 1024 * 1024
T0 = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend() -> str:
    """Run @pytest.mark.anyio tests on asyncio only."""
    return "asyncio"


def make_instance(
    identifier: str = "db-1",
    instance_class: str = "db.t3.medium",
    allocated_storage: int = 100,
    max_connections: Optional[int] = None,
) -> Instance:
    return Instance(
        identifier=identifier,
        engine="postgres",
        instance_class=instance_class,
        allocated_storage=allocated_storage,
        status="available",
        max_connections=estimate_max_connections(instance_class) if max_connections is None else max_connections,
    )


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeCredentialSource:
    def __init__(self, exists: bool = True, profiles: Optional[Dict[str, Credentials]] = None):
        self._exists = exists
        self.profiles = profiles if profiles is not None else {
            "default": Credentials(access_key_id="AKIATEST", secret_access_key="secret"),
        }
        self.resolve_calls: List[str] = []

    def exists(self) -> bool:
        return self._exists

    def resolve(self, profile: str) -> Optional[Credentials]:
        self.resolve_calls.append(profile)
        return self.profiles.get(profile)


class FakeLister:
    def __init__(self, result: Union[Sequence[Instance], Exception] = ()):
        self.result = result
        self.calls: List[Tuple[str, Credentials]] = []

    def list_instances(self, region: str, credentials: Credentials) -> Sequence[Instance]:
        self.calls.append((region, credentials))
        if isinstance(self.result, Exception):
            raise self.result
        return list(self.result)


class FakeFetcher:
    """Returns per-instance samples; an Exception value is raised for that instance."""

    def __init__(self, samples: Optional[Dict[str, Union[MetricSample, Exception]]] = None):
        self.samples = samples or {}
        self.calls: List[Tuple[str, MetricWindow]] = []

    def fetch(self, instance_id: str, window: MetricWindow, credentials: Credentials) -> MetricSample:
        self.calls.append((instance_id, window))
        value = self.samples.get(instance_id, MetricSample())
        if isinstance(value, Exception):
            raise value
        return value


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: List[str] = []

    def notify(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("notification center unavailable")
        self.messages.append(message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> MonitorConfig:
    return MonitorConfig()


@pytest.fixture
def credentials() -> FakeCredentialSource:
    return FakeCredentialSource()


@pytest.fixture
def lister() -> FakeLister:
    return FakeLister()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def make_orchestrator(
    config: MonitorConfig,
    credentials: FakeCredentialSource,
    lister: FakeLister,
    fetcher: FakeFetcher,
    notifier: FakeNotifier,
    clock: FakeClock,
) -> Callable[..., MonitoringOrchestrator]:
    """Factory building an orchestrator over the fakes; keyword overrides replace a collaborator."""

    def _make(**overrides) -> MonitoringOrchestrator:
        cfg = overrides.pop("config", config)
        kwargs = dict(credentials=credentials, lister=lister, fetcher=fetcher, notifier=notifier, clock=clock)
        kwargs.update(overrides)
        return MonitoringOrchestrator(cfg, **kwargs)

    return _make
