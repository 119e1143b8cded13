from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Set

from src.monitor.config import MonitorConfig
from src.monitor.schemas.alerts import AlertDecision, Clear, Notify
from src.monitor.schemas.common import utc_now
from src.monitor.schemas.instances import Credentials, Instance
from src.monitor.schemas.metrics import MetricSample, Metrics, MetricWindow
from src.monitor.schemas.monitoring import (
    Error,
    InvalidCredentials,
    Loaded,
    Loading,
    MonitoringState,
    NoCredentials,
    NoDatabases,
)
from src.monitor.services.alerts_service import AlertEngine
from src.monitor.services.error_classifier import ErrorClassifier, classify_listing_failure
from src.monitor.services.interfaces import CredentialSource, InstanceLister, MetricFetcher, Notifier
from src.monitor.services.metrics_service import derive

logger = logging.getLogger(__name__)

StateListener = Callable[[MonitoringState], None]


async def _run_in_thread(func, *args, **kwargs):
    """Run blocking collaborator calls in a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)


class MonitoringOrchestrator:
    """
    Drives refresh cycles and publishes one MonitoringState per step.

    A cycle resolves credentials, lists instances, fetches metrics for each instance,
    derives Metrics, evaluates alerts and finally publishes Loaded. Cycles never overlap:
    a refresh requested while one is running is coalesced into a single follow-up cycle.
    """

    def __init__(
        self,
        config: MonitorConfig,
        *,
        credentials: CredentialSource,
        lister: InstanceLister,
        fetcher: MetricFetcher,
        notifier: Notifier,
        alert_engine: Optional[AlertEngine] = None,
        classifier: ErrorClassifier = classify_listing_failure,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._config = config
        self._credentials = credentials
        self._lister = lister
        self._fetcher = fetcher
        self._notifier = notifier
        self._alerts = alert_engine or AlertEngine(
            threshold_pct=config.alert_threshold_pct,
            renotify_sec=config.alert_renotify_sec,
            clock=clock,
        )
        self._classify = classifier
        self._clock = clock

        # Target the running cycle works against; only changed inside the refresh lock.
        self._profile: str = config.profile
        self._region: str = config.region
        # Target requested by select_profile/select_region, applied when the next cycle starts.
        self._requested_profile: str = config.profile
        self._requested_region: str = config.region

        self._state: MonitoringState = Loading()
        self._instances: List[Instance] = []
        self._metrics: Dict[str, Metrics] = {}
        self._last_decisions: Dict[str, AlertDecision] = {}
        self._last_update_time: Optional[datetime] = None
        self._listeners: List[StateListener] = []

        self._lock = asyncio.Lock()
        self._refresh_pending = False
        self._deliveries: Set[asyncio.Task] = set()

    # ---- Published surface ----

    @property
    def state(self) -> MonitoringState:
        return self._state

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def region(self) -> str:
        return self._region

    @property
    def instances(self) -> List[Instance]:
        return list(self._instances)

    @property
    def metrics(self) -> Dict[str, Metrics]:
        return dict(self._metrics)

    @property
    def last_update_time(self) -> Optional[datetime]:
        return self._last_update_time

    @property
    def last_decisions(self) -> Dict[str, AlertDecision]:
        """Alert decisions taken during the most recent cycle that reached alert evaluation."""
        return dict(self._last_decisions)

    @property
    def alert_engine(self) -> AlertEngine:
        return self._alerts

    # PUBLIC_INTERFACE
    def get_metrics(self, instance_id: str) -> Optional[Metrics]:
        """Metrics for an instance from the latest cycle, None when its fetch failed or it is unknown."""
        return self._metrics.get(instance_id)

    # PUBLIC_INTERFACE
    def add_listener(self, listener: StateListener) -> None:
        """Register a callback receiving every published MonitoringState."""
        self._listeners.append(listener)

    def _publish(self, state: MonitoringState) -> None:
        self._state = state
        logger.info("Monitoring state -> %s", state.kind)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed for state=%s", state.kind)

    # ---- Target selection ----

    # PUBLIC_INTERFACE
    async def select_profile(self, profile: str) -> MonitoringState:
        """
        Switch to another credentials profile and refresh.

        The switch takes effect when the next cycle starts; a cycle already in flight
        finishes against the old profile.
        """
        logger.info("Profile %s requested", profile)
        self._requested_profile = profile
        return await self.refresh()

    # PUBLIC_INTERFACE
    async def select_region(self, region: str) -> MonitoringState:
        """Switch to another region and refresh. Applied at the start of the next cycle."""
        logger.info("Region %s requested", region)
        self._requested_region = region
        return await self.refresh()

    def _apply_requested_target(self) -> None:
        if (self._requested_profile, self._requested_region) == (self._profile, self._region):
            return
        logger.info(
            "Switching target profile=%s region=%s -> profile=%s region=%s",
            self._profile, self._region, self._requested_profile, self._requested_region,
        )
        self._profile = self._requested_profile
        self._region = self._requested_region
        self._alerts.reset()

    def _target_superseded(self, profile: str, region: str) -> bool:
        return (self._requested_profile, self._requested_region) != (profile, region)

    # PUBLIC_INTERFACE
    async def wait_for_notifications(self) -> None:
        """Wait until every notification handed to the Notifier so far has been delivered or has failed."""
        while self._deliveries:
            await asyncio.gather(*list(self._deliveries))

    # ---- Refresh ----

    # PUBLIC_INTERFACE
    async def refresh(self) -> MonitoringState:
        """
        Run a refresh cycle, or queue one if a cycle is already in flight.

        Returns the state published at the end of the cycle(s) run by this call, or the
        current state when the request was only queued.
        """
        if self._lock.locked():
            self._refresh_pending = True
            logger.info("Refresh already in flight; queued a follow-up cycle")
            return self._state

        async with self._lock:
            while True:
                self._refresh_pending = False
                await self._run_cycle()
                if not self._refresh_pending:
                    break
        return self._state

    async def _run_cycle(self) -> None:
        self._apply_requested_target()
        profile, region = self._profile, self._region
        self._publish(Loading())

        try:
            exists = await _run_in_thread(self._credentials.exists)
        except Exception as exc:
            logger.exception("Checking for a credentials source failed")
            self._publish(Error(message=str(exc) or type(exc).__name__))
            return

        if not exists:
            logger.warning("No credentials source found")
            self._publish(NoCredentials())
            return

        credentials = await self._resolve_credentials(profile)
        if credentials is None:
            logger.warning("No credentials found for profile=%s", profile)
            self._publish(InvalidCredentials(message=f"Profile '{profile}' not found or missing keys"))
            return

        try:
            instances = list(await _run_in_thread(self._lister.list_instances, region, credentials))
        except Exception as exc:
            state = self._classify(exc)
            logger.exception("Listing instances failed (region=%s, classified as %s)", region, state.kind)
            self._publish(state)
            return

        self._instances = instances

        if not instances:
            self._metrics = {}
            self._last_decisions = {}
            self._last_update_time = self._clock()
            logger.info("No instances found in region=%s", region)
            self._publish(NoDatabases())
            return

        self._metrics = await self._fetch_all_metrics(instances, credentials)

        if self._target_superseded(profile, region):
            # The follow-up cycle resets alert records; nothing is evaluated for the old target.
            logger.info("Target changed during cycle (profile=%s region=%s); skipping alert evaluation", profile, region)
            self._last_decisions = {}
        else:
            self._last_decisions = self._evaluate_alerts(instances)
            self._dispatch(self._last_decisions)

        self._last_update_time = self._clock()
        self._publish(Loaded())

    async def _resolve_credentials(self, profile: str) -> Optional[Credentials]:
        try:
            return await _run_in_thread(self._credentials.resolve, profile)
        except Exception:
            logger.exception("Resolving credentials failed for profile=%s", profile)
            return None

    def _window(self) -> MetricWindow:
        end = self._clock()
        return MetricWindow(
            start=end - timedelta(seconds=self._config.metrics_lookback_sec),
            end=end,
            compute_period_sec=self._config.compute_period_sec,
            storage_period_sec=self._config.storage_period_sec,
        )

    async def _fetch_all_metrics(self, instances: Sequence[Instance], credentials: Credentials) -> Dict[str, Metrics]:
        window = self._window()
        semaphore = asyncio.Semaphore(max(1, self._config.metrics_fetch_concurrency))

        async def _fetch_one(instance: Instance) -> Optional[MetricSample]:
            async with semaphore:
                try:
                    return await _run_in_thread(self._fetcher.fetch, instance.identifier, window, credentials)
                except Exception:
                    logger.exception("Fetching metrics failed for instanceId=%s", instance.identifier)
                    return None

        samples = await asyncio.gather(*(_fetch_one(inst) for inst in instances))

        fresh: Dict[str, Metrics] = {}
        for instance, sample in zip(instances, samples):
            if sample is None:
                continue
            fresh[instance.identifier] = derive(sample, instance)
        return fresh

    def _evaluate_alerts(self, instances: Sequence[Instance]) -> Dict[str, AlertDecision]:
        now = self._clock()
        decisions: Dict[str, AlertDecision] = {}
        for instance in instances:
            metrics = self._metrics.get(instance.identifier)
            if metrics is None:
                # No reading this cycle: keep whatever alert state the instance already had.
                continue
            decisions[instance.identifier] = self._alerts.evaluate(
                instance.identifier, metrics, instance.max_connections, now=now
            )
        return decisions

    def _dispatch(self, decisions: Dict[str, AlertDecision]) -> None:
        """Hand Notify messages to the Notifier in the background; the cycle does not wait for delivery."""
        for instance_id, decision in decisions.items():
            if isinstance(decision, Notify):
                logger.warning("ALERT: %s", decision.message.replace("\n", " | "))
                task = asyncio.create_task(self._deliver(instance_id, decision.message))
                self._deliveries.add(task)
                task.add_done_callback(self._deliveries.discard)
            elif isinstance(decision, Clear):
                logger.info("Instance back to normal: %s", instance_id)

    async def _deliver(self, instance_id: str, message: str) -> None:
        try:
            await _run_in_thread(self._notifier.notify, message)
        except Exception:
            logger.exception("Notifier failed for instanceId=%s", instance_id)
