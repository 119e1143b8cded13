from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from src.monitor.schemas.alerts import AlertDecision, AlertRecord, Clear, MetricName, Notify, Suppress
from src.monitor.schemas.common import is_available, utc_now
from src.monitor.schemas.metrics import Metrics

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_PCT = 50.0
DEFAULT_RENOTIFY_SEC = 900

# Message order and labels for the percentage metrics.
_LABELS: Tuple[Tuple[MetricName, str], ...] = (
    ("cpu", "CPU"),
    ("connections", "Connections"),
    ("storage", "Storage"),
)


def _metric_values(metrics: Metrics) -> Dict[MetricName, float]:
    return {
        "cpu": metrics.cpu_utilization,
        "connections": metrics.connections_used_percent,
        "storage": metrics.storage_used_percent,
    }


def _elapsed_over(now: datetime, since: datetime, seconds: int) -> bool:
    return (now - since).total_seconds() > float(seconds)


class AlertEngine:
    """
    Per-instance alert lifecycle.

    An instance is either clear (no record) or alerting with the set of metrics that
    were breaching when it was last notified. A notification goes out when an instance
    starts breaching, when its breaching set changes, or when the same set has been
    breaching for longer than the re-notify interval. Records are dropped on recovery.
    """

    def __init__(
        self,
        threshold_pct: float = DEFAULT_THRESHOLD_PCT,
        renotify_sec: int = DEFAULT_RENOTIFY_SEC,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._threshold = float(threshold_pct)
        self._renotify_sec = int(renotify_sec)
        self._clock = clock
        self._records: Dict[str, AlertRecord] = {}

    def breaching_metrics(self, metrics: Metrics) -> FrozenSet[MetricName]:
        """Percentage metrics above threshold; UNAVAILABLE readings never breach."""
        return frozenset(
            name for name, value in _metric_values(metrics).items() if is_available(value) and value > self._threshold
        )

    def activity_breach(self, metrics: Metrics, max_connections: int) -> bool:
        """Raw connection count against max connections, checked separately from connections_used_percent."""
        if max_connections <= 0:
            return False
        return metrics.current_connections / float(max_connections) * 100.0 > self._threshold

    # PUBLIC_INTERFACE
    def build_message(self, instance_id: str, metrics: Metrics, breaching: FrozenSet[MetricName]) -> Optional[str]:
        """Alert body: a header line then one line per breaching percentage metric, or None if none breach."""
        values = _metric_values(metrics)
        lines: List[str] = [f"{label}: {values[name]:.0f}%" for name, label in _LABELS if name in breaching]
        if not lines:
            return None
        return "\n".join([f"RDS Alert: {instance_id}"] + lines)

    # PUBLIC_INTERFACE
    def evaluate(
        self,
        instance_id: str,
        metrics: Metrics,
        max_connections: int,
        now: Optional[datetime] = None,
    ) -> AlertDecision:
        """Advance the alert state of one instance and decide whether to notify, stay silent or clear."""
        now = now or self._clock()
        breaching = self.breaching_metrics(metrics)
        any_breach = bool(breaching) or self.activity_breach(metrics, max_connections)

        existing = self._records.get(instance_id)

        if not any_breach:
            if existing is None:
                return Suppress()
            del self._records[instance_id]
            logger.info("Alert cleared for instanceId=%s", instance_id)
            return Clear()

        message = self.build_message(instance_id, metrics, breaching)
        if message is None:
            # Activity-only breach: nothing to report, leave the record as it is.
            logger.debug("Activity breach without percentage breach for instanceId=%s", instance_id)
            return Suppress()

        if existing is not None:
            changed = existing.breaching_metrics != breaching
            if not changed and not _elapsed_over(now, existing.last_notified_at, self._renotify_sec):
                return Suppress()

        self._records[instance_id] = AlertRecord(
            instance_id=instance_id,
            breaching_metrics=breaching,
            last_notified_at=now,
        )
        return Notify(message=message)

    # PUBLIC_INTERFACE
    def record_for(self, instance_id: str) -> Optional[AlertRecord]:
        """Current alert record for an instance, None when clear."""
        return self._records.get(instance_id)

    # PUBLIC_INTERFACE
    def active_alerts(self) -> Dict[str, AlertRecord]:
        """Snapshot of all alerting instances."""
        return dict(self._records)

    def reset(self) -> None:
        """Forget every alert record (used when switching profile or region)."""
        self._records.clear()
