from __future__ import annotations

from typing import Optional

from src.monitor.schemas.common import UNAVAILABLE
from src.monitor.schemas.instances import Instance
from src.monitor.schemas.metrics import MetricSample, Metrics


def _clamp_pct(v: float) -> float:
    return float(max(0.0, min(100.0, v)))


def _or_zero(v: Optional[float]) -> float:
    return float(v) if v is not None else 0.0


def _connections_used_percent(current_connections: float, max_connections: int) -> float:
    if max_connections <= 0:
        return 0.0
    return _clamp_pct(current_connections / float(max_connections) * 100.0)


def _storage_used_percent(free_storage_space: Optional[float], allocated_storage_bytes: float) -> float:
    # A zero free-bytes reading cannot be told apart from a missing datapoint.
    if free_storage_space is None or free_storage_space <= 0 or allocated_storage_bytes <= 0:
        return UNAVAILABLE
    used = allocated_storage_bytes - float(free_storage_space)
    return _clamp_pct(used / allocated_storage_bytes * 100.0)


# PUBLIC_INTERFACE
def derive(sample: MetricSample, instance: Instance) -> Metrics:
    """
    Convert raw readings for one instance into normalized Metrics.

    Missing CPU and connection datapoints are treated as idle (0). Missing free
    storage yields UNAVAILABLE for the storage percentage.
    """
    current_connections = _or_zero(sample.current_connections)
    return Metrics(
        cpu_utilization=_or_zero(sample.cpu_utilization),
        current_connections=current_connections,
        connections_used_percent=_connections_used_percent(current_connections, instance.max_connections),
        storage_used_percent=_storage_used_percent(sample.free_storage_space, instance.allocated_storage_bytes),
        free_storage_space=_or_zero(sample.free_storage_space),
    )
