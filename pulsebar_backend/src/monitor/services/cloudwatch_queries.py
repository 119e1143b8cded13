"""
GetMetricData request/response shapes for RDS instance metrics.

These helpers only build and read plain dicts; the client that sends them is an
injected collaborator.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from src.monitor.schemas.metrics import MetricSample, MetricWindow

NAMESPACE = "AWS/RDS"
DIMENSION_NAME = "DBInstanceIdentifier"
STAT = "Average"

QUERY_CPU = "cpu"
QUERY_CONNECTIONS = "connections"
QUERY_STORAGE = "storage"


def _query(query_id: str, metric_name: str, instance_id: str, period: int) -> Dict[str, Any]:
    return {
        "Id": query_id,
        "MetricStat": {
            "Metric": {
                "Namespace": NAMESPACE,
                "MetricName": metric_name,
                "Dimensions": [{"Name": DIMENSION_NAME, "Value": instance_id}],
            },
            "Period": int(period),
            "Stat": STAT,
        },
    }


# PUBLIC_INTERFACE
def metric_data_queries(instance_id: str, window: MetricWindow) -> List[Dict[str, Any]]:
    """Return the three metric queries for one instance (storage uses the coarser period)."""
    return [
        _query(QUERY_CPU, "CPUUtilization", instance_id, window.compute_period_sec),
        _query(QUERY_CONNECTIONS, "DatabaseConnections", instance_id, window.compute_period_sec),
        _query(QUERY_STORAGE, "FreeStorageSpace", instance_id, window.storage_period_sec),
    ]


# PUBLIC_INTERFACE
def get_metric_data_params(instance_id: str, window: MetricWindow) -> Dict[str, Any]:
    """Full keyword arguments for a GetMetricData call, newest datapoints first."""
    return {
        "MetricDataQueries": metric_data_queries(instance_id, window),
        "StartTime": window.start,
        "EndTime": window.end,
        "ScanBy": "TimestampDescending",
    }


def _newest_value(result: Dict[str, Any]) -> Optional[float]:
    values = result.get("Values") or []
    if not values:
        return None
    try:
        return float(values[0])
    except (TypeError, ValueError):
        return None


# PUBLIC_INTERFACE
def sample_from_metric_data(response: Dict[str, Any]) -> MetricSample:
    """Read the newest datapoint of each query into a MetricSample; missing ids stay None."""
    found: Dict[str, Optional[float]] = {}
    for result in response.get("MetricDataResults") or []:
        found[str(result.get("Id"))] = _newest_value(result)

    return MetricSample(
        cpu_utilization=found.get(QUERY_CPU),
        current_connections=found.get(QUERY_CONNECTIONS),
        free_storage_space=found.get(QUERY_STORAGE),
    )
