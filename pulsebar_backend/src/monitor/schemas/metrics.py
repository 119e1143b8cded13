from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MetricSample(BaseModel):
    """Raw readings fetched for one instance in one refresh. None means no datapoint was returned."""

    model_config = ConfigDict(frozen=True)

    cpu_utilization: Optional[float] = Field(default=None, description="CPU utilization (%).")
    current_connections: Optional[float] = Field(default=None, description="Current connection count.")
    free_storage_space: Optional[float] = Field(default=None, description="Free storage space (bytes).")


class Metrics(BaseModel):
    """
    Derived per-instance health figures.

    Percentages are either within [0, 100] or exactly UNAVAILABLE (-1).
    """

    model_config = ConfigDict(frozen=True)

    cpu_utilization: float = Field(..., description="CPU utilization (%), 0 when no datapoint.")
    current_connections: float = Field(..., description="Connection count, 0 when no datapoint.")
    connections_used_percent: float = Field(..., ge=0, le=100, description="Connections used vs estimated max.")
    storage_used_percent: float = Field(..., ge=-1, le=100, description="Storage used, or -1 when unknown.")
    free_storage_space: float = Field(..., description="Free storage (bytes), 0 when no datapoint.")


class MetricWindow(BaseModel):
    """Lookback window and aggregation periods used for one metric fetch."""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="UTC start of the lookback window.")
    end: datetime = Field(..., description="UTC end of the lookback window.")
    compute_period_sec: int = Field(300, ge=1, description="Aggregation period for CPU and connections.")
    storage_period_sec: int = Field(3600, ge=1, description="Aggregation period for free storage.")
