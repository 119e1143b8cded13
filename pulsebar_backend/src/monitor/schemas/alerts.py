from __future__ import annotations

from datetime import datetime
from typing import Annotated, FrozenSet, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

MetricName = Literal["cpu", "connections", "storage"]


class AlertRecord(BaseModel):
    """Alert bookkeeping for one breaching instance. Dropped once the instance recovers."""

    model_config = ConfigDict(frozen=True)

    instance_id: str = Field(..., description="Instance the record belongs to.")
    breaching_metrics: FrozenSet[MetricName] = Field(..., description="Metrics breaching at last notification.")
    last_notified_at: datetime = Field(..., description="UTC time of the last notification sent.")


class Suppress(BaseModel):
    """Nothing to send."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["suppress"] = "suppress"


class Notify(BaseModel):
    """Send a notification with the given message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["notify"] = "notify"
    message: str = Field(..., description="Multi-line alert body.")


class Clear(BaseModel):
    """A previously alerting instance has recovered."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["clear"] = "clear"


AlertDecision = Annotated[Union[Suppress, Notify, Clear], Field(discriminator="kind")]
