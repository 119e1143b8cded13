from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Loading(BaseModel):
    """A refresh is in progress."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["loading"] = "loading"


class Loaded(BaseModel):
    """Instances and metrics were refreshed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["loaded"] = "loaded"


class NoCredentials(BaseModel):
    """No credentials source exists."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["no_credentials"] = "no_credentials"


class InvalidCredentials(BaseModel):
    """Credentials exist but could not be used."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid_credentials"] = "invalid_credentials"
    message: str = Field(..., description="Human-readable reason.")


class NoDatabases(BaseModel):
    """Listing succeeded and returned no instances."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["no_databases"] = "no_databases"


class Error(BaseModel):
    """Listing failed for a reason not related to credentials."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str = Field(..., description="Human-readable error details.")


MonitoringState = Annotated[
    Union[Loading, Loaded, NoCredentials, InvalidCredentials, NoDatabases, Error],
    Field(discriminator="kind"),
]
