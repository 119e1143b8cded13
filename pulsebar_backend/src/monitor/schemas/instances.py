from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

GIB = 1024 * 1024 * 1024


class Instance(BaseModel):
    """A managed database instance as reported by the instance lister for one refresh."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1, description="Unique instance identifier.")
    engine: str = Field(..., description="Database engine kind (e.g. 'postgres').")
    instance_class: str = Field(..., description="Instance class (e.g. 'db.t3.micro').")
    allocated_storage: int = Field(0, ge=0, description="Allocated storage in GiB.")
    status: str = Field(..., description="Lifecycle status reported by the provider.")
    max_connections: int = Field(
        ...,
        ge=0,
        description="Estimated maximum concurrent connections, derived from the instance class.",
    )

    @property
    def allocated_storage_bytes(self) -> float:
        return float(self.allocated_storage) * GIB


class Credentials(BaseModel):
    """Resolved credentials for one profile. Re-resolved every refresh, never cached."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str = Field(..., description="Access key id.")
    secret_access_key: str = Field(..., repr=False, description="Secret access key (never logged).")
    session_token: Optional[str] = Field(default=None, repr=False, description="Optional session token.")
    region: Optional[str] = Field(default=None, description="Region configured for the profile, if any.")
