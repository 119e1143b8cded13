from __future__ import annotations

from datetime import datetime, timezone

# Out-of-band marker for a derived percentage with no usable datapoint this cycle.
UNAVAILABLE: float = -1.0


# PUBLIC_INTERFACE
def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def is_available(value: float) -> bool:
    """True when a derived percentage carries a real reading rather than UNAVAILABLE."""
    return value != UNAVAILABLE
