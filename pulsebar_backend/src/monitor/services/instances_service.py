from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from src.monitor.schemas.instances import Instance

logger = logging.getLogger(__name__)

# Ordered by specificity: "xlarge" must be matched before "large".
_MAX_CONNECTIONS_BY_CLASS: Tuple[Tuple[str, int], ...] = (
    ("micro", 66),
    ("small", 150),
    ("medium", 296),
    ("xlarge", 1280),
    ("large", 648),
)
_DEFAULT_MAX_CONNECTIONS = 500


# PUBLIC_INTERFACE
def estimate_max_connections(instance_class: str) -> int:
    """
    Estimate max concurrent connections from the instance class name.

    This is a fixed lookup, not a parameter-group query.
    """
    cls = (instance_class or "").lower()
    for marker, max_conn in _MAX_CONNECTIONS_BY_CLASS:
        if marker in cls:
            return max_conn
    return _DEFAULT_MAX_CONNECTIONS


def _safe_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except Exception:
        return default


# PUBLIC_INTERFACE
def instance_from_description(desc: Dict[str, Any]) -> Optional[Instance]:
    """
    Build an Instance from one DescribeDBInstances entry.

    Entries missing an identifier, engine, class or status are skipped (None).
    """
    identifier = desc.get("DBInstanceIdentifier")
    engine = desc.get("Engine")
    instance_class = desc.get("DBInstanceClass")
    status = desc.get("DBInstanceStatus")
    if not identifier or not engine or not instance_class or not status:
        logger.debug("Skipping incomplete instance description: %s", identifier or "<no identifier>")
        return None

    return Instance(
        identifier=identifier,
        engine=engine,
        instance_class=instance_class,
        allocated_storage=max(0, _safe_int(desc.get("AllocatedStorage"), 0)),
        status=status,
        max_connections=estimate_max_connections(instance_class),
    )
