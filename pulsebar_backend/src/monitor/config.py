from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Regions offered by the region picker; others are accepted but logged.
SUPPORTED_REGIONS: Tuple[str, ...] = ("us-east-1", "us-west-2", "eu-west-1", "ap-southeast-1", "ap-northeast-1")

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "us-west-2"


def _env_int(name: str, default: int) -> int:
    """Parse an int env var with a default."""
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return int(default)


def _env_float(name: str, default: float) -> float:
    """Parse a float env var with a default."""
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return float(default)


def _env_str(*names: str) -> Optional[str]:
    """Return the first non-blank value among the given env vars."""
    for name in names:
        raw = os.getenv(name)
        if raw and raw.strip():
            return raw.strip()
    return None


def _clamp_int(v: int, lo: int, hi: int) -> int:
    """Clamp integer to [lo, hi]."""
    return max(lo, min(hi, int(v)))


@dataclass(frozen=True)
class MonitorConfig:
    """Runtime configuration loaded from env."""

    profile: str = DEFAULT_PROFILE
    region: str = DEFAULT_REGION

    # Scheduler cadence (the original app refreshed every 15 minutes).
    refresh_interval_sec: int = 900

    # Metric fetch window and aggregation granularities.
    metrics_lookback_sec: int = 3600
    compute_period_sec: int = 300
    storage_period_sec: int = 3600
    metrics_fetch_concurrency: int = 4

    # Alerts engine tuning
    alert_threshold_pct: float = 50.0
    alert_renotify_sec: int = 900


# PUBLIC_INTERFACE
def load_config() -> MonitorConfig:
    """Load MonitorConfig from env vars, clamping every value into a sane range."""
    # Support both:
    # - standardized: PULSEBAR_PROFILE / PULSEBAR_REGION
    # - the usual AWS tooling names: AWS_PROFILE / AWS_REGION
    profile = _env_str("PULSEBAR_PROFILE", "AWS_PROFILE") or DEFAULT_PROFILE
    region = _env_str("PULSEBAR_REGION", "AWS_REGION") or DEFAULT_REGION

    if region not in SUPPORTED_REGIONS:
        logger.warning("Region %s is not one of the supported regions %s", region, ", ".join(SUPPORTED_REGIONS))

    refresh_interval = _clamp_int(_env_int("REFRESH_INTERVAL_SEC", 900), 30, 24 * 3600)
    lookback = _clamp_int(_env_int("METRICS_LOOKBACK_SEC", 3600), 300, 24 * 3600)
    compute_period = _clamp_int(_env_int("METRICS_COMPUTE_PERIOD_SEC", 300), 60, 3600)
    storage_period = _clamp_int(_env_int("METRICS_STORAGE_PERIOD_SEC", 3600), 60, 24 * 3600)
    concurrency = _clamp_int(_env_int("METRICS_FETCH_CONCURRENCY", 4), 1, 32)

    threshold = max(0.0, min(100.0, _env_float("ALERT_THRESHOLD_PCT", 50.0)))
    renotify = max(0, _env_int("ALERT_RENOTIFY_SEC", 900))

    logger.info(
        "Resolved monitor config profile=%s region=%s refresh=%ss lookback=%ss threshold=%s%% renotify=%ss",
        profile,
        region,
        refresh_interval,
        lookback,
        threshold,
        renotify,
    )

    return MonitorConfig(
        profile=profile,
        region=region,
        refresh_interval_sec=refresh_interval,
        metrics_lookback_sec=lookback,
        compute_period_sec=compute_period,
        storage_period_sec=storage_period,
        metrics_fetch_concurrency=concurrency,
        alert_threshold_pct=threshold,
        alert_renotify_sec=renotify,
    )
