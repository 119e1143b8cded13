"""Monitoring engine services.

- metrics_service.py (raw samples -> derived Metrics)
- alerts_service.py (per-instance alert lifecycle)
- monitoring_service.py (refresh cycle orchestration)
- scheduler.py (repeating refresh loop)
"""

# Import side-effects are intentionally avoided here; modules are imported by callers as needed.
