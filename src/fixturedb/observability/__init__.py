"""
Observability — Logging and metrics for fixturedb.

Provides:
- Structured events with scope labels
- Operation counters (inserts, updates, removals, rejections)
"""

from fixturedb.observability.logging import (
    set_scope,
    get_scope,
    configure_logging,
    get_logger,
    log_event,
    LogScope,
    EventFormatter,
)
from fixturedb.observability.metrics import (
    Counter,
    Gauge,
    StoreMetrics,
    get_metrics,
    reset_metrics,
)

__all__ = [
    # Logging
    "set_scope",
    "get_scope",
    "configure_logging",
    "get_logger",
    "log_event",
    "LogScope",
    "EventFormatter",
    # Metrics
    "Counter",
    "Gauge",
    "StoreMetrics",
    "get_metrics",
    "reset_metrics",
]
