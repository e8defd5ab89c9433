"""
Metrics — Operation counters for stores and collections.

Useful in tests that assert how much work a code path did against the
mock data layer (e.g. that a handler inserted exactly one record).
"""

from dataclasses import dataclass, field
from threading import Lock
from typing import Any


class Counter:
    """Monotonically increasing counter."""
    
    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._value = 0
        self._lock = Lock()
    
    def inc(self, amount: int = 1) -> None:
        """Increment counter."""
        with self._lock:
            self._value += amount
    
    @property
    def value(self) -> int:
        return self._value
    
    def reset(self) -> None:
        """Reset counter (for testing)."""
        with self._lock:
            self._value = 0


class Gauge:
    """Value that can go up and down."""
    
    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._value = 0
        self._lock = Lock()
    
    def set(self, value: int) -> None:
        with self._lock:
            self._value = value
    
    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount
    
    def dec(self, amount: int = 1) -> None:
        with self._lock:
            self._value -= amount
    
    @property
    def value(self) -> int:
        return self._value
    
    def reset(self) -> None:
        with self._lock:
            self._value = 0


@dataclass
class StoreMetrics:
    """
    Registry for all fixturedb metrics.
    """
    # Record traffic
    records_inserted: Counter = field(
        default_factory=lambda: Counter("records_inserted", "Records inserted")
    )
    records_updated: Counter = field(
        default_factory=lambda: Counter("records_updated", "Records updated")
    )
    records_removed: Counter = field(
        default_factory=lambda: Counter("records_removed", "Records removed")
    )
    live_records: Gauge = field(
        default_factory=lambda: Gauge("live_records", "Records currently stored")
    )
    
    # Rejections
    identifier_collisions: Counter = field(
        default_factory=lambda: Counter("identifier_collisions", "Duplicate id rejections")
    )
    immutable_field_violations: Counter = field(
        default_factory=lambda: Counter("immutable_field_violations", "Rejected id updates")
    )
    
    # Store activity
    collections_created: Counter = field(
        default_factory=lambda: Counter("collections_created", "Collections created")
    )
    dumps_taken: Counter = field(
        default_factory=lambda: Counter("dumps_taken", "Snapshots produced by dump()")
    )
    
    def to_dict(self) -> dict[str, Any]:
        """Export all metrics as dict."""
        return {
            "records": {
                "inserted": self.records_inserted.value,
                "updated": self.records_updated.value,
                "removed": self.records_removed.value,
                "live": self.live_records.value,
            },
            "rejections": {
                "identifier_collisions": self.identifier_collisions.value,
                "immutable_field_violations": self.immutable_field_violations.value,
            },
            "store": {
                "collections_created": self.collections_created.value,
                "dumps_taken": self.dumps_taken.value,
            },
        }
    
    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        self.records_inserted.reset()
        self.records_updated.reset()
        self.records_removed.reset()
        self.live_records.reset()
        self.identifier_collisions.reset()
        self.immutable_field_violations.reset()
        self.collections_created.reset()
        self.dumps_taken.reset()


# Global metrics registry
_metrics = StoreMetrics()


def get_metrics() -> StoreMetrics:
    """Get global metrics registry."""
    return _metrics


def reset_metrics() -> None:
    """Reset all metrics (for testing)."""
    _metrics.reset()
