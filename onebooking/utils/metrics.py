"""
Prometheus Metrics

Provides application metrics in Prometheus text format:
- HTTP request counts
- Inbound sync events by result
- Outbound webhook deliveries by scheme and outcome
- Side-channel notifications
"""

from typing import Dict
from collections import defaultdict
from threading import Lock


class Counter:
    """Simple counter metric."""

    def __init__(self, name: str, description: str, labels: tuple = ()):
        self.name = name
        self.description = description
        self.labels = labels
        self._values: Dict[tuple, float] = defaultdict(float)
        self._lock = Lock()

    def inc(self, value: float = 1, **label_values):
        """Increment counter."""
        key = tuple(label_values.get(l, '') for l in self.labels)
        with self._lock:
            self._values[key] += value

    def get(self, **label_values) -> float:
        key = tuple(label_values.get(l, '') for l in self.labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def get_all(self) -> Dict[tuple, float]:
        """Get all values."""
        with self._lock:
            return dict(self._values)

    def reset(self):
        with self._lock:
            self._values.clear()


# ================================
# APPLICATION METRICS
# ================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labels=("method", "path", "status_code")
)

sync_events_total = Counter(
    "sync_events_total",
    "Inbound booking sync events",
    labels=("event_type", "result")
)

webhook_deliveries_total = Counter(
    "webhook_deliveries_total",
    "Outbound webhook deliveries to source websites",
    labels=("scheme", "outcome")
)

notifications_total = Counter(
    "notifications_total",
    "Side-channel notifications (chat, e-mail)",
    labels=("channel", "status")
)

ALL_COUNTERS = (
    http_requests_total,
    sync_events_total,
    webhook_deliveries_total,
    notifications_total,
)


def format_prometheus_metrics() -> str:
    """Format all metrics in Prometheus text format."""
    lines = []

    for counter in ALL_COUNTERS:
        lines.append(f"# HELP {counter.name} {counter.description}")
        lines.append(f"# TYPE {counter.name} counter")
        for key, value in sorted(counter.get_all().items()):
            labels = dict(zip(counter.labels, key))
            label_str = ",".join(f'{k}="{v}"' for k, v in labels.items())
            lines.append(f'{counter.name}{{{label_str}}} {value}')

    return "\n".join(lines) + "\n"


# ================================
# CONVENIENCE FUNCTIONS
# ================================

def record_http_request(method: str, path: str, status_code: int):
    http_requests_total.inc(method=method, path=path, status_code=str(status_code))


def record_sync_event(event_type: str, result: str):
    """result: create | update | status_change | duplicate | error"""
    sync_events_total.inc(event_type=event_type, result=result)


def record_webhook_delivery(scheme: str, outcome: str):
    webhook_deliveries_total.inc(scheme=scheme, outcome=outcome)


def record_notification(channel: str, success: bool):
    notifications_total.inc(channel=channel, status="success" if success else "error")
