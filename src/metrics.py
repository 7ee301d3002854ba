"""Business metrics for the signboard publishing service."""

from opentelemetry import metrics

from .logging_config import get_logger

logger = get_logger(__name__)

# Get meter for creating instruments
meter = metrics.get_meter(__name__)

# HTTP Request Metrics
http_request_duration = meter.create_histogram(
    name="http_request_duration_seconds",
    description="Duration of HTTP requests in seconds",
    unit="s",
)

http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total number of HTTP requests",
)

http_request_errors = meter.create_counter(
    name="http_request_errors_total",
    description="Total number of HTTP request errors",
)

# Publishing Metrics
snapshots_published_total = meter.create_counter(
    name="snapshots_published_total",
    description="Total number of snapshots published",
)

items_purged_total = meter.create_counter(
    name="items_purged_total",
    description="Total number of marked draft items removed by a publish",
)

restores_total = meter.create_counter(
    name="restores_total",
    description="Total number of restore operations",
)

snapshots_deleted_total = meter.create_counter(
    name="snapshots_deleted_total",
    description="Total number of snapshot versions deleted",
)

# Live update metrics
event_stream_subscribers = meter.create_up_down_counter(
    name="event_stream_subscribers",
    description="Number of connected live update subscribers",
)


def record_http_request(method: str, endpoint: str, status_code: int, duration: float):
    """Record HTTP request metrics."""
    labels = {"method": method, "endpoint": endpoint, "status_code": str(status_code)}

    http_request_duration.record(duration, labels)
    http_requests_total.add(1, labels)

    if status_code >= 400:
        http_request_errors.add(1, labels)


def record_snapshot_published(deleted_items: int):
    """Record a successful publish and the marked items it removed."""
    snapshots_published_total.add(1)
    if deleted_items:
        items_purged_total.add(deleted_items)


def record_restore(kind: str):
    """Record a full ("version"), selective ("items") or discard restore."""
    restores_total.add(1, {"kind": kind})


def record_snapshots_deleted(count: int, mode: str):
    """Record deleted snapshot versions."""
    if count:
        snapshots_deleted_total.add(count, {"mode": mode})


def record_subscriber_change(delta: int):
    """Record a live update subscriber joining (+1) or leaving (-1)."""
    event_stream_subscribers.add(delta)


logger.info("Business metrics instruments created")
