"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_event_join(...): count seats taken per capacity bucket
- observe_donation(...): count donations per kind and verification status
- observe_distribution(...): count inventory distributions per item type
- observe_notification(...): count notifications per type
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'kmf_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'kmf_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

EVENT_JOINS = Counter(
    'kmf_event_joins_total', 'Event seats taken', ['bucket']
)

DONATIONS = Counter(
    'kmf_donations_total', 'Donation state changes', ['kind', 'status']
)

DISTRIBUTIONS = Counter(
    'kmf_item_distributions_total', 'Inventory items handed out', ['item_type']
)

NOTIFICATIONS = Counter(
    'kmf_notifications_total', 'Notifications created', ['type']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_event_join(bucket: str) -> None:
    EVENT_JOINS.labels(bucket=bucket).inc()


def observe_donation(status: str, kind: str = 'scholar') -> None:
    DONATIONS.labels(kind=kind, status=status).inc()


def observe_distribution(item_type: str) -> None:
    DISTRIBUTIONS.labels(item_type=item_type).inc()


def observe_notification(notification_type: str) -> None:
    NOTIFICATIONS.labels(type=notification_type).inc()


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    # Default registry
    return generate_latest()
