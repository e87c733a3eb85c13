"""
Prometheus metrics for the booking allocator.
Exposed at /metrics when METRICS_ENABLED is set.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

booking_attempts = Counter(
    'booking_attempts_total',
    'Booking allocator calls by operation and outcome',
    ['operation', 'outcome']  # outcome: success or a BookingErrorKind value
)

booking_latency = Histogram(
    'booking_latency_seconds',
    'Booking allocator latency',
    ['operation'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(operation: str, outcome: str):
    """Record an allocator call. Outcome: success or a failure kind."""
    booking_attempts.labels(operation=operation, outcome=outcome).inc()


def observe_booking_latency(operation: str, seconds: float):
    booking_latency.labels(operation=operation).observe(seconds)
