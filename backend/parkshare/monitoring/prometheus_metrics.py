"""
Prometheus metrics for the booking engine.

Service timings come from ``@BaseService.measure_operation``; booking
counters are recorded by the lifecycle service. Everything lives on a
private registry so the process default collectors stay out of /metrics.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "parkshare_service_operation_duration_seconds",
    "Time spent in a measured service operation",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "parkshare_service_operations_total",
    "Measured service operations by outcome",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "parkshare_errors_total",
    "Measured service operations that raised, by exception type",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

bookings_created_total = Counter(
    "parkshare_bookings_created_total",
    "Bookings persisted in pending status",
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "parkshare_booking_conflicts_total",
    "Requests rejected because the window overlaps a blocking booking",
    ["stage"],  # create | transition
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "parkshare_booking_transitions_total",
    "Applied booking status transitions",
    ["from_status", "to_status"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records booking-engine metrics and renders the scrape payload."""

    # Scrapes within this many seconds of the last render reuse it
    _cache_ttl_seconds: float = 1.0
    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """Observe one measured call; ``error_type`` is only counted for failures."""
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_created() -> None:
        bookings_created_total.inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_conflict(stage: str) -> None:
        booking_conflicts_total.labels(stage=stage).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_transition(from_status: str, to_status: str) -> None:
        booking_transitions_total.labels(from_status=from_status, to_status=to_status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Text exposition of ``REGISTRY``, cached briefly between recordings."""
        cached = PrometheusMetrics._cache_payload
        rendered_at = PrometheusMetrics._cache_ts
        if (
            cached is not None
            and rendered_at is not None
            and monotonic() - rendered_at <= PrometheusMetrics._cache_ttl_seconds
        ):
            return cached

        with PrometheusMetrics._cache_lock:
            payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_payload = payload
            PrometheusMetrics._cache_ts = monotonic()
        return payload

    @staticmethod
    def get_content_type() -> str:
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None
            PrometheusMetrics._cache_ts = None


prometheus_metrics = PrometheusMetrics()
