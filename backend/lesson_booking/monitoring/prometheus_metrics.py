"""
Prometheus metrics for the booking engine.

Service operations are recorded by ``BaseService.measure_operation``; slot
claims and booking outcomes by the booking path.
"""

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "mzk_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

service_operations_total = Counter(
    "mzk_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "mzk_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

slot_claims_total = Counter(
    "mzk_slot_claims_total",
    "Slot claim attempts by action and outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

booking_outcomes_total = Counter(
    "mzk_booking_outcomes_total",
    "Booking operations by kind and result code",
    ["operation", "result"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records and exposes engine metrics."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_slot_claim(action: str, outcome: str) -> None:
        slot_claims_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_booking_outcome(operation: str, result: str) -> None:
        booking_outcomes_total.labels(operation=operation, result=result).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


# Singleton instance
prometheus_metrics = PrometheusMetrics()
