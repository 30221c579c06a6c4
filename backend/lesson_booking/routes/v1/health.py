# backend/lesson_booking/routes/v1/health.py
"""
Health check and Prometheus metrics endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Response
from pydantic import BaseModel

from ...core.constants import API_VERSION, BRAND_NAME
from ...monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness check; touches no collaborator."""
    return HealthResponse(
        status="healthy",
        service=f"{BRAND_NAME.lower().replace(' ', '-')}-api",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
