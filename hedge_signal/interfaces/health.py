"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
Reports whether the model path is configured and whether the
payment gate is bypassed, so a misconfigured deploy is visible.
"""

from fastapi import APIRouter, Depends

from hedge_signal.application.signals.recommendation_engine import (
    RecommendationEngine,
)
from hedge_signal.core.config import settings
from hedge_signal.interfaces.signals.dependencies import get_recommendation_engine
from hedge_signal.interfaces.signals.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status and version.",
)
def health_check(
    engine: RecommendationEngine = Depends(get_recommendation_engine),
) -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        llm_enabled=engine.model_enabled,
        payment_bypass=settings.payment_bypass,
    )
