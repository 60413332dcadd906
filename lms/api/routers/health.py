"""
Health check router for observability.
"""
from fastapi import APIRouter, Depends

from lms.api.dependencies import get_database, get_payment_circuit_breaker
from lms.config import get_settings
from lms.core.circuit_breaker import CircuitBreaker, CircuitState
from lms.repositories.memory import InMemoryDatabase

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check(
    db: InMemoryDatabase = Depends(get_database),
    circuit_breaker: CircuitBreaker = Depends(get_payment_circuit_breaker),
) -> dict:
    """
    Readiness check for Kubernetes.
    Returns payment circuit breaker state and collection sizes.
    """
    settings = get_settings()

    return {
        "status": "degraded" if circuit_breaker.state == CircuitState.OPEN else "ready",
        "version": settings.APP_VERSION,
        "circuit_breaker": {
            "name": circuit_breaker.name,
            "state": circuit_breaker.state.value,
            "failure_count": circuit_breaker.failure_count,
        },
        "collections": await db.counts(),
    }
