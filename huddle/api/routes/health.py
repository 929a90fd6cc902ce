"""Health check route."""

from typing import Any

from fastapi import APIRouter

from huddle.api.deps import ServicesDep
from huddle.core.circuit_breaker import get_all_circuit_breakers

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(services: ServicesDep) -> dict[str, Any]:
    """Process health with identity cache statistics and breaker states."""
    return {
        "status": "healthy",
        "cache": services.cache.get_stats(),
        "circuit_breakers": {
            name: breaker.state.value for name, breaker in get_all_circuit_breakers().items()
        },
    }
