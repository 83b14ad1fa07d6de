"""Health & Readiness Probes for the scoring service.

Invariants:
    - GET /health/ returns 200 while the process is up and reports the active
      ABA point table, so operators can tell which scoring strategy a node runs
    - GET /health/ready returns 503 until the rounds database answers
    - Neither probe requires an X-User-Id header
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from quiver.config import get_settings
from quiver.core.domain_types import ScoringSystem
from quiver.infrastructure import database
from quiver.services import round_locks

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness, with the scoring configuration this node serves."""
    return {
        "status": "healthy",
        "service": "quiver-api",
        "version": "1.0.0",
        "scoringSystems": [s.value for s in ScoringSystem],
        "abaScoringStrategy": get_settings().aba_scoring_strategy.value,
    }


@router.get("/ready")
async def readiness_check():
    """Readiness: rounds database reachable. Reports rounds being mutated right now."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        logger.warning(
            "Readiness check failed: rounds database unavailable",
            extra={"status": status.HTTP_503_SERVICE_UNAVAILABLE},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy"},
        "roundsInFlight": len(round_locks._round_locks),
    }
