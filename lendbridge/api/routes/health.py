"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable, or reachable
      but without the negotiation tables (migrations not applied)
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import select

from lendbridge.core.errors import DatabaseError
from lendbridge.infrastructure import database
from lendbridge.models.listing import ListingModel
from lendbridge.models.loan_transaction import LoanTransactionModel
from lendbridge.models.message import MessageModel

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])

REQUIRED_TABLES = (ListingModel, LoanTransactionModel, MessageModel)


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "lendbridge-api"}


@router.get("/ready")
async def readiness_check():
    """Readiness probe: connectivity, then the negotiation schema."""
    manager = database.db_manager
    if not manager or not await manager.health_check():
        return _not_ready("database_unavailable")
    if not await _schema_ready(manager):
        return _not_ready("schema_missing")
    return {
        "status": "ready",
        "checks": {"database": "healthy", "schema": "migrated"},
    }


async def _schema_ready(manager: database.DatabaseSessionManager) -> bool:
    try:
        async with manager.session() as db:
            for model in REQUIRED_TABLES:
                await db.execute(select(model.id).limit(1))
    except DatabaseError as e:
        logger.error(f"Readiness schema check failed: {e.message}")
        return False
    return True


def _not_ready(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "reason": reason},
    )
