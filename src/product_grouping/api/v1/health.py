import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from product_grouping.db.session import get_db
from product_grouping.models.global_product_mapping import GlobalProductMapping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    """Liveness: the process is up."""
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(db: AsyncSession = Depends(get_db)):
    """
    Readiness: the database is reachable and migrated.

    Counting global mappings fails on a missing table, so an instance
    pointed at an unmigrated database reports not ready.
    """
    try:
        count = await db.scalar(select(func.count()).select_from(GlobalProductMapping))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed", extra={"error_type": type(e).__name__})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "database": "unavailable", "error": type(e).__name__},
        )
    return {"status": "ready", "database": "connected", "global_mappings": count}
