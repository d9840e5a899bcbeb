"""
Health check endpoint with database and last ETL run status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, text
from api.dependencies import get_db
from schemas.api import HealthCheckResponse, LastRunInfo
from models.audit_log import AuditLog
from models.base import AuditAction
from datetime import datetime
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


def last_run_from_audit(entry: AuditLog) -> LastRunInfo:
    meta = entry.meta or {}
    results = meta.get("results") or {}
    action = entry.action.value if isinstance(entry.action, AuditAction) else str(entry.action)
    return LastRunInfo(
        run_id=meta.get("run_id"),
        action=action,
        at=entry.at,
        duration_ms=meta.get("duration_ms"),
        success_count=results.get("successCount"),
        failure_count=results.get("failureCount"),
        error=meta.get("error")
    )


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Outcome of the most recent finished ETL run
    """

    # Check database connectivity
    db_connected = False

    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")

    last_run = None
    if db_connected:
        try:
            result = await db.execute(
                select(AuditLog)
                .where(AuditLog.action.in_([AuditAction.ETL_SUCCESS, AuditAction.ETL_FAILURE]))
                .order_by(AuditLog.at.desc())
                .limit(1)
            )
            entry = result.scalars().first()
            if entry is not None:
                last_run = last_run_from_audit(entry)
        except Exception as e:
            logger.error(f"Failed to fetch last ETL run: {str(e)}")

    return HealthCheckResponse(
        status=HealthCheckResponse.determine_status(db_connected, last_run),
        timestamp=datetime.utcnow(),
        database_connected=db_connected,
        last_run=last_run
    )
