"""
Audit trail for ETL runs, stored in the audit_log table
"""

from datetime import datetime
from typing import Any, Dict, Optional
from models.audit_log import AuditLog, IP_MAX_LENGTH, UA_MAX_LENGTH
from models.base import AuditAction
from core.database import SessionFactory
import logging

logger = logging.getLogger(__name__)

ETL_TARGET = "all_external_tables"
ETL_ACTOR = "etl_scheduler"


class AuditService:
    """
    Write audit entries in their own short session.

    Failures to write are logged and swallowed so auditing never changes the
    outcome of a run.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def log(
        self,
        action: AuditAction,
        target: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        actor_id: str = "system",
        ip: Optional[str] = None,
        ua: Optional[str] = None
    ) -> bool:
        """
        Insert one audit entry.

        Returns:
            True if the entry was committed
        """
        try:
            async with self.session_factory() as session:
                session.add(AuditLog(
                    actor_id=actor_id,
                    action=AuditAction(action),
                    target=target,
                    ip=ip[:IP_MAX_LENGTH] if ip else ip,
                    ua=ua[:UA_MAX_LENGTH] if ua else ua,
                    meta=meta,
                    at=datetime.utcnow()
                ))
                await session.commit()
            return True
        except Exception as e:
            logger.error(f"Audit logging failed for {AuditAction(action).value}: {e}")
            return False

    async def log_etl_start(
        self,
        run_id: str,
        trigger: str = "api",
        ip: Optional[str] = None,
        ua: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> bool:
        return await self.log(
            AuditAction.ETL_START,
            target=ETL_TARGET,
            actor_id=ETL_ACTOR,
            ip=ip,
            ua=ua,
            meta={
                "run_id": run_id,
                "trigger": trigger,
                "started_at": datetime.utcnow().isoformat(),
                "user_agent": ua,
                "ip": ip,
                "request_id": request_id
            }
        )

    async def log_etl_success(
        self,
        run_id: str,
        duration_ms: int,
        results: Dict[str, Any],
        completed_at: datetime
    ) -> bool:
        return await self.log(
            AuditAction.ETL_SUCCESS,
            target=ETL_TARGET,
            actor_id=ETL_ACTOR,
            meta={
                "run_id": run_id,
                "duration_ms": duration_ms,
                "results": results,
                "completed_at": completed_at.isoformat()
            }
        )

    async def log_etl_failure(
        self,
        run_id: str,
        error: str,
        duration_ms: int,
        failed_at: datetime
    ) -> bool:
        return await self.log(
            AuditAction.ETL_FAILURE,
            target=ETL_TARGET,
            actor_id=ETL_ACTOR,
            meta={
                "run_id": run_id,
                "error": error,
                "duration_ms": duration_ms,
                "failed_at": failed_at.isoformat()
            }
        )
