"""
One ETL run end to end: run id, audit trail, deadline-guarded pipeline and
notification.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from ingestion.deadline import run_with_deadline
from ingestion.runner import ETLRunner
from services.audit import AuditService
from services.notification import NotificationService
from schemas.etl import ETLResults
from core.exceptions import error_message
import logging

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    """etl-<unix millis>"""
    return f"etl-{int(time.time() * 1000)}"


@dataclass
class ETLJobOutcome:
    """What a trigger needs to answer its caller"""
    success: bool
    run_id: str
    duration_ms: int
    finished_at: datetime
    results: Optional[ETLResults] = None
    error: Optional[str] = None


class ETLJob:
    """
    Wraps ETLRunner.run_full_etl with the side effects of a run.

    Per-source failures are part of a successful run's results. Only a
    run-level error (deadline exceeded, unexpected exception) makes the
    outcome unsuccessful; run() itself does not raise for either.
    """

    def __init__(
        self,
        runner: ETLRunner,
        audit: AuditService,
        notifier: NotificationService,
        timeout_seconds: float = 600.0
    ):
        self.runner = runner
        self.audit = audit
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds

    async def run(
        self,
        trigger: str = "api",
        request_meta: Optional[Dict[str, Any]] = None
    ) -> ETLJobOutcome:
        request_meta = request_meta or {}
        run_id = new_run_id()
        start_time = time.perf_counter()

        await self.audit.log_etl_start(
            run_id,
            trigger=trigger,
            ip=request_meta.get("ip"),
            ua=request_meta.get("user_agent"),
            request_id=request_meta.get("request_id")
        )
        logger.info(f"[ETL] Starting ETL process {run_id} (trigger={trigger})")

        try:
            results = await run_with_deadline(self.runner.run_full_etl(), self.timeout_seconds)

        except Exception as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            failed_at = datetime.now(timezone.utc)
            message = error_message(e)
            logger.error(f"[ETL] {run_id} failed after {duration_ms}ms: {message}")

            await self.audit.log_etl_failure(run_id, message, duration_ms, failed_at)
            await self.notifier.send_etl_notification(
                "failure",
                run_id=run_id,
                duration_ms=duration_ms,
                error=message,
                timestamp=failed_at
            )
            return ETLJobOutcome(
                success=False,
                run_id=run_id,
                duration_ms=duration_ms,
                finished_at=failed_at,
                error=message
            )

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        completed_at = datetime.now(timezone.utc)
        results_json = results.to_json()

        await self.audit.log_etl_success(run_id, duration_ms, results_json, completed_at)
        await self.notifier.send_etl_notification(
            "success",
            run_id=run_id,
            duration_ms=duration_ms,
            results=results_json,
            timestamp=completed_at
        )
        logger.info(f"[ETL] {run_id} completed successfully in {duration_ms}ms")

        return ETLJobOutcome(
            success=True,
            run_id=run_id,
            duration_ms=duration_ms,
            finished_at=completed_at,
            results=results
        )
