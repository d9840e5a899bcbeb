"""
Run one full ETL from the command line.

Usage:
    python -m scripts.run_etl

Exits with status 1 if the run failed as a whole (timeout or unexpected
error). Per-source failures are reported but do not change the exit status.
"""

import asyncio
import sys
import logging

from core.config import settings
from core.database import get_engine, get_session_factory
from core.logging import setup_logging
from api.dependencies import build_etl_job
from ingestion.extractors.api_extractor import APIDataSourceGateway
from services.audit import AuditService
from services.notification import NotificationService

logger = logging.getLogger(__name__)


async def run_etl() -> int:
    """Run the ETL once; returns the process exit code"""
    session_factory = get_session_factory()
    job = build_etl_job(
        session_factory,
        APIDataSourceGateway.from_settings(settings),
        AuditService(session_factory),
        NotificationService.from_settings(settings),
        settings
    )

    try:
        outcome = await job.run(trigger="cli")
    finally:
        await get_engine().dispose()

    if not outcome.success:
        logger.error(f"ETL run {outcome.run_id} failed: {outcome.error}")
        return 1

    for result in outcome.results.results:
        if result.success:
            logger.info(f"{result.source}: {result.records_processed} records in {result.duration}ms")
        else:
            logger.warning(f"{result.source}: FAILED - {result.error}")

    logger.info(
        f"ETL run {outcome.run_id} completed in {outcome.duration_ms}ms: "
        f"{outcome.results.success_count} succeeded, {outcome.results.failure_count} failed"
    )
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(run_etl()))
