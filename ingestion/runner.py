"""
ETL Runner - runs every external source through fetch, normalize and upsert.

Each source is wrapped in its own RetryExecutor. A source that still fails
after its last attempt is recorded as a failed ETLResult and never stops the
other sources. Sources run under a bounded fan-out; results always come back
in SourceName order.
"""

import asyncio
import time
from typing import List, Optional
from ingestion.base import DataSourceGateway
from ingestion.processor import SourceProcessor, build_processors
from ingestion.retry import RetryExecutor, RetryPolicy, SleepFunc
from ingestion.sources import SourceSpec
from schemas.etl import ETLResult, ETLResults
from core.config import Settings
from core.database import SessionFactory
from core.exceptions import error_message
import logging

logger = logging.getLogger(__name__)


class ETLRunner:
    """
    Pipeline orchestrator for one run.

    Collaborators are injected so tests can supply fakes; nothing here holds
    module-level clients or sessions.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        gateway: DataSourceGateway,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        max_concurrency: int = 1,
        sleep: Optional[SleepFunc] = None,
        specs: Optional[List[SourceSpec]] = None
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.session_factory = session_factory
        self.gateway = gateway
        self.policy = RetryPolicy(max_retries=max_retries, base_delay=retry_base_delay)
        self.max_concurrency = max_concurrency
        self.sleep = sleep
        self.specs = specs

    @classmethod
    def from_settings(
        cls,
        session_factory: SessionFactory,
        gateway: DataSourceGateway,
        config: Settings
    ) -> "ETLRunner":
        return cls(
            session_factory,
            gateway,
            max_retries=config.ETL_MAX_RETRIES,
            retry_base_delay=config.ETL_RETRY_BASE_DELAY,
            max_concurrency=config.ETL_MAX_CONCURRENCY
        )

    async def run_full_etl(self) -> ETLResults:
        """
        Process every source once (with retries) and aggregate the outcome.

        Returns:
            ETLResults with one entry per source, in SourceName order
        """
        start_time = time.perf_counter()
        processors = build_processors(self.gateway, self.session_factory, self.specs)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(
            f"[ETL] Starting full ETL for {len(processors)} sources "
            f"(concurrency={self.max_concurrency})"
        )

        async def bounded(processor: SourceProcessor) -> ETLResult:
            async with semaphore:
                return await self._run_source(processor)

        # gather preserves argument order, so results follow SourceName order
        results = await asyncio.gather(*(bounded(p) for p in processors))

        total_duration = int((time.perf_counter() - start_time) * 1000)
        summary = ETLResults.from_results(list(results), total_duration)

        logger.info(
            f"[ETL] Completed in {total_duration}ms: "
            f"{summary.success_count} succeeded, {summary.failure_count} failed"
        )
        return summary

    async def _run_source(self, processor: SourceProcessor) -> ETLResult:
        executor = RetryExecutor(self.policy, sleep=self.sleep)
        source_name = processor.source_name

        logger.info(f"[ETL] Starting {source_name}")
        try:
            result = await executor.execute(processor.process, source_name)
        except Exception as e:
            logger.error(f"[ETL] {source_name} failed: {error_message(e)}")
            return ETLResult.failed(processor.spec.name, error_message(e))

        logger.info(
            f"[ETL] Finished {source_name}: {result.records_processed} records"
        )
        return result
