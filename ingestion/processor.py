"""
Per-source normalizer/persister: fetch -> normalize -> upsert for one dataset
"""

import time
from typing import List, Optional
from core.database import SessionFactory
from ingestion.base import DataSourceGateway
from ingestion.sources import SourceSpec, iter_source_specs
from ingestion.transformers.normalizer import DataNormalizer
from ingestion.loaders.postgres_loader import PostgresLoader
from schemas.etl import ETLResult
from core.exceptions import SourceETLError, error_message
import logging

logger = logging.getLogger(__name__)


class SourceProcessor:
    """
    One attempt at ingesting one source.

    Each call to process() opens its own session, so retried attempts and
    concurrently running sources never share a transaction.
    """

    def __init__(
        self,
        spec: SourceSpec,
        gateway: DataSourceGateway,
        session_factory: SessionFactory
    ):
        self.spec = spec
        self.gateway = gateway
        self.session_factory = session_factory
        self.normalizer = DataNormalizer(spec.name)

    @property
    def source_name(self) -> str:
        return self.spec.name.value

    async def process(self) -> ETLResult:
        """
        Fetch, normalize and persist every record of this source.

        Returns:
            Successful ETLResult with the number of rows upserted

        Raises:
            SourceETLError: "<source> data ETL failed: <cause>"
        """
        start_time = time.perf_counter()

        try:
            records = await self.gateway.fetch(self.spec.name)
            rows = self.normalizer.normalize_all(records)

            records_processed = 0
            if rows:
                async with self.session_factory() as session:
                    loader = PostgresLoader(session)
                    records_processed = await loader.upsert(
                        self.spec.model, rows, self.spec.conflict_fields
                    )

        except Exception as e:
            raise SourceETLError(
                f"{self.source_name} data ETL failed: {error_message(e)}",
                context={
                    "source_name": self.source_name,
                    "table_name": self.spec.table_name
                },
                original_exception=e
            )

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"{self.source_name}: {records_processed} records processed in {duration_ms}ms"
        )

        return ETLResult(
            source=self.spec.name,
            success=True,
            records_processed=records_processed,
            duration=duration_ms
        )


def build_processors(
    gateway: DataSourceGateway,
    session_factory: SessionFactory,
    specs: Optional[List[SourceSpec]] = None
) -> List[SourceProcessor]:
    """One processor per source, in SourceName order"""
    return [
        SourceProcessor(spec, gateway, session_factory)
        for spec in (specs if specs is not None else iter_source_specs())
    ]
